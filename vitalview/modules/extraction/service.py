from vitalview.core.config import settings
from vitalview.modules.extraction.orchestrator import ExtractionOrchestrator
from vitalview.modules.extraction.providers import (
    HostedVisionProvider,
    LocalVisionProvider,
    TesseractPatternProvider,
)

orchestrator = ExtractionOrchestrator(
    primary=HostedVisionProvider(
        api_key=settings.HF_API_KEY,
        model=settings.PRIMARY_VLM_MODEL,
        base_url=settings.HF_INFERENCE_URL,
        max_new_tokens=settings.PRIMARY_VLM_MAX_NEW_TOKENS,
        temperature=settings.PRIMARY_VLM_TEMPERATURE,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    ),
    secondary_a=TesseractPatternProvider(
        tesseract_cmd=settings.TESSERACT_CMD,
        window_width=settings.ROI_WINDOW_WIDTH,
        window_height=settings.ROI_WINDOW_HEIGHT,
    ),
    secondary_b=LocalVisionProvider(
        host=settings.OLLAMA_HOST,
        model=settings.SECONDARY_VLM_MODEL,
        timeout=settings.PROVIDER_TIMEOUT_SECONDS,
    ),
)


def get_orchestrator() -> ExtractionOrchestrator:
    return orchestrator
