from vitalview.modules.extraction.providers.base import (
    RecognitionProvider,
    build_vitals_prompt,
    parse_json_answer,
)
from vitalview.modules.extraction.providers.hosted_vlm import HostedVisionProvider
from vitalview.modules.extraction.providers.local_vlm import LocalVisionProvider
from vitalview.modules.extraction.providers.ocr_patterns import TesseractPatternProvider

__all__ = [
    "HostedVisionProvider",
    "LocalVisionProvider",
    "RecognitionProvider",
    "TesseractPatternProvider",
    "build_vitals_prompt",
    "parse_json_answer",
]
