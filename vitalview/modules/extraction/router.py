"""HTTP endpoints that turn monitor frames into vitals records."""

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from vitalview.core.exceptions import InputError
from vitalview.modules.extraction.orchestrator import ExtractionOrchestrator
from vitalview.modules.extraction.schemas import (
    BatchExtractionRequest,
    ExtractionRequest,
    ExtractionResponse,
)
from vitalview.modules.extraction.service import get_orchestrator

router = APIRouter()
log = structlog.get_logger()


@router.post(
    "/extract-vitals",
    response_model=ExtractionResponse,
    summary="Extract vitals from a monitor frame",
)
async def extract_vitals(
    request: ExtractionRequest,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> dict:
    """
    Read one frame. An all-null record with ``source: none`` means the monitor
    could not be read this cycle; it is not an error.
    """
    try:
        result = await orchestrator.extract(request.image_base64, request.rois)
    except InputError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    log.info("vitals extracted", source=result.source.value)
    return result.to_payload()


@router.post(
    "/extract-vitals/batch",
    response_model=list[ExtractionResponse],
    summary="Extract vitals from a sequence of frames",
)
async def extract_vitals_batch(
    request: BatchExtractionRequest,
    orchestrator: ExtractionOrchestrator = Depends(get_orchestrator),
) -> list[dict]:
    """Frames are read in order; unusable frames come back as empty records."""
    results = await orchestrator.extract_batch(request.frames, request.rois)
    log.info("vitals batch extracted", frames=len(results))
    return [result.to_payload() for result in results]
