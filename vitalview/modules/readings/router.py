"""HTTP and WebSocket endpoints for storing and streaming readings."""

from typing import List, Optional, Union

import structlog
from fastapi import APIRouter, Body, Depends, Query, WebSocket, WebSocketDisconnect, status

from vitalview.modules.readings.schemas import ReadingCreate, ReadingOut, ReadingSaveResponse
from vitalview.modules.readings.service import (
    ReadingService,
    get_reading_service,
    vital_manager,
)

router = APIRouter()
log = structlog.get_logger()

HISTORY_DEFAULT_LIMIT = 1000
HISTORY_MAX_LIMIT = 5000


@router.post(
    "/vitals",
    response_model=ReadingSaveResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Store one reading or a list of readings",
)
async def save_vitals(
    payload: Union[List[ReadingCreate], ReadingCreate] = Body(...),
    service: ReadingService = Depends(get_reading_service),
) -> ReadingSaveResponse:
    readings_in = payload if isinstance(payload, list) else [payload]
    readings = await service.record(readings_in)
    return ReadingSaveResponse(count=len(readings))


@router.get("/vitals", response_model=List[ReadingOut], summary="Reading history")
async def read_vitals(
    subject_id: Optional[str] = Query(None, alias="subjectId", description="Filter by subject"),
    limit: int = Query(HISTORY_DEFAULT_LIMIT, ge=1, le=HISTORY_MAX_LIMIT),
    service: ReadingService = Depends(get_reading_service),
) -> List[ReadingOut]:
    """Newest readings first."""
    readings = await service.get_history(subject_id=subject_id, limit=limit)
    return [service.to_out(reading) for reading in readings]


@router.websocket("/vitals/ws")
async def websocket_vitals(websocket: WebSocket) -> None:
    """Pushes a ``vital-update`` event for every stored reading."""
    await vital_manager.connect(websocket)
    log.info("vitals websocket connected")
    try:
        while True:
            # Viewers only listen; reading keeps the socket open and notices disconnects
            await websocket.receive_text()
    except WebSocketDisconnect:
        vital_manager.disconnect(websocket)
        log.info("vitals websocket disconnected")
