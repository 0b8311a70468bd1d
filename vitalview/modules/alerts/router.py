"""Server-Sent Events stream of alert notifications."""

import asyncio
import json

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from vitalview.modules.alerts.service import alert_manager

router = APIRouter()
log = structlog.get_logger()

KEEPALIVE_SECONDS = 30.0


@router.get("/alerts/stream")
async def stream_alerts(request: Request, recipient: str = "*") -> StreamingResponse:
    """
    Stream alert notifications addressed to ``recipient`` (or every recipient with ``*``).

    Emits ``data:`` events as alerts are delivered and a keepalive comment when idle.
    """

    async def event_generator():
        queue: asyncio.Queue = asyncio.Queue(maxsize=100)
        alert_manager.subscribe(queue, recipient)
        log.info("sse alert stream connected", recipient=recipient)
        try:
            while True:
                if await request.is_disconnected():
                    log.info("sse client disconnected", recipient=recipient)
                    break
                try:
                    alert = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                    yield f"data: {json.dumps(alert)}\n\n"
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
        finally:
            alert_manager.unsubscribe(queue)
            log.info("sse alert stream closed", recipient=recipient)

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
