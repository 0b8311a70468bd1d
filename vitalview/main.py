from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vitalview.core.config import settings
from vitalview.core import db
from vitalview.core.logging import setup_logging
from vitalview.core.middleware import StructlogMiddleware
from vitalview.modules.alerts import router as alerts_router
from vitalview.modules.alerts.service import alert_dispatcher, notifier
from vitalview.modules.extraction import router as extraction_router
from vitalview.modules.extraction.service import orchestrator
from vitalview.modules.readings import router as readings_router

setup_logging()
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup
    app.state.mongo_client = await db.init_db()
    log.info("vitalview started", environment=settings.ENVIRONMENT or "unset")

    yield

    # Shutdown
    await alert_dispatcher.drain()
    await orchestrator.aclose()
    aclose = getattr(notifier, "aclose", None)
    if aclose is not None:
        await aclose()
    db.close_db()


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="""
    ## VitalView API

    * **Extraction**: read vitals from bedside monitor frames, with provider fallback
    * **Readings**: store readings and stream them to viewers in realtime
    * **Alerts**: range transitions delivered to care staff, with an SSE stream
    """,
    version="0.1.0",
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    lifespan=lifespan,
)

# Set all CORS enabled origins
if settings.BACKEND_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_middleware(StructlogMiddleware)

app.include_router(
    extraction_router.router, prefix=settings.API_V1_STR, tags=["extraction"]
)
app.include_router(readings_router.router, prefix=settings.API_V1_STR, tags=["vitals"])
app.include_router(alerts_router.router, prefix=settings.API_V1_STR, tags=["alerts"])


@app.get("/health")
def health_check() -> dict[str, str]:
    return {"status": "ok"}
