from typing import List, Type

import structlog
from beanie import Document, init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from vitalview.core.config import settings
from vitalview.modules.patients.models import Patient
from vitalview.modules.readings.models import Reading

log = structlog.get_logger()

DOCUMENT_MODELS: List[Type[Document]] = [Reading, Patient]

MONGO_CLIENT: AsyncIOMotorClient | None = None


async def init_db() -> AsyncIOMotorClient:
    """
    Connect to Mongo and register the reading and patient collections with Beanie.

    Called once from the application lifespan; repeated calls reuse the client.
    """
    global MONGO_CLIENT

    if MONGO_CLIENT is not None:
        return MONGO_CLIENT

    client = AsyncIOMotorClient(
        settings.MONGODB_URL,
        uuidRepresentation="standard",
        serverSelectionTimeoutMS=5000,
    )
    database: AsyncIOMotorDatabase = client[settings.MONGODB_DB_NAME]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    log.info(
        "database initialized",
        database=settings.MONGODB_DB_NAME,
        collections=[model.Settings.name for model in DOCUMENT_MODELS],
    )

    MONGO_CLIENT = client
    return client


def close_db() -> None:
    global MONGO_CLIENT

    if MONGO_CLIENT is None:
        return
    MONGO_CLIENT.close()
    MONGO_CLIENT = None
