from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable, List

import motor.motor_asyncio
from loguru import logger
from pydantic_settings import BaseSettings, SettingsConfigDict
from pymongo.errors import ConfigurationError

from .repositories.donors import DonorRepository


BASE_DIR = Path(__file__).resolve().parents[1]
ENV_FILES = [BASE_DIR / ".env.local", BASE_DIR / ".env"]
FALLBACK_MONGO_URI = "mongodb://127.0.0.1:27017/blood"
DEFAULT_DATABASE = "blood"


class Settings(BaseSettings):
    mongo_uri: str = FALLBACK_MONGO_URI
    donors_collection: str = "donors"
    mongo_server_timeout_ms: int = 2000
    mongo_connect_timeout_ms: int = 2000
    mongo_socket_timeout_ms: int = 2000
    host: str = "0.0.0.0"
    port: int = 4000
    allowed_origins: str = ""
    max_body_bytes: int = 10 * 1024
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=[str(path) for path in ENV_FILES],
        case_sensitive=False,
        env_prefix="",
        extra="ignore",
    )

    @property
    def cors_origins(self) -> List[str]:
        origins = [origin.strip() for origin in self.allowed_origins.split(",")]
        origins = [origin for origin in origins if origin]
        return origins or ["*"]


def get_settings() -> Settings:
    return Settings()


def create_client(settings: Settings) -> motor.motor_asyncio.AsyncIOMotorClient:
    connect_kwargs = {
        "serverSelectionTimeoutMS": settings.mongo_server_timeout_ms,
        "connectTimeoutMS": settings.mongo_connect_timeout_ms,
        "socketTimeoutMS": settings.mongo_socket_timeout_ms,
        "tz_aware": True,
    }
    try:
        return motor.motor_asyncio.AsyncIOMotorClient(settings.mongo_uri, **connect_kwargs)
    except ConfigurationError as exc:
        if settings.mongo_uri == FALLBACK_MONGO_URI:
            raise
        logger.warning(
            "MongoDB DNS resolution failed for {} ({}). Falling back to local Mongo at {}.",
            settings.mongo_uri,
            exc,
            FALLBACK_MONGO_URI,
        )
        return motor.motor_asyncio.AsyncIOMotorClient(FALLBACK_MONGO_URI, **connect_kwargs)


@asynccontextmanager
async def donor_store(
    settings: Settings,
    client_factory: Callable[[Settings], motor.motor_asyncio.AsyncIOMotorClient] = create_client,
) -> AsyncIterator[DonorRepository]:
    """Hold a MongoDB client for the lifetime of the block.

    Index creation doubles as the connectivity check, so an unreachable store
    raises ``PersistenceError`` here. The client is closed on every exit path.
    """
    client = client_factory(settings)
    try:
        database = client.get_default_database(DEFAULT_DATABASE)
        repository = DonorRepository(database.get_collection(settings.donors_collection))
        await repository.ensure_indexes()
        logger.info("Connected to MongoDB database {}", database.name)
        yield repository
    finally:
        client.close()
        logger.info("MongoDB connection closed")
