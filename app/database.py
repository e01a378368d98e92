"""
Database connection and Beanie ODM initialization.

Beanie is an async ODM for MongoDB built on pymongo's async client and Pydantic.
We initialize it once at startup and close the client at shutdown. A missing
connection string or an unreachable server at boot is fatal: serving requests
with no storage behind them is worse than not starting.
"""

import asyncio
import logging
from typing import Awaitable, List, Type, TypeVar

from beanie import init_beanie
from pymongo import AsyncMongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.config import Settings
from app.exceptions import StoreError
from app.models.group import GroupDocument
from app.models.user import UserDocument

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def connect_to_mongo(settings: Settings) -> AsyncMongoClient:
    """
    Create the client, ping the server and initialize Beanie with document models.
    Called once at application startup; raises RuntimeError on misconfiguration.
    """
    if not settings.mongodb_uri:
        logger.critical("MONGODB_URI environment variable is not set")
        raise RuntimeError("MONGODB_URI environment variable is not set")

    timeout_ms = int(settings.mongodb_connect_timeout_seconds * 1000)
    client: AsyncMongoClient = AsyncMongoClient(
        settings.mongodb_uri,
        serverSelectionTimeoutMS=timeout_ms,
        connectTimeoutMS=timeout_ms,
        tz_aware=True,
    )
    try:
        await client.admin.command("ping")
    except PyMongoError as e:
        logger.critical("MongoDB ping failed: %s", e)
        await client.close()
        raise RuntimeError("MongoDB is unreachable") from e

    # Document models that Beanie will manage (collections + indexes)
    document_models: List[Type] = [UserDocument, GroupDocument]

    await init_beanie(
        database=client[settings.mongodb_database],
        document_models=document_models,
    )
    logger.info("MongoDB connected (database=%s); Beanie initialized.", settings.mongodb_database)
    return client


async def close_mongo_connection(client: AsyncMongoClient) -> None:
    """Close the connection pool on application shutdown."""
    logger.info("Closing MongoDB connection.")
    await client.close()


async def run_query(operation: Awaitable[T], timeout: float, error_message: str) -> T:
    """
    Await one database operation under the per-operation timeout.
    Driver errors and timeouts become StoreError with a client-safe message;
    the real cause is only logged. Nothing is retried.
    """
    try:
        return await asyncio.wait_for(operation, timeout=timeout)
    except asyncio.TimeoutError:
        logger.error("%s: timed out after %.1fs", error_message, timeout)
        raise StoreError(error_message)
    except DuplicateKeyError:
        # Unique-index violations are translated by the caller
        raise
    except PyMongoError as e:
        logger.error("%s: %s", error_message, e)
        raise StoreError(error_message) from e
