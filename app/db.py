import asyncio
import logging
from typing import Optional
from fastapi import HTTPException
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from pymongo.errors import ConfigurationError, PyMongoError
from app import config
from app.models.token import Token
from app.models.metric import Metric

logger = logging.getLogger("database")

DEFAULT_DB_NAME = "instagram_metrics"
DOCUMENT_MODELS = [Token, Metric]


class DatabaseError(Exception):
    pass


class Database:
    """
    Process-wide MongoDB handle.

    The client is created and Beanie initialised on the first ``connect()``.
    Callers that arrive while that first attempt is still running await the
    same attempt instead of opening their own. A failed attempt is dropped so
    the next caller tries again.
    """

    def __init__(self, client_factory=AsyncIOMotorClient):
        self.client_factory = client_factory
        self.client = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def is_connected(self) -> bool:
        return self.client is not None

    async def connect(self):
        if self.client is not None:
            return self.client
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._connect())
        # Shielded so one cancelled caller does not cancel the shared attempt
        return await asyncio.shield(self._pending)

    async def _connect(self):
        try:
            if not config.MONGODB_URI:
                raise DatabaseError("MONGODB_URI not configured")
            client = self.client_factory(config.MONGODB_URI)
            db = self._select_database(client)
            await init_beanie(database=db, document_models=DOCUMENT_MODELS)
        except Exception as e:
            logger.error(f"MongoDB connection error: {e}")
            self._pending = None
            raise
        self.client = client
        logger.info("Connected to MongoDB")
        return client

    def _select_database(self, client):
        if config.MONGODB_DB:
            return client[config.MONGODB_DB]
        try:
            return client.get_default_database()
        except ConfigurationError:
            # No default db in URI
            return client[DEFAULT_DB_NAME]

    async def ping(self):
        client = await self.connect()
        await client.admin.command("ping")

    def close(self):
        if self.client is not None:
            self.client.close()
            logger.info("MongoDB connection closed")
        self.client = None
        self._pending = None


database = Database()


async def ensure_db():
    """Router dependency: make sure the shared connection is up before handling a request."""
    try:
        await database.connect()
    except (PyMongoError, DatabaseError) as e:
        logger.error(f"Database connection failed in request: {e}")
        raise HTTPException(
            status_code=500,
            detail={"error": "Database connection failed", "details": str(e)}
        )
