import asyncio
import logging

from sqlalchemy import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.sql import text

from src.fleet_ledger.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()


class Base(DeclarativeBase):
    """Declarative base shared by ledger and reference tables"""


DATABASE_URL = URL.create(
    "postgresql+asyncpg",
    username=settings.POSTGRES_USER,
    password=settings.POSTGRES_PASSWORD,
    host=settings.POSTGRES_HOST,
    port=settings.POSTGRES_PORT,
    database=settings.POSTGRES_DB,
)

# One engine per process; sessions are opened per request
engine = create_async_engine(
    DATABASE_URL, echo=settings.DEBUG_MODE, pool_pre_ping=True
)
SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class DatabaseManager:
    """Tracks whether the ledger store is reachable.

    Routes never talk to the engine directly: they ask for a session through
    ``verify_database``, which reconnects first when the last check failed.
    """

    is_connected: bool = False
    retry_interval: int = 5  # seconds

    @classmethod
    async def ping(cls) -> bool:
        async with engine.connect() as conn:
            await conn.scalar(text("SELECT 1"))
        return True

    @classmethod
    async def connect(cls):
        if cls.is_connected:
            logger.info("Already connected to the database")
            return
        try:
            await cls.ping()
        except SQLAlchemyError as e:
            cls.is_connected = False
            logger.error("Database connection failed: %s", str(e))
            raise
        cls.is_connected = True
        logger.info(
            "Connected to ledger store %s:%s/%s",
            settings.POSTGRES_HOST,
            settings.POSTGRES_PORT,
            settings.POSTGRES_DB,
        )

    @classmethod
    async def disconnect(cls):
        if not cls.is_connected:
            return
        await engine.dispose()
        cls.is_connected = False
        logger.info("Database connection closed")

    @classmethod
    async def reconnect(cls, max_attempts: int = 1):
        for attempt in range(1, max_attempts + 1):
            try:
                await cls.connect()
                return
            except SQLAlchemyError as e:
                logger.warning(
                    "Reconnection attempt %d/%d failed: %s",
                    attempt,
                    max_attempts,
                    str(e),
                )
                if attempt < max_attempts:
                    await asyncio.sleep(cls.retry_interval)
        raise SQLAlchemyError("Max reconnection attempts exceeded")

    @classmethod
    async def get_client(cls) -> AsyncSession:
        if not cls.is_connected:
            logger.error("Database is not connected")
            raise RuntimeError("Database is not connected")
        return SessionLocal()


db = DatabaseManager()
