import logging
from http import HTTPStatus

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from src.fleet_ledger.config import get_settings
from src.fleet_ledger.database.database import DatabaseManager

logger = logging.getLogger(__name__)

health_router = APIRouter(prefix="/health", tags=["Health Check"])


@health_router.get("")
async def health_check():
    """Liveness plus the last known state of the ledger store."""
    database = "connected" if DatabaseManager.is_connected else "disconnected"
    logger.debug("Health check: database %s", database)
    return JSONResponse(
        status_code=HTTPStatus.OK,
        content={
            "status": "ok",
            "service": get_settings().PROJECT_NAME,
            "database": database,
        },
    )
