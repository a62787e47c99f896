import logging
from typing import cast

from fastapi import Request

from src.fleet_ledger.config import get_settings
from src.fleet_ledger.middleware.exceptions import (
    InvalidAPIKeyError,
    MissingAPIKeyError,
    MissingViewerError,
)
from src.fleet_ledger.middleware.viewer import Viewer, ViewerRole

logger = logging.getLogger(__name__)
settings = get_settings()
FASTAPI_API_KEY_HEADER = settings.FASTAPI_API_KEY_HEADER
FASTAPI_API_KEY = settings.FASTAPI_API_KEY

AGENT_ID_HEADER = "X-Agent-Id"
AGENT_ROLE_HEADER = "X-Agent-Role"


async def validate_api_key(request: Request) -> str:
    """Validate the service API key for incoming requests."""
    api_key = request.headers.get(FASTAPI_API_KEY_HEADER)
    if not api_key:
        logger.warning("Missing API key in request")
        raise MissingAPIKeyError
    if api_key != FASTAPI_API_KEY:
        logger.warning(f"Invalid API key: {api_key}")
        raise InvalidAPIKeyError(api_key)
    logger.debug("API key validated successfully")
    return cast(str, api_key)


async def get_viewer(request: Request) -> Viewer:
    """Build the acting agent from request headers.

    The presentation layer has already authenticated the user; the ledger
    only needs who is acting and with which role, to stamp ownership on
    new rows and to filter what non-admin agents may see.
    """
    username = (request.headers.get(AGENT_ID_HEADER) or "").strip()
    if not username:
        logger.warning("Missing %s header", AGENT_ID_HEADER)
        raise MissingViewerError(AGENT_ID_HEADER)
    raw_role = (request.headers.get(AGENT_ROLE_HEADER) or "").strip().upper()
    try:
        role = ViewerRole(raw_role) if raw_role else ViewerRole.FUEL_AGENT
    except ValueError:
        logger.warning("Unknown agent role %s, treating as FUEL_AGENT", raw_role)
        role = ViewerRole.FUEL_AGENT
    return Viewer(username=username, role=role)
