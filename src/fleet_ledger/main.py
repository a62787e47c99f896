import logging
from contextlib import asynccontextmanager
from http import HTTPStatus

from sqlalchemy.exc import SQLAlchemyError

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from src.fleet_ledger.config import get_settings
from src.fleet_ledger.daily_ledger import models as daily_ledger_models  # noqa: F401
from src.fleet_ledger.daily_ledger.routes import daily_ledger_router
from src.fleet_ledger.database.database import Base, DatabaseManager, engine
from src.fleet_ledger.fleet_registry import models as registry_models  # noqa: F401
from src.fleet_ledger.fuel_events import models as fuel_event_models  # noqa: F401
from src.fleet_ledger.fuel_events.routes import fuel_events_router
from src.fleet_ledger.health_check.routes import health_router
from src.fleet_ledger.logging_config import setup_logging
from src.fleet_ledger.middleware.auth import validate_api_key
from src.fleet_ledger.trip_records import models as trip_record_models  # noqa: F401
from src.fleet_ledger.trip_records.routes import trip_records_router

setup_logging()
logger = logging.getLogger(__name__)
settings = get_settings()
PROJECT_NAME = settings.PROJECT_NAME
FastAPI_API_KEY_HEADER = settings.FASTAPI_API_KEY_HEADER
ALL_CORS_ORIGINS = settings.all_cors_origins


API_PREFIX = "/api"


async def init_db():
    """Create ledger and reference tables that do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=PROJECT_NAME,
        version="0.1.0",
        description="Per-truck, per-production-day fuel and trip ledger",
        routes=app.routes,
    )
    components = openapi_schema.setdefault("components", {})
    components["securitySchemes"] = {
        "APIKeyHeader": {
            "type": "apiKey",
            "in": "header",
            "name": FastAPI_API_KEY_HEADER,
        }
    }

    # Only the ledger API is key-protected; /health stays public
    for route, operations in openapi_schema["paths"].items():
        if not route.startswith(API_PREFIX):
            continue
        for operation in operations.values():
            operation.setdefault("security", []).append({"APIKeyHeader": []})

    app.openapi_schema = openapi_schema
    return app.openapi_schema


@asynccontextmanager
async def lifespan(app: FastAPI):  # type: ignore
    try:
        await DatabaseManager.connect()
        await init_db()
        logger.info("Startup complete")
        yield
        logger.info("Shutting down...")
    except Exception as e:
        logger.error(f"Startup failed: {str(e)}")
        raise
    finally:
        await DatabaseManager.disconnect()
        logger.info("Shutdown complete")


app = FastAPI(title=PROJECT_NAME, version="0.1.0", lifespan=lifespan)
app.openapi = custom_openapi  # type: ignore[method-assign]


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.error("Ledger store error on %s %s: %s", request.method, request.url.path, exc)
    DatabaseManager.is_connected = False
    return JSONResponse(
        status_code=HTTPStatus.SERVICE_UNAVAILABLE,
        content={"detail": "Ledger store unavailable. Please try again later."},
    )


# Set all CORS enabled origins
if ALL_CORS_ORIGINS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALL_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


# API Routes
api_router = APIRouter(prefix=API_PREFIX, dependencies=[Depends(validate_api_key)])
api_router.include_router(fuel_events_router)
api_router.include_router(trip_records_router)
api_router.include_router(daily_ledger_router)
app.include_router(api_router)
app.include_router(health_router)
