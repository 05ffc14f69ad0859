"""FastAPI application entry point."""

import logging
import sys

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tasktimer.api.router import api_router
from tasktimer.core.settings import get_settings
from tasktimer.db.init_db import init_db
from tasktimer.engine.store import PersistenceError

# Configure root logging to show all application logs
logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s:     %(name)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

# Configure logging levels for different modules
logging.getLogger("sqlalchemy.engine").setLevel(logging.ERROR)
logging.getLogger("sqlalchemy.pool").setLevel(logging.ERROR)
logging.getLogger("sqlalchemy.dialects").setLevel(logging.ERROR)

# Per-tick engine chatter stays at INFO; transitions are worth seeing
logging.getLogger("tasktimer.engine").setLevel(logging.INFO)
logging.getLogger("tasktimer.api").setLevel(logging.INFO)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation failures as 400 instead of FastAPI's 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


async def persistence_exception_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """A change that could not be stored is reported as unavailable, not as success."""
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Could not save changes, please retry"},
    )


def create_application() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    settings = get_settings()

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Mobile clients call from arbitrary origins
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(PersistenceError, persistence_exception_handler)
    application.include_router(api_router, prefix=settings.api_prefix)

    @application.on_event("startup")
    async def startup_event():
        """Initialize database on startup."""
        init_db()

    return application


app = create_application()
