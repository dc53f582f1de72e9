"""FastAPI application entry point."""

import logging
import sys
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from nhood_api.config import settings
from nhood_api.errors import DataUnavailableError, InvalidInputError
from nhood_api.repositories.sales import sales_dataset
from nhood_api.routes import neighborhoods_router, sales_router
from nhood_api.spatial.dataset import neighborhood_dataset

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    """Configure logging for the API process."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the datasets before serving so a bad file fails startup."""
    setup_logging()
    if settings.preload_datasets:
        neighborhood_dataset.get()
        sales_dataset.get()
        logger.info("Datasets loaded")
    yield


app = FastAPI(
    title="NYC Neighborhood API",
    description="Neighborhood lookup, adjacency and nearby property sales for NYC",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Neighborhood geometry responses are large
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.include_router(neighborhoods_router)
app.include_router(sales_router)


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "nhood-api"}


@app.get("/health")
async def health():
    """Health check endpoint, reporting which datasets are loaded."""
    return {
        "status": "healthy",
        "datasets": {
            "neighborhoods": neighborhood_dataset.loaded,
            "sales": sales_dataset.loaded,
        },
    }


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    """Return 400 Bad Request for unusable query arguments."""
    logger.info(f"Invalid input on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc), "error_type": "InvalidInputError"},
    )


@app.exception_handler(DataUnavailableError)
async def data_unavailable_handler(request: Request, exc: DataUnavailableError):
    """Return 503 Service Unavailable when a dataset cannot be loaded."""
    logger.error(f"Dataset unavailable on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=503,
        content={
            "detail": "Dataset unavailable",
            "error_type": "DataUnavailableError",
        },
    )


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle Pydantic validation errors that occur in business logic.

    Note: FastAPI automatically handles request validation errors via RequestValidationError.
    This catches validation errors raised while building response models.
    """
    logger.warning(f"Validation error on {request.method} {request.url}: {exc}")
    return JSONResponse(
        status_code=422,
        content={
            "detail": "Data validation failed",
            "errors": exc.errors(include_url=False, include_context=False),
            "error_type": "ValidationError",
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler that logs errors and returns proper JSON responses."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url}: {exc}\n"
        f"{traceback.format_exc()}"
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_type": type(exc).__name__,
        },
    )


def run() -> None:
    """Entry point for ``nhood-api``."""
    import uvicorn

    uvicorn.run("nhood_api.main:app", host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
