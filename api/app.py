"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application for the
Face Search backend.

The application provides:
- Upload grant endpoint (pre-signed S3 PUT URL)
- Face search endpoint (AWS Rekognition, matched images as pre-signed GET URLs)
- Liveness and health check endpoints

Usage:
    # From project root:
    uvicorn api.app:app --host 0.0.0.0 --port 3001 --reload

    # Or run directly:
    python -m api.app
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from api.routes.search import router as search_router
from api.schemas import HealthResponse
from core.config import get_api_config, get_aws_config, get_logging_config, get_server_config
from core.errors import FaceSearchError, UnexpectedError
from core.face_index import get_face_index


# Configure logging
logging.basicConfig(
    level=get_logging_config().get("level", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def check_face_collection() -> bool:
    """
    Verify connectivity to the recognition service and make sure the
    configured collection exists.

    Returns:
        True if the collection is available, False otherwise.
    """
    try:
        face_index = get_face_index()
        logger.info("Testing connection to AWS Rekognition...")
        collections = face_index.list_collections()
        logger.info("Successfully connected to AWS Rekognition.")
        logger.info(f"Existing collections: {collections}")
        face_index.ensure_collection()
        return True
    except FaceSearchError as e:
        logger.error(f"Face collection check failed: {e}")
        return False
    except Exception as e:
        logger.error(f"Face collection check failed: {e}", exc_info=True)
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs on startup:
    - Check the AWS Rekognition connection
    - Create the face collection if missing

    A failed check is logged and the server still starts; requests will
    report their own errors.
    """
    logger.info("=" * 60)
    logger.info("Starting Face Search API")
    logger.info("=" * 60)

    aws_config = get_aws_config()
    logger.info(f"Bucket: {aws_config.get('bucket_name')}")
    logger.info(f"Collection: {aws_config.get('collection_id')}")

    if aws_config.get("ensure_collection_on_startup", True):
        check_face_collection()

    logger.info("API startup complete!")
    logger.info("=" * 60)

    yield

    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title="Face Search API",
    description="""
Backend for the live face search demo.

## Flow
1. `POST /api/get-presigned-url` returns an upload URL and object key
2. The client PUTs the JPEG directly to S3
3. `POST /api/search-face` with `{"key": ...}` returns the matching faces
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS for frontend access
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_api_config().get("cors_allow_origins", ["*"]),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(search_router)


# ============================================================
# Error Handlers
# ============================================================

@app.exception_handler(FaceSearchError)
async def face_search_error_handler(request: Request, exc: FaceSearchError):
    """Render every FaceSearchError as {"message": ...} with its status."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.public_message},
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    """Anything not mapped above is an unexpected error."""
    logger.error(f"Unhandled error on {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"message": UnexpectedError.default_message},
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are client input errors (400, not 422)."""
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    message = "Invalid request."
    if request.url.path == "/api/search-face":
        message = "S3 image key is required."
    return JSONResponse(status_code=400, content={"message": message})


# ============================================================
# System Endpoints
# ============================================================

@app.get("/", response_class=PlainTextResponse, tags=["system"])
async def root():
    """Liveness check."""
    return "Face Search Backend is running!"


@app.get("/health", response_model=HealthResponse, tags=["system"])
async def health_check():
    """Report the external resources this instance is configured against."""
    aws_config = get_aws_config()
    return HealthResponse(
        status="healthy",
        bucket_name=aws_config.get("bucket_name", ""),
        collection_id=aws_config.get("collection_id", ""),
        region=aws_config.get("region"),
    )


if __name__ == "__main__":
    import uvicorn

    server_config = get_server_config()
    host = server_config["host"]
    port = server_config["port"]

    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(
        "api.app:app",
        host=host,
        port=port,
        reload=True,
        log_level="info",
    )
