"""Entry point for the LanShare hub service."""

import time
import uuid

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from hub import config
from hub.database import get_db_connection, init_database
from hub.exceptions import (
    BlobNotFoundError,
    FileRecordNotFoundError,
    InvalidAPIKeyError,
    InvalidCredentialsError,
    InvalidInputError,
    LanShareError,
    MetadataPersistError,
    MetadataStoreError,
    NoFilesFoundError,
    UpstreamStorageError,
    UserAlreadyExistsError,
)
from hub.peers.peer_registry import PeerRegistry
from hub.routes.auth_routes import router as auth_router
from hub.routes.file_routes import router as file_router
from hub.routes.peer_routes import router as peer_router
from hub.services.transfer_service import TransferService
from hub.storage import create_blob_store

logger = setup_logging('hub')

app = FastAPI(
    title="LanShare Hub",
    description="Shared file pool relayed to blob storage, with live peer presence",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(
        f"Request started: {request.method} {request.url.path} [request_id={request_id}]"
    )

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


@app.on_event("startup")
async def startup_event():
    """
    Initialize the database, the blob store, the transfer pipeline and the peer registry.
    """
    logger.info("Hub service starting up...")

    init_database()
    logger.info(f"Database initialized at {config.DATABASE_PATH}")

    blob_store = create_blob_store()
    app.state.blob_store = blob_store
    app.state.transfer_service = TransferService(blob_store)
    app.state.peer_registry = PeerRegistry()

    logger.info(f"Hub ready (blob backend: {config.BLOB_BACKEND})")


@app.on_event("shutdown")
async def shutdown_event():
    """
    Release the blob store and forget every peer.
    """
    logger.info("Hub service shutting down...")

    peer_registry = getattr(app.state, "peer_registry", None)
    if peer_registry is not None:
        await peer_registry.clear()

    blob_store = getattr(app.state, "blob_store", None)
    if blob_store is not None:
        await blob_store.close()
        logger.info("Blob store closed")


def _error_response(request: Request, exc: Exception, status_code: int, code: str) -> JSONResponse:
    request_id = getattr(request.state, 'request_id', 'unknown')
    if status_code >= 500:
        logger.error(f"{code}: {exc} [request_id={request_id}] path={request.url.path}", exc_info=True)
    else:
        logger.warning(f"{code}: {exc} [request_id={request_id}] path={request.url.path}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "code": code}
    )


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "INVALID_INPUT")


@app.exception_handler(FileRecordNotFoundError)
async def file_not_found_handler(request: Request, exc: FileRecordNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "FILE_NOT_FOUND")


@app.exception_handler(NoFilesFoundError)
async def no_files_found_handler(request: Request, exc: NoFilesFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "NO_FILES_FOUND")


@app.exception_handler(BlobNotFoundError)
async def blob_not_found_handler(request: Request, exc: BlobNotFoundError):
    return _error_response(request, exc, status.HTTP_404_NOT_FOUND, "BLOB_NOT_FOUND")


@app.exception_handler(UpstreamStorageError)
async def upstream_storage_handler(request: Request, exc: UpstreamStorageError):
    return _error_response(request, exc, status.HTTP_502_BAD_GATEWAY, "UPSTREAM_STORAGE_ERROR")


@app.exception_handler(MetadataPersistError)
async def metadata_persist_handler(request: Request, exc: MetadataPersistError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "METADATA_PERSIST_ERROR")


@app.exception_handler(MetadataStoreError)
async def metadata_store_handler(request: Request, exc: MetadataStoreError):
    return _error_response(request, exc, status.HTTP_503_SERVICE_UNAVAILABLE, "METADATA_STORE_ERROR")


@app.exception_handler(UserAlreadyExistsError)
async def user_already_exists_handler(request: Request, exc: UserAlreadyExistsError):
    return _error_response(request, exc, status.HTTP_400_BAD_REQUEST, "USER_ALREADY_EXISTS")


@app.exception_handler(InvalidCredentialsError)
async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, "INVALID_CREDENTIALS")


@app.exception_handler(InvalidAPIKeyError)
async def invalid_api_key_handler(request: Request, exc: InvalidAPIKeyError):
    return _error_response(request, exc, status.HTTP_401_UNAUTHORIZED, "INVALID_API_KEY")


@app.exception_handler(LanShareError)
async def lanshare_error_handler(request: Request, exc: LanShareError):
    return _error_response(request, exc, status.HTTP_500_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR")


app.include_router(auth_router)
app.include_router(file_router)
app.include_router(peer_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "LanShare Hub API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Liveness probe. Returns 200 if the service is up.
    """
    return {"status": "healthy", "service": "hub"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check: the metadata store answers a query.
    """
    try:
        with get_db_connection() as conn:
            conn.execute("SELECT 1")
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {e}"

    ready = db_status == "ok"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"ready": ready, "database": db_status, "blob_backend": config.BLOB_BACKEND}
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "hub.main:app",
        host=config.HUB_HOST,
        port=config.HUB_PORT,
    )


if __name__ == "__main__":
    main()
