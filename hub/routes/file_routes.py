"""File transfer API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from hub.auth import get_current_user
from hub.dependencies import get_transfer_service
from hub.schemas.common import error_responses
from hub.schemas.files import FileRecordResponse, ListFilesResponse
from hub.services.transfer_service import TransferService, content_disposition, iter_upload_file

router = APIRouter(prefix="/files", tags=["Files"], responses=error_responses(401))


@router.post("/upload", response_model=FileRecordResponse, status_code=status.HTTP_201_CREATED)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    description: Optional[str] = Form(None),
    current_user: str = Depends(get_current_user),
    transfer_service: TransferService = Depends(get_transfer_service),
):
    """
    Upload a file as multipart/form-data.

    Parameters:
        - file: File to upload (required)
        - description: Free text used by search (optional)
        - Authorization header: Bearer <api_key> (required)

    Returns:
        - The stored file record

    Raises:
        - 400: No file in the request
        - 401: Invalid or missing API Key
        - 500: Blob stored but the record could not be saved
        - 502: Blob storage failed
    """
    record = await transfer_service.upload(
        source=iter_upload_file(file) if file is not None else None,
        original_name=file.filename if file is not None else None,
        mime_type=file.content_type if file is not None else None,
        description=description,
        owner_id=current_user,
    )
    return FileRecordResponse.from_record(record)


@router.put("/upload/{file_name}", response_model=FileRecordResponse, status_code=status.HTTP_201_CREATED)
async def upload_raw(
    file_name: str,
    request: Request,
    description: Optional[str] = Query(None),
    current_user: str = Depends(get_current_user),
    transfer_service: TransferService = Depends(get_transfer_service),
):
    """
    Upload a file sent as the raw request body.

    The body is relayed to blob storage as it arrives. The Content-Type
    header is recorded as the file's content type.

    Parameters:
        - file_name: Name to store the file under
        - description: Free text used by search (optional)
        - Authorization header: Bearer <api_key> (required)

    Raises:
        - 401: Invalid or missing API Key
        - 500: Blob stored but the record could not be saved
        - 502: Blob storage failed
    """
    record = await transfer_service.upload(
        source=request.stream(),
        original_name=file_name,
        mime_type=request.headers.get("content-type"),
        description=description,
        owner_id=current_user,
    )
    return FileRecordResponse.from_record(record)


@router.get("", response_model=ListFilesResponse)
async def list_files(
    current_user: str = Depends(get_current_user),
    transfer_service: TransferService = Depends(get_transfer_service),
):
    """
    List every file in the shared pool, oldest first.

    Raises:
        - 401: Invalid or missing API Key
        - 404: No files have been uploaded
        - 503: Metadata store unavailable
    """
    records = await transfer_service.list_files()
    return ListFilesResponse(files=[FileRecordResponse.from_record(r) for r in records])


@router.get("/search", response_model=ListFilesResponse)
async def search_files(
    query: Optional[str] = Query(None, description="Case-insensitive text to find in names or descriptions"),
    current_user: str = Depends(get_current_user),
    transfer_service: TransferService = Depends(get_transfer_service),
):
    """
    Search files by name or description.

    Raises:
        - 400: Missing or blank query
        - 401: Invalid or missing API Key
        - 404: Nothing matched
    """
    records = await transfer_service.search(query)
    return ListFilesResponse(files=[FileRecordResponse.from_record(r) for r in records])


@router.get("/download/{file_id}")
async def download_file(
    file_id: str,
    current_user: str = Depends(get_current_user),
    transfer_service: TransferService = Depends(get_transfer_service),
):
    """
    Download a file by file_id.

    Returns:
        - StreamingResponse relaying the blob, with the provider's content type
          and an attachment Content-Disposition carrying the original name

    Raises:
        - 401: Invalid or missing API Key
        - 404: Unknown file or missing blob
        - 502: Blob storage failed
    """
    handle = await transfer_service.download(file_id)

    return StreamingResponse(
        handle.stream,
        headers={
            "Content-Type": handle.content_type,
            "Content-Disposition": content_disposition(handle.file_name),
        },
        background=BackgroundTask(handle.stream.aclose),
    )


@router.get("/{file_id}", response_model=FileRecordResponse)
async def get_file(
    file_id: str,
    current_user: str = Depends(get_current_user),
    transfer_service: TransferService = Depends(get_transfer_service),
):
    """
    Fetch one file record.

    Raises:
        - 401: Invalid or missing API Key
        - 404: Unknown file
    """
    record = await transfer_service.get_file(file_id)
    return FileRecordResponse.from_record(record)
