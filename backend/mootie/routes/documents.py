"""
Mootie Backend - Document Route Handlers
==========================================

What:  Upload, delete and list the case documents behind file search.
How:   Extracts the upload / query parameters, delegates to DocumentService
       and wraps the result in the success envelope.
Who:   The document panel of the browser client.

Endpoints:
    POST   /upload-document           multipart, field `document` or `file`
    DELETE /delete-file?fileId=<id>   optional `verify=true` polls the list
    GET    /list-files                files attached to the vector store
    GET    /vector-store              same list, older client path
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from mootie.dependencies import get_document_service
from mootie.exceptions import ValidationError
from mootie.schemas.common import Envelope, ErrorResponse
from mootie.schemas.documents import DeleteResult, FileListData, UploadResult
from mootie.services.document_service import DocumentService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Documents"])

ERROR_RESPONSES = {
    400: {"description": "Invalid input", "model": ErrorResponse},
    500: {"description": "Server misconfigured", "model": ErrorResponse},
    502: {"description": "Provider error", "model": ErrorResponse},
    504: {"description": "Provider timeout", "model": ErrorResponse},
}


@router.post(
    "/upload-document",
    response_model=Envelope[UploadResult],
    response_model_exclude_none=True,
    responses={
        **ERROR_RESPONSES,
        207: {"description": "File created but not attached to the vector store", "model": ErrorResponse},
    },
    summary="Upload a case document and index it for file search",
)
async def upload_document(
    document: Optional[UploadFile] = File(default=None, description="Document to index"),
    file: Optional[UploadFile] = File(default=None, description="Alternative field name"),
    service: DocumentService = Depends(get_document_service),
) -> Envelope[UploadResult]:
    upload = document or file
    if upload is None:
        raise ValidationError(message="No file uploaded.", field="document")

    try:
        content = await upload.read()
        logger.info(
            "Received document upload: filename=%s, size=%d bytes",
            upload.filename or "unknown",
            len(content),
        )
        result = await service.upload(upload.filename, content, upload.content_type)
    finally:
        await upload.close()

    return Envelope(data=result)


@router.delete(
    "/delete-file",
    response_model=Envelope[DeleteResult],
    response_model_exclude_none=True,
    responses={
        **ERROR_RESPONSES,
        207: {"description": "Detached but the file resource remains", "model": ErrorResponse},
    },
    summary="Remove a document from the vector store and delete the file",
)
async def delete_file(
    file_id: Optional[str] = Query(default=None, alias="fileId"),
    verify: bool = Query(
        default=False,
        description="Poll the file list until the id disappears (bounded by VERIFY_DELETE_TIMEOUT)",
    ),
    service: DocumentService = Depends(get_document_service),
) -> Envelope[DeleteResult]:
    if not file_id or not file_id.strip():
        raise ValidationError(message="Missing fileId.", field="fileId")

    result = await service.delete(file_id)
    if verify:
        check = await service.verify_deleted(result.file_id)
        result.verified = check.verified
        result.pending = not check.verified

    return Envelope(data=result)


@router.get(
    "/list-files",
    response_model=Envelope[FileListData],
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="List documents attached to the vector store",
)
@router.get(
    "/vector-store",
    response_model=Envelope[FileListData],
    response_model_exclude_none=True,
    responses=ERROR_RESPONSES,
    summary="List documents attached to the vector store (older client path)",
)
async def list_files(
    service: DocumentService = Depends(get_document_service),
) -> Envelope[FileListData]:
    files = await service.list()
    return Envelope(data=FileListData(files=files, vectors=files))
