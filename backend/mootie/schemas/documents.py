"""
Mootie Backend - Document Lifecycle Schemas
=============================================

What:  State machines and result models of the document endpoints.

Upload:
    PENDING → FILE_CREATED → ATTACHED               (success)
    PENDING → FILE_CREATED → ATTACH_FAILED          (partial; file orphaned)
    PENDING → CREATE_FAILED                          (full failure)

Delete:
    PENDING → DETACHED → FILE_DELETED               (success)
    PENDING → DETACHED → FILE_DELETE_FAILED         (partial; file remains)
    PENDING → DETACH_FAILED                          (full failure)

A provider 404 on either delete step counts as that step being done, which
makes delete idempotent.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class UploadState(str, Enum):
    PENDING = "pending"
    FILE_CREATED = "file_created"
    ATTACHED = "attached"
    ATTACH_FAILED = "attach_failed"
    CREATE_FAILED = "create_failed"


class DeleteState(str, Enum):
    PENDING = "pending"
    DETACHED = "detached"
    FILE_DELETED = "file_deleted"
    FILE_DELETE_FAILED = "file_delete_failed"
    DETACH_FAILED = "detach_failed"


class FileInfo(BaseModel):
    """A document attached to the vector store, as shown in the file list."""

    id: str = Field(description="Provider file id")
    filename: str = Field(description="Original filename")
    bytes: Optional[int] = Field(default=None, description="File size in bytes")
    created_at: Optional[int] = Field(default=None, description="Unix timestamp of creation")
    status: Optional[str] = Field(
        default=None,
        description="Indexing status: in_progress, completed, failed, cancelled",
    )


class FileListData(BaseModel):
    files: List[FileInfo]
    # Older client views read the same list under this key.
    vectors: List[FileInfo]


class UploadResult(BaseModel):
    file_id: str
    filename: str
    bytes: Optional[int] = None
    vector_status: Optional[str] = Field(default=None, description="Status reported by the attach call")
    state: UploadState = UploadState.ATTACHED


class VerifyResult(BaseModel):
    """Outcome of polling the file list after a delete."""

    verified: bool
    attempts: int
    elapsed_ms: float


class DeleteResult(BaseModel):
    file_id: str = Field(serialization_alias="fileId")
    deleted: bool = True
    detached: bool = Field(description="False when the vector store entry was already gone")
    file_deleted: bool = Field(description="False when the file resource was already gone")
    state: DeleteState = DeleteState.FILE_DELETED
    verified: Optional[bool] = Field(default=None, description="Set when verification was requested")
    pending: Optional[bool] = Field(
        default=None,
        description="True when verification ran out of time before the list caught up",
    )
