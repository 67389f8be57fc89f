"""
Mootie Backend - Document Lifecycle Service
=============================================

What:  Upload, delete, list and delete-verification for case documents kept
       in the provider's file store and vector store.
How:   Drives each two-step operation through its state machine (see
       mootie.schemas.documents) and reports the terminal state.
Who:   The document routes; one instance per request.

Two-step contracts:
    upload = create file resource  → attach it to the vector store
    delete = detach from the store → delete the file resource

    A failure of the first step is a full failure and re-raises the upstream
    error. A failure of the second step raises PartialFailureError naming the
    file that was left behind. Nothing is rolled back automatically.

Listing reflects the provider's current state with no caching; right after
an upload or delete the vector store may lag, which verify_deleted() covers
by polling until the id disappears or the time budget is spent.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from mootie.config import Settings, settings as default_settings
from mootie.exceptions import PartialFailureError, UpstreamError, ValidationError
from mootie.schemas.documents import (
    DeleteResult,
    DeleteState,
    FileInfo,
    UploadResult,
    UploadState,
    VerifyResult,
)
from mootie.services.llm_base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "upload.pdf"
UNNAMED_FILE = "Unnamed file"


class DocumentService:
    """
    Document lifecycle adapter over an LLMProvider.

    Args:
        provider: Provider client for this request.
        settings: Vector store id, size limits and verification budget.
    """

    def __init__(self, provider: LLMProvider, settings: Optional[Settings] = None):
        self.provider = provider
        self.settings = settings or default_settings

    @property
    def vector_store_id(self) -> str:
        return self.settings.require_vector_store()

    # ── Upload ────────────────────────────────────────────────────────────

    def _validate_upload(self, filename: Optional[str], content: bytes) -> str:
        if not content:
            raise ValidationError(message="The uploaded document is empty.", field="document")
        if len(content) > self.settings.max_file_size:
            max_mb = self.settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"Document exceeds the maximum size of {max_mb:.0f}MB.",
                field="document",
                context={"max_size_mb": max_mb, "actual_size": len(content)},
            )
        return (filename or "").strip() or DEFAULT_FILENAME

    async def upload(
        self,
        filename: Optional[str],
        content: bytes,
        content_type: Optional[str] = None,
    ) -> UploadResult:
        """
        Create the file resource, then attach it to the vector store.

        Returns:
            UploadResult in state ATTACHED.

        Raises:
            ValidationError:      empty or oversized document
            UpstreamError:        file creation failed (CREATE_FAILED)
            PartialFailureError:  file created but attach failed (ATTACH_FAILED)
        """
        vector_store_id = self.vector_store_id
        name = self._validate_upload(filename, content)
        state = UploadState.PENDING

        try:
            created = await self.provider.create_file(
                filename=name,
                content=content,
                content_type=content_type or "application/octet-stream",
            )
            if not created.get("id"):
                raise UpstreamError(message="The AI provider returned no file id.", status_code=200)
        except UpstreamError as e:
            state = UploadState.CREATE_FAILED
            logger.error("Upload of %s failed (%s): %s", name, state.value, e.message)
            raise

        file_id = created["id"]
        state = UploadState.FILE_CREATED
        logger.info("Upload of %s: %s as %s", name, state.value, file_id)

        try:
            entry = await self.provider.attach_file(vector_store_id, file_id)
        except UpstreamError as e:
            state = UploadState.ATTACH_FAILED
            logger.error(
                "Upload of %s: %s, file %s is orphaned: %s",
                name,
                state.value,
                file_id,
                e.message,
            )
            raise PartialFailureError(
                operation="upload",
                state=state.value,
                failed_step="attach",
                resource_id=file_id,
                cause=e,
                context={"filename": name},
            )

        state = UploadState.ATTACHED
        logger.info("Upload of %s: %s to vector store", file_id, state.value)
        return UploadResult(
            file_id=file_id,
            filename=created.get("filename") or name,
            bytes=created.get("bytes", len(content)),
            vector_status=entry.get("status"),
            state=state,
        )

    # ── Delete ────────────────────────────────────────────────────────────

    async def delete(self, file_id: str) -> DeleteResult:
        """
        Detach the file from the vector store, then delete the file resource.

        A provider 404 on either step means the step is already done, so
        deleting the same id twice succeeds both times.

        Raises:
            ValidationError:      blank file id
            UpstreamError:        detach failed (DETACH_FAILED)
            PartialFailureError:  detached but file delete failed (FILE_DELETE_FAILED)
        """
        file_id = (file_id or "").strip()
        if not file_id:
            raise ValidationError(message="Missing fileId.", field="fileId")
        vector_store_id = self.vector_store_id

        detached = True
        try:
            await self.provider.detach_file(vector_store_id, file_id)
        except UpstreamError as e:
            if not e.is_not_found:
                logger.error(
                    "Delete of %s failed (%s): %s",
                    file_id,
                    DeleteState.DETACH_FAILED.value,
                    e.message,
                )
                raise
            detached = False
            logger.info("Delete of %s: not in vector store, continuing", file_id)

        file_deleted = True
        try:
            await self.provider.delete_file(file_id)
        except UpstreamError as e:
            if not e.is_not_found:
                state = DeleteState.FILE_DELETE_FAILED
                logger.error(
                    "Delete of %s: %s, file resource remains: %s",
                    file_id,
                    state.value,
                    e.message,
                )
                raise PartialFailureError(
                    operation="delete",
                    state=state.value,
                    failed_step="delete_file",
                    resource_id=file_id,
                    cause=e,
                )
            file_deleted = False
            logger.info("Delete of %s: file resource already gone", file_id)

        logger.info(
            "Delete of %s: %s (detached=%s, file_deleted=%s)",
            file_id,
            DeleteState.FILE_DELETED.value,
            detached,
            file_deleted,
        )
        return DeleteResult(
            file_id=file_id,
            detached=detached,
            file_deleted=file_deleted,
            state=DeleteState.FILE_DELETED,
        )

    # ── List ──────────────────────────────────────────────────────────────

    async def _describe(self, entry: Dict[str, Any]) -> FileInfo:
        """Fill in filename/size/creation time missing from a vector store entry."""
        file_id = entry["id"]
        filename = entry.get("filename") or entry.get("name")
        size = entry.get("bytes", entry.get("size"))
        created_at = entry.get("created_at")

        if not filename or size is None:
            try:
                meta = await self.provider.retrieve_file(file_id)
            except UpstreamError as e:
                logger.warning("No metadata for %s: %s", file_id, e.message)
                meta = {}
            filename = filename or meta.get("filename") or UNNAMED_FILE
            size = size if size is not None else meta.get("bytes")
            created_at = created_at or meta.get("created_at")

        return FileInfo(
            id=file_id,
            filename=filename,
            bytes=size,
            created_at=created_at,
            status=entry.get("status"),
        )

    async def list(self) -> List[FileInfo]:
        """Files currently attached to the vector store, as the provider reports them."""
        entries = await self.provider.list_vector_store_files(self.vector_store_id)
        return list(await asyncio.gather(*(self._describe(e) for e in entries)))

    async def verify_deleted(
        self,
        file_id: str,
        timeout: Optional[float] = None,
        poll_interval: Optional[float] = None,
    ) -> VerifyResult:
        """
        Poll list() until `file_id` is gone or `timeout` seconds have passed.

        `timeout` bounds the whole call, including a list() still in flight
        when it runs out. Returns verified=False instead of raising, both on
        timeout and when the provider fails to list: the delete itself has
        already completed by the time this runs.
        """
        timeout = self.settings.verify_delete_timeout if timeout is None else timeout
        poll_interval = (
            self.settings.verify_delete_poll_interval if poll_interval is None else poll_interval
        )
        start = time.monotonic()
        deadline = start + timeout
        attempts = 0
        verified = False

        while True:
            attempts += 1
            remaining = deadline - time.monotonic()
            try:
                files = await asyncio.wait_for(self.list(), timeout=max(remaining, 0))
            except asyncio.TimeoutError:
                logger.warning("Delete of %s: file list did not answer within the budget", file_id)
                break
            except UpstreamError as e:
                logger.warning("Delete of %s: could not list files to verify: %s", file_id, e.message)
                break

            if all(f.id != file_id for f in files):
                verified = True
                break
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            await asyncio.sleep(min(poll_interval, remaining))

        elapsed_ms = round((time.monotonic() - start) * 1000, 1)
        if verified:
            logger.info("Delete of %s verified after %d checks", file_id, attempts)
        else:
            logger.warning(
                "Delete of %s still pending after %.0fms (%d checks)",
                file_id,
                elapsed_ms,
                attempts,
            )
        return VerifyResult(verified=verified, attempts=attempts, elapsed_ms=elapsed_ms)
