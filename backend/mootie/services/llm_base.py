"""
Mootie Backend - Abstract LLM Provider Interface
==================================================

What:  The contract the services need from an LLM provider: file storage,
       vector-store attachment, responses, speech-to-text and text-to-speech.
How:   OpenAIProvider implements it over the OpenAI REST API. Services only
       see this interface, so tests hand them a mock.

Error contract for every method:
    UpstreamError         provider answered non-2xx (status kept, body truncated)
    UpstreamTimeoutError  the call exceeded its time budget
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class LLMProvider(ABC):
    """Abstract interface over the provider's REST resources."""

    # ── Files & vector store ──────────────────────────────────────────────

    @abstractmethod
    async def create_file(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        purpose: str = "assistants",
    ) -> Dict[str, Any]:
        """Upload a file resource; returns the provider's file object (with `id`)."""
        ...

    @abstractmethod
    async def attach_file(self, vector_store_id: str, file_id: str) -> Dict[str, Any]:
        """Attach an uploaded file to the vector store; returns the entry (with `status`)."""
        ...

    @abstractmethod
    async def detach_file(self, vector_store_id: str, file_id: str) -> Dict[str, Any]:
        """Remove a file from the vector store. Does NOT delete the file resource."""
        ...

    @abstractmethod
    async def delete_file(self, file_id: str) -> Dict[str, Any]:
        """Delete the file resource itself."""
        ...

    @abstractmethod
    async def list_vector_store_files(self, vector_store_id: str) -> List[Dict[str, Any]]:
        """All entries currently attached to the vector store, across pages."""
        ...

    @abstractmethod
    async def retrieve_file(self, file_id: str) -> Dict[str, Any]:
        """File metadata: filename, bytes, created_at."""
        ...

    # ── Conversation & speech ─────────────────────────────────────────────

    @abstractmethod
    async def create_response(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Run one Responses API turn; returns the raw response object."""
        ...

    @abstractmethod
    async def transcribe(self, filename: str, content: bytes, content_type: str) -> str:
        """Speech-to-text; returns the transcript."""
        ...

    @abstractmethod
    async def synthesize_speech(self, text: str, voice: str, fmt: str) -> bytes:
        """Text-to-speech; returns encoded audio bytes."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True when the provider is reachable with our credentials. Never raises."""
        ...
