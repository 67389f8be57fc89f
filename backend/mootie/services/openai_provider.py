"""
Mootie Backend - OpenAI REST Provider
=======================================

What:  LLMProvider implementation that talks to the OpenAI REST API with httpx.
How:   One httpx.AsyncClient per request (built by the FastAPI dependency and
       closed when the request ends). Every call carries the bearer token,
       the request's correlation id and an explicit timeout.
Who:   DocumentService, ChatService and SpeechService.

Resilience:
    - GET calls are idempotent and retried with tenacity (exponential backoff
      with jitter) on transport errors, timeouts, 429 and 5xx.
    - POST and DELETE calls are never retried; a repeated upload or delete
      could duplicate side effects.
    - httpx.TimeoutException → UpstreamTimeoutError (504)
    - other transport errors  → UpstreamError with status 0 (502)
    - non-2xx responses       → UpstreamError with the provider's status
    - unreadable 2xx bodies   → UpstreamError (detach/delete ignore their bodies)
"""

import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from mootie.config import Settings, settings as default_settings
from mootie.exceptions import UpstreamError, UpstreamTimeoutError
from mootie.middleware.request_id import current_request_id
from mootie.services.llm_base import LLMProvider

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Client-Request-Id"
LIST_PAGE_SIZE = 100


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, UpstreamError) and exc.is_retryable


def _path_id(value: str) -> str:
    """Quote an opaque provider id for use as a single path segment."""
    return quote(value, safe="")


def _provider_message(response: httpx.Response) -> str:
    """The provider's own error message when it sent one."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return f"AI provider returned HTTP {response.status_code}"


def _json_body(response: httpx.Response, required: bool = True) -> Dict[str, Any]:
    """
    Decode the JSON object of a 2xx response.

    An empty or non-object body raises UpstreamError when the caller needs
    the payload (`required`) and yields an empty dict otherwise.
    """
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        return payload
    if not required:
        return {}
    raise UpstreamError(
        message="The AI provider returned an unreadable response.",
        status_code=response.status_code,
        body=response.text,
        context={"path": response.request.url.path},
    )


class OpenAIProvider(LLMProvider):
    """
    OpenAI REST client scoped to one request.

    Args:
        client:   httpx.AsyncClient with `base_url` pointing at the API root.
        settings: Timeouts, retry policy, models and the beta-header switch.
    """

    def __init__(self, client: httpx.AsyncClient, settings: Optional[Settings] = None):
        self.client = client
        self.settings = settings or default_settings

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "OpenAIProvider":
        settings = settings or default_settings
        client = httpx.AsyncClient(
            base_url=settings.openai_base_url,
            timeout=settings.upstream_timeout,
        )
        return cls(client, settings)

    async def aclose(self) -> None:
        await self.client.aclose()

    # ── Transport ─────────────────────────────────────────────────────────

    def _headers(self, request_id: str, beta: bool) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self.settings.openai_api_key}",
            CORRELATION_HEADER: request_id,
        }
        if beta and self.settings.openai_assistants_beta:
            headers["OpenAI-Beta"] = "assistants=v2"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        timeout: Optional[float] = None,
        beta: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Send one request and translate failures into the upstream taxonomy.

        Never retries; see _get_json for the retried variant.
        """
        request_id = current_request_id()
        timeout = timeout or self.settings.upstream_timeout
        start_time = time.perf_counter()

        try:
            response = await self.client.request(
                method,
                path,
                headers=self._headers(request_id, beta),
                timeout=timeout,
                **kwargs,
            )
        except httpx.TimeoutException:
            logger.warning(
                "[%s] %s %s timed out after %.1fs", request_id, method, path, timeout
            )
            raise UpstreamTimeoutError(
                message=f"The AI provider did not respond within {timeout:g} seconds.",
                timeout=timeout,
                context={"request_id": request_id, "path": path},
            )
        except httpx.HTTPError as e:
            logger.warning("[%s] %s %s failed: %s", request_id, method, path, str(e))
            raise UpstreamError(
                message="Could not reach the AI provider.",
                status_code=0,
                context={"request_id": request_id, "path": path, "error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000

        if response.is_error:
            logger.warning(
                "[%s] %s %s → %d in %.0fms",
                request_id,
                method,
                path,
                response.status_code,
                duration_ms,
            )
            raise UpstreamError(
                message=_provider_message(response),
                status_code=response.status_code,
                body=response.text,
                context={"request_id": request_id, "path": path},
            )

        logger.info(
            "[%s] %s %s → %d in %.0fms",
            request_id,
            method,
            path,
            response.status_code,
            duration_ms,
        )
        return response

    async def _get_json(
        self,
        path: str,
        *,
        beta: bool = False,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """GET with retry on transient failures."""
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.settings.retry_max_attempts),
            wait=wait_exponential_jitter(
                initial=self.settings.retry_min_wait,
                max=self.settings.retry_max_wait,
                jitter=self.settings.retry_jitter,
            ),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                response = await self._request("GET", path, beta=beta, params=params)
        return _json_body(response)

    # ── Files & vector store ──────────────────────────────────────────────

    async def create_file(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        purpose: str = "assistants",
    ) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            "/files",
            timeout=self.settings.upload_timeout,
            files={"file": (filename, content, content_type)},
            data={"purpose": purpose},
        )
        return _json_body(response)

    async def attach_file(self, vector_store_id: str, file_id: str) -> Dict[str, Any]:
        response = await self._request(
            "POST",
            f"/vector_stores/{_path_id(vector_store_id)}/files",
            beta=True,
            json={"file_id": file_id},
        )
        return _json_body(response)

    async def detach_file(self, vector_store_id: str, file_id: str) -> Dict[str, Any]:
        response = await self._request(
            "DELETE",
            f"/vector_stores/{_path_id(vector_store_id)}/files/{_path_id(file_id)}",
            beta=True,
        )
        return _json_body(response, required=False)

    async def delete_file(self, file_id: str) -> Dict[str, Any]:
        response = await self._request("DELETE", f"/files/{_path_id(file_id)}")
        return _json_body(response, required=False)

    async def list_vector_store_files(self, vector_store_id: str) -> List[Dict[str, Any]]:
        path = f"/vector_stores/{_path_id(vector_store_id)}/files"
        entries: List[Dict[str, Any]] = []
        params: Dict[str, Any] = {"limit": LIST_PAGE_SIZE}

        while True:
            page = await self._get_json(path, beta=True, params=params)
            items = page.get("data") or []
            entries.extend(items)
            if not page.get("has_more") or not items:
                break
            params = {"limit": LIST_PAGE_SIZE, "after": page.get("last_id") or items[-1]["id"]}

        return entries

    async def retrieve_file(self, file_id: str) -> Dict[str, Any]:
        return await self._get_json(f"/files/{_path_id(file_id)}")

    # ── Conversation & speech ─────────────────────────────────────────────

    async def create_response(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", "/responses", json=payload)
        return _json_body(response)

    async def transcribe(self, filename: str, content: bytes, content_type: str) -> str:
        response = await self._request(
            "POST",
            "/audio/transcriptions",
            timeout=self.settings.upload_timeout,
            files={"file": (filename, content, content_type)},
            data={"model": self.settings.transcription_model},
        )
        payload = _json_body(response)
        text = payload.get("text")
        if not isinstance(text, str):
            raise UpstreamError(
                message="The transcription service returned no text.",
                status_code=response.status_code,
                body=response.text,
            )
        return text

    async def synthesize_speech(self, text: str, voice: str, fmt: str) -> bytes:
        response = await self._request(
            "POST",
            "/audio/speech",
            json={
                "model": self.settings.tts_model,
                "voice": voice,
                "input": text,
                "response_format": fmt,
            },
        )
        return response.content

    async def health_check(self) -> bool:
        try:
            await self._request("GET", "/models")
            return True
        except UpstreamError as e:
            logger.warning("Provider health check failed: %s", e.message)
            return False
