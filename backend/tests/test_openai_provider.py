"""
Mootie Backend - OpenAI Provider Unit Tests
=============================================

What:  Tests the REST client against a scripted httpx.MockTransport.
How:   Each test installs a handler that records requests and returns canned
       responses, so the wire format (paths, headers, bodies) is checked
       without network access.

What we test:
    ✅ Bearer token, correlation id and OpenAI-Beta header placement
    ✅ Vector-store listing follows has_more/last_id pagination
    ✅ GETs retried on 5xx; POSTs never retried
    ✅ Provider 404 surfaces as UpstreamError.is_not_found
    ✅ Timeouts become UpstreamTimeoutError
    ✅ Empty or non-JSON 2xx bodies become UpstreamError (detach/delete excepted)
    ✅ Transcription and speech request formats
"""

import json

import httpx
import pytest

from mootie.exceptions import UpstreamError, UpstreamTimeoutError
from mootie.middleware.request_id import request_id_var
from mootie.services.openai_provider import CORRELATION_HEADER, OpenAIProvider


def make_provider(handler, settings):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url="https://api.test/v1",
    )
    return OpenAIProvider(client, settings)


class Recorder:
    """Handler that replays queued responses and keeps every request."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


# ══════════════════════════════════════════════════════════════════════════
# Headers
# ══════════════════════════════════════════════════════════════════════════


class TestHeaders:
    @pytest.mark.asyncio
    async def test_auth_and_correlation_headers(self, test_settings):
        recorder = Recorder(httpx.Response(200, json={"id": "resp_1", "output": []}))
        provider = make_provider(recorder, test_settings)

        token = request_id_var.set("abcd1234")
        try:
            await provider.create_response({"model": "gpt-4.1", "input": "hi"})
        finally:
            request_id_var.reset(token)

        request = recorder.requests[0]
        assert request.url.path == "/v1/responses"
        assert request.headers["Authorization"] == "Bearer test-key-not-real"
        assert request.headers[CORRELATION_HEADER] == "abcd1234"
        assert "OpenAI-Beta" not in request.headers
        assert json.loads(request.content) == {"model": "gpt-4.1", "input": "hi"}

    @pytest.mark.asyncio
    async def test_vector_store_calls_carry_beta_header(self, test_settings):
        recorder = Recorder(httpx.Response(200, json={"id": "file_1", "status": "in_progress"}))
        provider = make_provider(recorder, test_settings)

        await provider.attach_file("vs_test", "file_1")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/v1/vector_stores/vs_test/files"
        assert request.headers["OpenAI-Beta"] == "assistants=v2"
        assert json.loads(request.content) == {"file_id": "file_1"}

    @pytest.mark.asyncio
    async def test_beta_header_can_be_disabled(self, test_settings):
        settings = test_settings.model_copy(update={"openai_assistants_beta": False})
        recorder = Recorder(httpx.Response(200, json={"deleted": True}))
        provider = make_provider(recorder, settings)

        await provider.detach_file("vs_test", "file_1")

        assert "OpenAI-Beta" not in recorder.requests[0].headers


# ══════════════════════════════════════════════════════════════════════════
# Files & vector store
# ══════════════════════════════════════════════════════════════════════════


class TestFiles:
    @pytest.mark.asyncio
    async def test_create_file_sends_multipart(self, test_settings, sample_pdf_bytes):
        recorder = Recorder(httpx.Response(200, json={"id": "file_1", "filename": "brief.pdf"}))
        provider = make_provider(recorder, test_settings)

        result = await provider.create_file("brief.pdf", sample_pdf_bytes, "application/pdf")

        assert result["id"] == "file_1"
        request = recorder.requests[0]
        assert request.url.path == "/v1/files"
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="purpose"' in request.content
        assert b"assistants" in request.content
        assert b'filename="brief.pdf"' in request.content

    @pytest.mark.asyncio
    async def test_list_follows_pagination(self, test_settings):
        recorder = Recorder(
            httpx.Response(
                200,
                json={"data": [{"id": "file_1"}, {"id": "file_2"}], "has_more": True, "last_id": "file_2"},
            ),
            httpx.Response(200, json={"data": [{"id": "file_3"}], "has_more": False}),
        )
        provider = make_provider(recorder, test_settings)

        entries = await provider.list_vector_store_files("vs_test")

        assert [e["id"] for e in entries] == ["file_1", "file_2", "file_3"]
        assert "after" not in recorder.requests[0].url.params
        assert recorder.requests[1].url.params["after"] == "file_2"

    @pytest.mark.asyncio
    async def test_ids_are_quoted_as_one_path_segment(self, test_settings):
        recorder = Recorder(httpx.Response(200, json={"deleted": True}))
        provider = make_provider(recorder, test_settings)

        await provider.delete_file("file/x")

        assert recorder.requests[0].url.raw_path == b"/v1/files/file%2Fx"


# ══════════════════════════════════════════════════════════════════════════
# Failure translation & retry
# ══════════════════════════════════════════════════════════════════════════


class TestFailures:
    @pytest.mark.asyncio
    async def test_get_retried_after_server_error(self, test_settings):
        recorder = Recorder(
            httpx.Response(503, json={"error": {"message": "overloaded"}}),
            httpx.Response(200, json={"id": "file_1", "filename": "brief.pdf"}),
        )
        provider = make_provider(recorder, test_settings)

        result = await provider.retrieve_file("file_1")

        assert result["filename"] == "brief.pdf"
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_get_gives_up_after_max_attempts(self, test_settings):
        recorder = Recorder(*[httpx.Response(500, text="boom") for _ in range(3)])
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError) as exc_info:
            await provider.retrieve_file("file_1")

        assert exc_info.value.status_code == 500
        assert len(recorder.requests) == test_settings.retry_max_attempts

    @pytest.mark.asyncio
    async def test_get_not_retried_on_client_error(self, test_settings):
        recorder = Recorder(httpx.Response(404, json={"error": {"message": "No such File"}}))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError) as exc_info:
            await provider.retrieve_file("file_1")

        assert exc_info.value.is_not_found
        assert exc_info.value.message == "No such File"
        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_post_never_retried(self, test_settings):
        recorder = Recorder(httpx.Response(500, text="boom"), httpx.Response(200, json={}))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError):
            await provider.create_file("a.pdf", b"%PDF", "application/pdf")

        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_delete_404_is_not_found(self, test_settings):
        recorder = Recorder(httpx.Response(404, json={"error": {"message": "No such File object"}}))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError) as exc_info:
            await provider.delete_file("file_gone")

        assert exc_info.value.is_not_found
        assert exc_info.value.context["upstream_status"] == 404

    @pytest.mark.asyncio
    async def test_timeout_becomes_upstream_timeout(self, test_settings):
        recorder = Recorder(httpx.ReadTimeout("read timed out"))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            await provider.create_response({"model": "gpt-4.1", "input": "hi"})

        assert exc_info.value.timeout == test_settings.upstream_timeout

    @pytest.mark.asyncio
    async def test_connection_error_has_status_zero(self, test_settings):
        recorder = Recorder(httpx.ConnectError("refused"))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError) as exc_info:
            await provider.create_response({"input": "hi"})

        assert exc_info.value.status_code == 0
        assert exc_info.value.is_retryable

    @pytest.mark.asyncio
    async def test_error_body_truncated(self, test_settings):
        recorder = Recorder(httpx.Response(400, text="x" * 1000))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError) as exc_info:
            await provider.create_response({"input": "hi"})

        assert len(exc_info.value.body) == 200
        assert exc_info.value.message == "AI provider returned HTTP 400"

    @pytest.mark.asyncio
    async def test_empty_success_body_is_upstream_error(self, test_settings):
        recorder = Recorder(httpx.Response(200, content=b""))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError) as exc_info:
            await provider.attach_file("vs_test", "file_1")

        assert exc_info.value.status_code == 200
        assert not exc_info.value.is_retryable

    @pytest.mark.asyncio
    async def test_non_json_get_not_retried(self, test_settings):
        recorder = Recorder(
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json={"id": "file_1"}),
        )
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError):
            await provider.retrieve_file("file_1")

        assert len(recorder.requests) == 1

    @pytest.mark.asyncio
    async def test_delete_calls_ignore_empty_bodies(self, test_settings):
        recorder = Recorder(httpx.Response(200, content=b""), httpx.Response(204))
        provider = make_provider(recorder, test_settings)

        assert await provider.detach_file("vs_test", "file_1") == {}
        assert await provider.delete_file("file_1") == {}


# ══════════════════════════════════════════════════════════════════════════
# Speech
# ══════════════════════════════════════════════════════════════════════════


class TestSpeech:
    @pytest.mark.asyncio
    async def test_transcribe_returns_text(self, test_settings, sample_audio_bytes):
        recorder = Recorder(httpx.Response(200, json={"text": "May it please the court."}))
        provider = make_provider(recorder, test_settings)

        text = await provider.transcribe("audio.webm", sample_audio_bytes, "audio/webm")

        assert text == "May it please the court."
        request = recorder.requests[0]
        assert request.url.path == "/v1/audio/transcriptions"
        assert b"whisper-1" in request.content

    @pytest.mark.asyncio
    async def test_transcribe_without_text_is_upstream_error(self, test_settings, sample_audio_bytes):
        recorder = Recorder(httpx.Response(200, json={"unexpected": True}))
        provider = make_provider(recorder, test_settings)

        with pytest.raises(UpstreamError):
            await provider.transcribe("audio.webm", sample_audio_bytes, "audio/webm")

    @pytest.mark.asyncio
    async def test_synthesize_speech_returns_bytes(self, test_settings):
        recorder = Recorder(httpx.Response(200, content=b"ID3audio"))
        provider = make_provider(recorder, test_settings)

        audio = await provider.synthesize_speech("Good morning.", "alloy", "mp3")

        assert audio == b"ID3audio"
        body = json.loads(recorder.requests[0].content)
        assert body == {
            "model": "gpt-4o-mini-tts",
            "voice": "alloy",
            "input": "Good morning.",
            "response_format": "mp3",
        }

    @pytest.mark.asyncio
    async def test_health_check(self, test_settings):
        provider = make_provider(Recorder(httpx.Response(200, json={"data": []})), test_settings)
        assert await provider.health_check() is True

        provider = make_provider(Recorder(httpx.Response(401, json={})), test_settings)
        assert await provider.health_check() is False
