"""
Mootie Backend - Speech Route Handlers
========================================

What:  Speech-to-text for recorded arguments, text-to-speech for replies.

Transcribe accepts two request shapes:
    multipart/form-data   field `audio` (or `file`), parsed by Starlette
    application/json      {"audio": "<base64 or data: URI>", "mime": "..."}

TTS returns `{audio: base64, mime}` in the envelope, or the raw bytes when
called with `?raw=true`.
"""

import base64
import json
import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError
from starlette.datastructures import UploadFile

from mootie.dependencies import get_speech_service
from mootie.exceptions import ValidationError
from mootie.schemas.chat import TranscribeData, TranscribeJSONRequest, TTSData, TTSRequest
from mootie.schemas.common import Envelope, ErrorResponse
from mootie.services.speech_service import SpeechService, decode_audio_payload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Speech"])

AUDIO_FIELDS = ("audio", "file")

ERROR_RESPONSES = {
    400: {"description": "Missing or invalid input", "model": ErrorResponse},
    500: {"description": "Server misconfigured", "model": ErrorResponse},
    502: {"description": "Provider error", "model": ErrorResponse},
    504: {"description": "Provider timeout", "model": ErrorResponse},
}


async def _read_multipart_audio(request: Request):
    form = await request.form()
    try:
        for field in AUDIO_FIELDS:
            upload = form.get(field)
            if isinstance(upload, UploadFile):
                content = await upload.read()
                return content, upload.content_type, upload.filename
    finally:
        await form.close()
    raise ValidationError(message="No audio field found.", field="audio")


async def _read_json_audio(request: Request):
    try:
        body = TranscribeJSONRequest.model_validate(json.loads(await request.body() or b"{}"))
    except (ValueError, PydanticValidationError):
        raise ValidationError(message="Missing audio data.", field="audio")
    content, content_type = decode_audio_payload(body.audio, body.mime)
    return content, content_type, None


@router.post(
    "/transcribe",
    response_model=Envelope[TranscribeData],
    responses=ERROR_RESPONSES,
    summary="Transcribe recorded audio to text",
)
async def transcribe(
    request: Request,
    service: SpeechService = Depends(get_speech_service),
) -> Envelope[TranscribeData]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        content, audio_type, filename = await _read_multipart_audio(request)
    elif content_type.startswith("application/json"):
        content, audio_type, filename = await _read_json_audio(request)
    else:
        raise ValidationError(
            message="Unsupported content-type; send multipart/form-data or JSON.",
            context={"content_type": content_type},
        )

    text = await service.transcribe(content, audio_type, filename)
    return Envelope(data=TranscribeData(text=text))


@router.post(
    "/tts",
    response_model=Envelope[TTSData],
    responses={
        **ERROR_RESPONSES,
        200: {"content": {"audio/mpeg": {}}, "description": "Base64 envelope, or raw audio with ?raw=true"},
    },
    summary="Convert text to speech",
)
async def tts(
    body: TTSRequest,
    raw: bool = Query(default=False, description="Return the audio bytes instead of JSON"),
    service: SpeechService = Depends(get_speech_service),
):
    audio, mime = await service.synthesize(body.text, body.voice, body.format)
    if raw:
        return Response(content=audio, media_type=mime)
    return Envelope(data=TTSData(audio=base64.b64encode(audio).decode("ascii"), mime=mime))
