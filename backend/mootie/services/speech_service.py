"""
Mootie Backend - Speech Service
=================================

What:  Speech-to-text for recorded arguments and text-to-speech for replies.
How:   Validates the audio or text, then forwards it to the provider.
Who:   POST /transcribe and POST /tts.

The browser records WebM; JSON clients send base64 or a data: URI.
"""

import base64
import binascii
import logging
from typing import Optional, Tuple

from mootie.config import AUDIO_FORMATS, Settings, settings as default_settings
from mootie.exceptions import ValidationError
from mootie.services.llm_base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_AUDIO_TYPE = "audio/webm"

_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/flac": "flac",
}


def decode_audio_payload(audio: str, mime: Optional[str] = None) -> Tuple[bytes, str]:
    """
    Decode base64 audio, accepting a `data:audio/webm;base64,...` URI.

    Returns (bytes, content_type).
    """
    content_type = mime or DEFAULT_AUDIO_TYPE
    encoded = audio.strip()
    if encoded.startswith("data:") and "," in encoded:
        header, encoded = encoded.split(",", 1)
        declared = header[len("data:"):].split(";", 1)[0]
        if declared and not mime:
            content_type = declared
    try:
        content = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ValidationError(message="Invalid base64 audio.", field="audio")
    return content, content_type


class SpeechService:
    def __init__(self, provider: LLMProvider, settings: Optional[Settings] = None):
        self.provider = provider
        self.settings = settings or default_settings

    async def transcribe(
        self,
        content: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> str:
        """Transcribe one audio clip. Empty or oversized audio is a ValidationError."""
        if not content:
            raise ValidationError(message="No audio content found.", field="audio")
        if len(content) > self.settings.max_audio_size:
            max_mb = self.settings.max_audio_size / (1024 * 1024)
            raise ValidationError(
                message=f"Audio exceeds the maximum size of {max_mb:.0f}MB.",
                field="audio",
            )
        content_type = (content_type or DEFAULT_AUDIO_TYPE).split(";", 1)[0].strip()
        if not filename:
            filename = f"audio.{_EXTENSIONS.get(content_type, 'webm')}"

        text = await self.provider.transcribe(filename, content, content_type)
        logger.info("Transcribed %d bytes of %s into %d chars", len(content), content_type, len(text))
        return text

    async def synthesize(
        self,
        text: str,
        voice: Optional[str] = None,
        fmt: Optional[str] = None,
    ) -> Tuple[bytes, str]:
        """
        Speak `text`. Returns (audio bytes, MIME type).
        """
        if not text or not text.strip():
            raise ValidationError(message="Missing `text` for TTS.", field="text")
        if len(text) > self.settings.max_text_length:
            raise ValidationError(
                message=f"Text is too long (max {self.settings.max_text_length} characters).",
                field="text",
            )
        fmt = (fmt or self.settings.tts_format).lower()
        if fmt not in AUDIO_FORMATS:
            raise ValidationError(
                message=f"Unsupported audio format '{fmt}'. Use one of: {', '.join(AUDIO_FORMATS)}.",
                field="format",
            )
        audio = await self.provider.synthesize_speech(text, voice or self.settings.tts_voice, fmt)
        return audio, AUDIO_FORMATS[fmt]
