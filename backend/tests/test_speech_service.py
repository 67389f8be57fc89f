"""
Mootie Backend - Speech Service Unit Tests
============================================

What we test:
    ✅ Base64 and data: URI audio decoding
    ✅ Invalid base64 and empty audio are validation errors
    ✅ Codec parameters stripped from the content type, filename derived
    ✅ TTS format validation and MIME mapping
"""

import base64

import pytest

from mootie.exceptions import ValidationError
from mootie.services.speech_service import SpeechService, decode_audio_payload


@pytest.fixture
def service(mock_provider, test_settings):
    return SpeechService(mock_provider, test_settings)


class TestDecodeAudio:
    def test_plain_base64(self, sample_audio_bytes):
        encoded = base64.b64encode(sample_audio_bytes).decode()
        content, content_type = decode_audio_payload(encoded)
        assert content == sample_audio_bytes
        assert content_type == "audio/webm"

    def test_data_uri_sets_content_type(self, sample_audio_bytes):
        encoded = base64.b64encode(sample_audio_bytes).decode()
        content, content_type = decode_audio_payload(f"data:audio/ogg;base64,{encoded}")
        assert content == sample_audio_bytes
        assert content_type == "audio/ogg"

    def test_explicit_mime_wins(self, sample_audio_bytes):
        encoded = base64.b64encode(sample_audio_bytes).decode()
        _, content_type = decode_audio_payload(f"data:audio/ogg;base64,{encoded}", "audio/wav")
        assert content_type == "audio/wav"

    def test_invalid_base64(self):
        with pytest.raises(ValidationError) as exc_info:
            decode_audio_payload("not base64 at all!")
        assert exc_info.value.field == "audio"


class TestTranscribe:
    @pytest.mark.asyncio
    async def test_transcribe(self, service, mock_provider, sample_audio_bytes):
        mock_provider.transcribe.return_value = "May it please the court."

        text = await service.transcribe(sample_audio_bytes, "audio/webm;codecs=opus")

        assert text == "May it please the court."
        mock_provider.transcribe.assert_awaited_once_with(
            "audio.webm", sample_audio_bytes, "audio/webm"
        )

    @pytest.mark.asyncio
    async def test_filename_follows_content_type(self, service, mock_provider, sample_audio_bytes):
        mock_provider.transcribe.return_value = ""

        await service.transcribe(sample_audio_bytes, "audio/mp4")

        assert mock_provider.transcribe.await_args.args[0] == "audio.m4a"

    @pytest.mark.asyncio
    async def test_empty_audio_rejected(self, service, mock_provider):
        with pytest.raises(ValidationError):
            await service.transcribe(b"", "audio/webm")
        mock_provider.transcribe.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_oversized_audio_rejected(self, service, test_settings):
        with pytest.raises(ValidationError):
            await service.transcribe(b"x" * (test_settings.max_audio_size + 1))


class TestSynthesize:
    @pytest.mark.asyncio
    async def test_default_voice_and_format(self, service, mock_provider):
        mock_provider.synthesize_speech.return_value = b"ID3audio"

        audio, mime = await service.synthesize("Good morning, Your Honors.")

        assert audio == b"ID3audio"
        assert mime == "audio/mpeg"
        mock_provider.synthesize_speech.assert_awaited_once_with(
            "Good morning, Your Honors.", "alloy", "mp3"
        )

    @pytest.mark.asyncio
    async def test_wav_format(self, service, mock_provider):
        mock_provider.synthesize_speech.return_value = b"RIFF"

        _, mime = await service.synthesize("Hello", voice="verse", fmt="WAV")

        assert mime == "audio/wav"

    @pytest.mark.asyncio
    async def test_unsupported_format(self, service, mock_provider):
        with pytest.raises(ValidationError) as exc_info:
            await service.synthesize("Hello", fmt="ogg")
        assert exc_info.value.field == "format"
        mock_provider.synthesize_speech.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_text(self, service):
        with pytest.raises(ValidationError):
            await service.synthesize("  ")
