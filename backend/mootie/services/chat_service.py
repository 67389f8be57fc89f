"""
Mootie Backend - Chat Service
===============================

What:  One conversational turn: persona prompt → Responses API → reply text,
       citations and, on request, spoken audio.
How:   Builds the Responses payload for the selected mode. When a vector
       store is configured the `file_search` tool grounds the reply in the
       uploaded case documents and file citations become `references`.
Who:   POST /send-message.
"""

import base64
import logging
from typing import Any, Dict, List, Optional

from mootie.config import AUDIO_FORMATS, Settings, settings as default_settings
from mootie.exceptions import UpstreamError, ValidationError
from mootie.schemas.chat import SendMessageData
from mootie.services.llm_base import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_MODE = "coach"
NO_TEXT_REPLY = "No textual response from model."

MODE_INSTRUCTIONS = {
    "coach": (
        "You are Mootie, a moot-court coach. Help the student sharpen their oral "
        "argument: point out gaps in reasoning, suggest stronger authority from the "
        "uploaded case materials, and keep feedback concise and actionable."
    ),
    "judge": (
        "You are an appellate judge presiding over a moot-court round. Question "
        "counsel the way a real bench would: probe weak points, test the limits of "
        "their authority, and ask one pointed question at a time."
    ),
    "opposition": (
        "You are opposing counsel in a moot-court round. Rebut the student's "
        "argument directly, rely on the uploaded case materials where they help "
        "your side, and keep each response to a focused counter-argument."
    ),
}


def extract_output_text(response: Dict[str, Any]) -> str:
    """Reply text from a Responses API object."""
    text = response.get("output_text")
    if isinstance(text, str) and text:
        return text
    for item in response.get("output") or []:
        if item.get("type") != "message":
            continue
        for part in item.get("content") or []:
            if part.get("type") == "output_text" and part.get("text"):
                return part["text"]
    return NO_TEXT_REPLY


def extract_references(response: Dict[str, Any]) -> List[str]:
    """File citations (filename, else file id), de-duplicated in first-seen order."""
    refs: List[str] = []
    for item in response.get("output") or []:
        if item.get("type") != "message":
            continue
        for part in item.get("content") or []:
            for annotation in part.get("annotations") or []:
                if annotation.get("type") != "file_citation":
                    continue
                ref = annotation.get("filename") or annotation.get("file_id")
                if ref and ref not in refs:
                    refs.append(ref)
    return refs


class ChatService:
    """Sends a user's turn to the model in the chosen moot-court persona."""

    def __init__(self, provider: LLMProvider, settings: Optional[Settings] = None):
        self.provider = provider
        self.settings = settings or default_settings

    def resolve_mode(self, mode: Optional[str]) -> str:
        mode = (mode or DEFAULT_MODE).strip().lower()
        if mode not in MODE_INSTRUCTIONS:
            raise ValidationError(
                message=f"Unknown mode '{mode}'. Use one of: {', '.join(MODE_INSTRUCTIONS)}.",
                field="mode",
            )
        return mode

    def build_payload(self, text: str, mode: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.settings.chat_model,
            "instructions": MODE_INSTRUCTIONS[mode],
            "input": text,
        }
        if self.settings.vector_store_configured:
            payload["tools"] = [
                {
                    "type": "file_search",
                    "vector_store_ids": [self.settings.vector_store_id],
                    "max_num_results": self.settings.file_search_max_results,
                }
            ]
            payload["include"] = ["file_search_call.results"]
        return payload

    async def send_message(
        self,
        text: Optional[str],
        mode: Optional[str] = None,
        voice: Optional[str] = None,
        speak: bool = False,
    ) -> SendMessageData:
        """
        Run one turn and return the reply.

        Raises:
            ValidationError:  missing/oversized text or unknown mode
            UpstreamError:    the Responses call failed (TTS failures do not raise)
        """
        if not text or not text.strip():
            raise ValidationError(message="Missing input text.", field="text")
        if len(text) > self.settings.max_text_length:
            raise ValidationError(
                message=f"Message is too long (max {self.settings.max_text_length} characters).",
                field="text",
            )
        mode = self.resolve_mode(mode)

        response = await self.provider.create_response(self.build_payload(text, mode))
        reply = extract_output_text(response)
        data = SendMessageData(
            assistantResponse=reply,
            references=extract_references(response),
            mode=mode,
        )

        if speak and reply != NO_TEXT_REPLY:
            fmt = self.settings.tts_format
            try:
                audio = await self.provider.synthesize_speech(
                    reply, voice or self.settings.tts_voice, fmt
                )
            except UpstreamError as e:
                # The text reply stands on its own; the client falls back to text only.
                logger.warning("Spoken reply unavailable: %s", e.message)
            else:
                data.assistantAudio = base64.b64encode(audio).decode("ascii")
                data.assistantAudioMime = AUDIO_FORMATS[fmt]

        return data
