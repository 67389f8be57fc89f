"""
Mootie Backend - Chat, Speech and Scoring Schemas
===================================================

What:  Request bodies and response payloads of the conversational endpoints.

The send-message body accepts `text`, `message` or `prompt` because the
browser client has used all three names over time.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    text: Optional[str] = None
    message: Optional[str] = None
    prompt: Optional[str] = None
    mode: Optional[str] = Field(default=None, description="coach (default), judge or opposition")
    voice: Optional[str] = Field(default=None, description="TTS voice for the spoken reply")
    speak: bool = Field(default=False, description="Also return the reply as audio")

    @property
    def content(self) -> Optional[str]:
        """First non-blank of text, message, prompt."""
        for value in (self.text, self.message, self.prompt):
            if value and value.strip():
                return value
        return None


class SendMessageData(BaseModel):
    assistantResponse: str
    assistantAudio: Optional[str] = Field(default=None, description="Base64 audio of the reply")
    assistantAudioMime: Optional[str] = None
    references: List[str] = Field(default_factory=list)
    mode: str


class TranscribeJSONRequest(BaseModel):
    audio: str = Field(description="Base64 audio or a data: URI")
    mime: Optional[str] = None


class TranscribeData(BaseModel):
    text: str


class TTSRequest(BaseModel):
    text: str
    voice: Optional[str] = None
    format: Optional[str] = None


class TTSData(BaseModel):
    audio: str = Field(description="Base64-encoded audio")
    mime: str


class TranscriptTurn(BaseModel):
    role: str = "user"
    text: Optional[str] = None
    content: Optional[str] = None

    @property
    def body(self) -> str:
        return self.text or self.content or ""


class ScoreRequest(BaseModel):
    text: Optional[str] = None
    transcript: Optional[List[TranscriptTurn]] = None


class RubricScore(BaseModel):
    clarity: float
    structure: float
    authority: float
    responsiveness: float
    persuasiveness: float
    notes: str


class NotesRequest(BaseModel):
    transcript: List[TranscriptTurn] = Field(default_factory=list)


class NotesData(BaseModel):
    notes: str
    scores: RubricScore
    turns_scored: int
