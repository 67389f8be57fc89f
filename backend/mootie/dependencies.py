"""
Mootie Backend - Request Dependencies
=======================================

What:  FastAPI dependencies that build the provider client and services.
How:   A fresh OpenAIProvider (and httpx client) per request, closed after
       the response. Nothing is shared between requests.

Tests replace `get_provider` through `app.dependency_overrides`.
"""

from typing import AsyncIterator

from fastapi import Depends

from mootie.config import settings
from mootie.services.chat_service import ChatService
from mootie.services.document_service import DocumentService
from mootie.services.llm_base import LLMProvider
from mootie.services.openai_provider import OpenAIProvider
from mootie.services.speech_service import SpeechService


async def get_provider() -> AsyncIterator[LLMProvider]:
    """Provider client for one request; ConfigurationError without an API key."""
    settings.require_provider()
    provider = OpenAIProvider.from_settings(settings)
    try:
        yield provider
    finally:
        await provider.aclose()


def get_document_service(provider: LLMProvider = Depends(get_provider)) -> DocumentService:
    return DocumentService(provider, settings)


def get_chat_service(provider: LLMProvider = Depends(get_provider)) -> ChatService:
    return ChatService(provider, settings)


def get_speech_service(provider: LLMProvider = Depends(get_provider)) -> SpeechService:
    return SpeechService(provider, settings)
