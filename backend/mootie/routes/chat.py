"""
Mootie Backend - Chat Route Handler
=====================================

POST /send-message: one conversational turn in coach, judge or opposition
mode. Chat history stays in the browser; each call is independent.
"""

import logging

from fastapi import APIRouter, Depends

from mootie.dependencies import get_chat_service
from mootie.schemas.chat import SendMessageData, SendMessageRequest
from mootie.schemas.common import Envelope, ErrorResponse
from mootie.services.chat_service import ChatService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Chat"])


@router.post(
    "/send-message",
    response_model=Envelope[SendMessageData],
    response_model_exclude_none=True,
    responses={
        400: {"description": "Missing text or unknown mode", "model": ErrorResponse},
        500: {"description": "Server misconfigured", "model": ErrorResponse},
        502: {"description": "Provider error", "model": ErrorResponse},
        504: {"description": "Provider timeout", "model": ErrorResponse},
    },
    summary="Send a message to the moot-court assistant",
)
async def send_message(
    body: SendMessageRequest,
    service: ChatService = Depends(get_chat_service),
) -> Envelope[SendMessageData]:
    data = await service.send_message(
        text=body.content,
        mode=body.mode,
        voice=body.voice,
        speak=body.speak,
    )
    return Envelope(data=data)
