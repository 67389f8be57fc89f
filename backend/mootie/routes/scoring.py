"""
Mootie Backend - Scoring Route Handlers
=========================================

POST /score     rubric scores for one message or a transcript
POST /ai-notes  coaching summary over the user's recent turns

Both run the local heuristic scorer; no provider call, no API key needed.
"""

from fastapi import APIRouter

from mootie.exceptions import ValidationError
from mootie.schemas.chat import NotesData, NotesRequest, RubricScore, ScoreRequest
from mootie.schemas.common import Envelope, ErrorResponse
from mootie.services.scorer import coaching_notes, score_text

router = APIRouter(tags=["Scoring"])

USER_ROLES = {"user", "student", "counsel"}


@router.post(
    "/score",
    response_model=Envelope[RubricScore],
    responses={400: {"description": "Missing text", "model": ErrorResponse}},
    summary="Score argument text on the five-metric rubric",
    description=(
        "Scores clarity, structure, authority, responsiveness and persuasiveness "
        "from 0 to 10. Send `text`, or a `transcript` whose user turns are joined. "
        "Empty text scores 0 on every metric."
    ),
)
async def score(body: ScoreRequest) -> Envelope[RubricScore]:
    if body.text is not None:
        text = body.text
    elif body.transcript is not None:
        text = " ".join(t.body for t in body.transcript if t.role in USER_ROLES)
    else:
        raise ValidationError(message="Missing `text` field.", field="text")
    return Envelope(data=score_text(text))


@router.post(
    "/ai-notes",
    response_model=Envelope[NotesData],
    summary="Coaching notes for the session so far",
)
async def ai_notes(body: NotesRequest) -> Envelope[NotesData]:
    turns = [t.body for t in body.transcript if t.role in USER_ROLES]
    notes, scores, count = coaching_notes(turns)
    return Envelope(data=NotesData(notes=notes, scores=scores, turns_scored=count))
