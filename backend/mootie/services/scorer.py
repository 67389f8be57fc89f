"""
Mootie Backend - Heuristic Rubric Scorer
==========================================

What:  Rates argument text on five 0-10 metrics with keyword/regex heuristics.
How:   Single pass over sentences and words; pure and synchronous, no I/O.
Who:   POST /score and POST /ai-notes.

Metrics:
    clarity         10 - avg_words_per_sentence / 5, floor 1
    structure       signpost words per sentence × 10
    authority       case citations × 2 + capitalized words × 0.1
    responsiveness  bench-addressing phrases × 4
    persuasiveness  connective / persuasive words × 3

Every metric is clamped to [0, 10] and rounded to one decimal. Empty or
whitespace-only text returns the empty_score() floor (all metrics 0.0)
instead of raising.
"""

import math
import re
from typing import Dict, Iterable, List

from mootie.schemas.chat import RubricScore

STRUCTURE_KEYWORDS = ("first", "second", "third", "next", "finally", "step")
RESPONSIVENESS_PHRASES = ("your honor", "you asked", "in response", "responding to")
PERSUASION_KEYWORDS = (
    "therefore",
    "thus",
    "clearly",
    "must",
    "compelling",
    "should",
    "because",
    "hence",
)

RESPONSIVENESS_WEIGHT = 4
PERSUASION_WEIGHT = 3
CITATION_WEIGHT = 2
CAPITALIZED_WEIGHT = 0.1

# Order also breaks ties when picking strength and weakness.
METRICS = ("clarity", "structure", "authority", "responsiveness", "persuasiveness")

EMPTY_NOTES = "No text provided to score."

# The period of a "v." case citation does not end a sentence.
_SENTENCE_SPLIT = re.compile(r"(?<!\bv)[.!?]")
_CASE_CITATION = re.compile(r"\b\w+\s+v\.\s+\w+")
_CAPITALIZED = re.compile(r"\b[A-Z][a-z]+")


def _word_pattern(words: Iterable[str]) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b", re.IGNORECASE)


_STRUCTURE_RE = _word_pattern(STRUCTURE_KEYWORDS)
_PERSUASION_RE = _word_pattern(PERSUASION_KEYWORDS)
_RESPONSIVENESS_RE = re.compile(
    "|".join(re.escape(p) for p in RESPONSIVENESS_PHRASES), re.IGNORECASE
)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _round1(value: float) -> float:
    # Half-up, so 6.25 shows as 6.3 rather than banker's 6.2.
    return math.floor(value * 10 + 0.5) / 10


def split_sentences(text: str) -> List[str]:
    return [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def split_words(text: str) -> List[str]:
    return text.split()


def empty_score() -> RubricScore:
    """The documented floor for empty input."""
    return RubricScore(
        clarity=0.0,
        structure=0.0,
        authority=0.0,
        responsiveness=0.0,
        persuasiveness=0.0,
        notes=EMPTY_NOTES,
    )


def compute_metrics(text: str) -> Dict[str, float]:
    """Raw (unrounded, clamped) metric values for non-empty text."""
    sentences = split_sentences(text)
    words = split_words(text)
    sentence_count = len(sentences)

    avg_words = len(words) / sentence_count if sentence_count else len(words)
    clarity = clamp(10 - avg_words / 5, 1, 10)

    signposts = len(_STRUCTURE_RE.findall(text))
    structure = clamp((signposts / sentence_count) * 10, 0, 10) if sentence_count else 0.0

    citations = len(_CASE_CITATION.findall(text))
    capitalized = sum(1 for w in words if _CAPITALIZED.search(w))
    authority = clamp(citations * CITATION_WEIGHT + capitalized * CAPITALIZED_WEIGHT, 0, 10)

    responses = len(_RESPONSIVENESS_RE.findall(text))
    responsiveness = clamp(responses * RESPONSIVENESS_WEIGHT, 0, 10)

    persuaders = len(_PERSUASION_RE.findall(text))
    persuasiveness = clamp(persuaders * PERSUASION_WEIGHT, 0, 10)

    return {
        "clarity": clarity,
        "structure": structure,
        "authority": authority,
        "responsiveness": responsiveness,
        "persuasiveness": persuasiveness,
    }


def strength_and_weakness(metrics: Dict[str, float]) -> tuple:
    """
    Highest and lowest metric names.

    Ranks METRICS by value, highest first, keeping metric order among equal
    values: strength is the first entry and weakness the last, so a tie at
    the top goes to the earlier metric and a tie at the bottom to the later.
    """
    ranked = sorted(METRICS, key=lambda m: metrics[m], reverse=True)
    return ranked[0], ranked[-1]


def score_text(text: str) -> RubricScore:
    """
    Score a debate or argument excerpt.

    Args:
        text: Any string. Empty or whitespace-only text is not an error.

    Returns:
        RubricScore with five metrics in [0, 10] (one decimal) and a note
        naming the strongest and weakest metric.
    """
    if not text or not text.strip():
        return empty_score()

    raw = compute_metrics(text)
    strength, weakness = strength_and_weakness(raw)
    metrics = {name: _round1(value) for name, value in raw.items()}
    return RubricScore(**metrics, notes=f"Strength: {strength}. Weakness: {weakness}.")


# ── Coaching notes ────────────────────────────────────────────────────────

NOTES_WINDOW = 12

_PRAISE = {
    "clarity": "your sentences are short and easy for the bench to follow",
    "structure": "you signpost your points clearly",
    "authority": "you ground your points in authority",
    "responsiveness": "you engage directly with the bench",
    "persuasiveness": "you link premises to conclusions with conviction",
}

_ADVICE = {
    "clarity": "Break up long set-ups and define terms before relying on them.",
    "structure": "Signpost each point (First, Second, Finally) so the bench can track your roadmap.",
    "authority": "Cite your strongest precedent or statutory hook early in each point.",
    "responsiveness": "Answer the bench's question directly before returning to your roadmap.",
    "persuasiveness": "Tie each piece of evidence to the relief sought with explicit reasoning.",
}


def coaching_notes(turns: List[str]) -> tuple:
    """
    Build a three-sentence coaching summary from the user's recent turns.

    Only the last NOTES_WINDOW turns are scored. Returns (notes, score, count).
    """
    recent = [t for t in turns if t and t.strip()][-NOTES_WINDOW:]
    text = " ".join(recent)
    score = score_text(text)
    if not recent:
        return "Not enough argument yet to give coaching notes.", score, 0

    metrics = score.model_dump(include=set(METRICS))
    strength, weakness = strength_and_weakness(compute_metrics(text))
    notes = " ".join(
        [
            f"Overall, {_PRAISE[strength]} ({strength} {metrics[strength]}/10).",
            f"Your weakest area is {weakness} ({metrics[weakness]}/10): {_ADVICE[weakness]}",
            "Next round: lead with the relief sought, cite your strongest authority early, "
            "and pre-empt likely bench questions.",
        ]
    )
    return notes, score, len(recent)
