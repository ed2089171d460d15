"""Top-level view state machine.

Each state is an immutable tagged value. The transition functions below are the only
way to move between them; each carries a generation number so that a response
belonging to an abandoned request can be recognised and dropped.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence, Union

from careerdeck.core.errors import EmptySubmissionError, InvalidTransitionError
from careerdeck.schemas.career import DEMAND_ORDINALS, CareerAnalysis, JobCardData, UserInput

SortKey = Literal["match", "demand"]
SortOrder = Literal["asc", "desc"]
ResultsTab = Literal["jobs", "resume"]

LOADING_MESSAGES = (
    "Reading your resume...",
    "Identifying key skills...",
    "Scanning Indian market trends...",
    "Finding high-demand roles...",
    "Drafting career flashcards...",
    "Finalizing recommendations...",
)


@dataclass(frozen=True)
class Idle:
    generation: int = 0
    name: Literal["IDLE"] = "IDLE"


@dataclass(frozen=True)
class Analyzing:
    generation: int
    name: Literal["ANALYZING"] = "ANALYZING"


@dataclass(frozen=True)
class Results:
    generation: int
    analysis: CareerAnalysis
    name: Literal["RESULTS"] = "RESULTS"


@dataclass(frozen=True)
class Failed:
    generation: int
    message: str
    name: Literal["ERROR"] = "ERROR"


ViewState = Union[Idle, Analyzing, Results, Failed]


def begin_analysis(state: ViewState, user_input: UserInput) -> Analyzing:
    if not isinstance(state, (Idle, Failed)):
        raise InvalidTransitionError(f"Cannot start an analysis while in {state.name}.")
    if not user_input.is_submittable():
        raise EmptySubmissionError()
    return Analyzing(generation=state.generation + 1)


def complete_analysis(state: ViewState, generation: int, analysis: CareerAnalysis) -> Results:
    if not isinstance(state, Analyzing) or state.generation != generation:
        raise InvalidTransitionError("No matching analysis is in flight.")
    return Results(generation=generation, analysis=analysis)


def fail_analysis(state: ViewState, generation: int, message: str) -> Failed:
    if not isinstance(state, Analyzing) or state.generation != generation:
        raise InvalidTransitionError("No matching analysis is in flight.")
    return Failed(generation=generation, message=message)


def reset(state: ViewState) -> Idle:
    return Idle(generation=state.generation + 1)


def is_current(state: ViewState, generation: int) -> bool:
    return isinstance(state, Analyzing) and state.generation == generation


def sorted_card_indices(cards: Sequence[JobCardData], key: SortKey, order: SortOrder) -> list[int]:
    """Indices of ``cards`` in display order. Ties fall back to match score."""

    def primary(card: JobCardData) -> int:
        if key == "match":
            return card.match_score
        return DEMAND_ORDINALS.get(card.demand_level, 2)

    sign = 1 if order == "asc" else -1
    return sorted(
        range(len(cards)),
        key=lambda i: (sign * primary(cards[i]), sign * cards[i].match_score),
    )


def demand_mix(cards: Sequence[JobCardData]) -> dict[str, dict[str, float]]:
    total = len(cards)
    mix: dict[str, dict[str, float]] = {}
    for level in DEMAND_ORDINALS:
        count = sum(1 for card in cards if card.demand_level == level)
        mix[level] = {
            "count": count,
            "percent": round(count / total * 100, 1) if total else 0.0,
        }
    return mix
