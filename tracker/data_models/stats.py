"""
Statistics data models for the tracker.

Provides immutable data transfer objects shared by the fetcher, the
per-student bindings, the aggregation store and the view projector.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from tracker.constants import ScoringConstants


@dataclass(frozen=True)
class StatSnapshot:
    """Normalized statistics for one handle at one point in time."""
    total_solved: int
    total_questions: int
    easy_solved: int
    total_easy: int
    medium_solved: int
    total_medium: int
    hard_solved: int
    total_hard: int
    acceptance_rate: float
    ranking: int
    submission_calendar: Optional[Dict[int, int]] = field(default=None, compare=False)
    recent_submissions_7: Optional[float] = None
    recent_submissions_30: Optional[float] = None


@dataclass(frozen=True)
class ScoreWeights:
    """Per-difficulty weights for the composite score."""
    easy: int = ScoringConstants.EASY_WEIGHT
    medium: int = ScoringConstants.MEDIUM_WEIGHT
    hard: int = ScoringConstants.HARD_WEIGHT

    def score(self, snapshot: StatSnapshot) -> int:
        return (
            snapshot.easy_solved * self.easy
            + snapshot.medium_solved * self.medium
            + snapshot.hard_solved * self.hard
        )


@dataclass(frozen=True)
class StatEntry:
    """What the aggregation store keeps per student."""
    solved: int
    score: int


class FetchState(Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchOutcome:
    """Lifecycle state of one student's statistics fetch."""
    state: FetchState
    snapshot: Optional[StatSnapshot] = None
    reason: Optional[str] = None

    @classmethod
    def idle(cls) -> "FetchOutcome":
        return cls(FetchState.IDLE)

    @classmethod
    def pending(cls) -> "FetchOutcome":
        return cls(FetchState.PENDING)

    @classmethod
    def ready(cls, snapshot: StatSnapshot) -> "FetchOutcome":
        return cls(FetchState.READY, snapshot=snapshot)

    @classmethod
    def failed(cls, reason: str) -> "FetchOutcome":
        return cls(FetchState.FAILED, reason=reason)

    @property
    def is_terminal(self) -> bool:
        return self.state is not FetchState.PENDING
