"""
Core dataclasses for the photo tournament system.

Defines Photo, Verdict, Judgment, TournamentConfig and RoundSnapshot models
with validation.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from .exceptions import ConfigurationError, ValidationError

WinnerSide = Literal["a", "b"]
AlgorithmName = Literal["pairwise", "nwise", "elo"]

BASE_SCORE = 1000.0
DEFAULT_BATCH_SIZE = 4
DEFAULT_ELIMINATION_RATES: dict[str, float] = {
    "pairwise": 0.5,
    "nwise": 0.25,
    "elo": 0.3,
}


@dataclass
class Photo:
    """A photo competing in a tournament, plus its mutable tournament state."""

    photo_id: str
    path: str
    score: float = BASE_SCORE
    round: int = 0
    eliminated: bool = False
    created_at: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        """Validate photo data."""
        if not self.photo_id:
            raise ValidationError("photo_id cannot be empty")
        if not self.path:
            raise ValidationError("path cannot be empty")


@dataclass(frozen=True)
class Verdict:
    """Outcome of comparing photo "a" against photo "b"."""

    winner: WinnerSide
    rationale: str
    model: str = "unknown"
    round: int = 0
    timestamp: float = field(default_factory=time.time)
    raw_output: str = ""

    def __post_init__(self) -> None:
        """Validate verdict data."""
        if self.winner not in ("a", "b"):
            raise ValidationError(f"winner must be 'a' or 'b', got {self.winner!r}")
        if not self.rationale or not self.rationale.strip():
            raise ValidationError("rationale cannot be empty")


@dataclass(frozen=True)
class JudgeOutcome:
    """Verdict plus whether it came from the judge or from the fallback path."""

    verdict: Verdict
    is_fallback: bool = False
    error: str | None = None


@dataclass(frozen=True)
class Judgment:
    """A single entry of the append-only judgment history."""

    judgment_id: str
    photo_a: str
    photo_b: str
    photo_a_path: str
    photo_b_path: str
    winner: WinnerSide
    explanation: str
    timestamp: float
    round: int
    model: str
    fallback: bool = False

    @property
    def winner_id(self) -> str:
        return self.photo_a if self.winner == "a" else self.photo_b

    @property
    def loser_id(self) -> str:
        return self.photo_b if self.winner == "a" else self.photo_a


def default_tournament_id(algorithm: str, now: datetime | None = None) -> str:
    """Derive a tournament id from the algorithm and a creation timestamp."""
    now = now or datetime.now(timezone.utc)
    stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    stamp = stamp.replace(":", "-").replace(".", "-")
    return f"tournament-{algorithm}-{stamp}"


@dataclass
class TournamentConfig:
    """Configuration for a tournament run."""

    algorithm: str = "elo"
    rounds: int = 3
    model: str = "google/gemini-2.5-flash-preview-05-20"
    elimination_rate: float | None = None
    batch_size: int | None = None
    tournament_id: str | None = None
    seed: int | None = None
    group: str | None = None

    def __post_init__(self) -> None:
        """Validate configuration and derive the tournament id if missing."""
        if self.algorithm not in DEFAULT_ELIMINATION_RATES:
            raise ConfigurationError(
                f"Unknown algorithm: {self.algorithm!r} "
                f"(expected one of {sorted(DEFAULT_ELIMINATION_RATES)})"
            )
        if self.rounds <= 0:
            raise ConfigurationError(f"rounds must be positive, got {self.rounds}")
        if self.elimination_rate is not None and not (0.0 < self.elimination_rate <= 1.0):
            raise ConfigurationError(
                f"elimination_rate must be in (0, 1], got {self.elimination_rate}"
            )
        if self.batch_size is not None and self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}")
        if not self.tournament_id:
            self.tournament_id = default_tournament_id(self.algorithm)

    @property
    def effective_elimination_rate(self) -> float:
        if self.elimination_rate is not None:
            return self.elimination_rate
        return DEFAULT_ELIMINATION_RATES[self.algorithm]

    @property
    def effective_batch_size(self) -> int:
        return self.batch_size if self.batch_size is not None else DEFAULT_BATCH_SIZE


@dataclass
class RoundSnapshot:
    """Full tournament state after a completed round; the unit of resume."""

    tournament_id: str
    round: int
    photos: list[Photo]
    config: TournamentConfig
    judgments: list[Judgment]
    timestamp: float = field(default_factory=time.time)


class TournamentState(str, Enum):
    """States of the tournament controller."""

    INITIALIZING = "initializing"
    ROUND_ACTIVE = "round_active"
    ROUND_ACTIONS_COMPLETE = "round_actions_complete"
    TERMINAL = "terminal"


@dataclass
class TournamentResult:
    """Final report of a tournament run."""

    tournament_id: str
    winner: Photo | None
    survivors: list[Photo]
    photos: list[Photo]
    judgments: list[Judgment]
    rounds_played: int
    last_round: int
    state: TournamentState = TournamentState.TERMINAL

    @property
    def completed(self) -> bool:
        """True only when the tournament narrowed down to a single photo."""
        return len(self.survivors) == 1
