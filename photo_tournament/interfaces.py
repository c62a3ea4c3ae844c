"""
Abstract base classes defining the interfaces for the photo tournament system.

All interfaces are synchronous; the controller decides whether judge calls
run on a thread pool.
"""

import random
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import NamedTuple

from typing_extensions import NotRequired, TypedDict

from .models import Judgment, Photo, RoundSnapshot, TournamentConfig, Verdict


class PhotoSource(NamedTuple):
    """A discovered photo: where it lives and when it was created."""
    path: str
    created_at: float


class PhotoState(TypedDict):
    """TypedDict for a serialized photo."""
    id: str
    path: str
    score: float
    round: int
    eliminated: bool
    createdAt: float


class JudgmentState(TypedDict):
    """TypedDict for a serialized judgment."""
    id: str
    photoA: str
    photoB: str
    photoAPath: str
    photoBPath: str
    winner: str
    explanation: str
    timestamp: float
    round: int
    model: str
    fallback: NotRequired[bool]


class ConfigState(TypedDict):
    """TypedDict for a serialized tournament config."""
    algorithm: str
    rounds: int
    model: str
    eliminationRate: NotRequired[float | None]
    batchSize: NotRequired[int | None]
    tournamentId: NotRequired[str | None]
    seed: NotRequired[int | None]
    group: NotRequired[str | None]


class SnapshotState(TypedDict):
    """TypedDict for a serialized round snapshot."""
    tournamentId: str
    round: int
    timestamp: float
    config: ConfigState
    photos: list[PhotoState]
    judgments: NotRequired[list[JudgmentState]]


class PhotoFetcher(ABC):
    """Interface for discovering the photos entering a tournament."""

    @abstractmethod
    def list_photos(self) -> list[PhotoSource]:
        """Return all available photos in tournament seeding order."""
        pass


class Judge(ABC):
    """Interface for comparing two photos."""

    @abstractmethod
    def compare(self, photo_a: Photo, photo_b: Photo, model: str) -> Verdict:
        """
        Synchronous comparison of two photos.

        May block. Raises JudgeError (or any transport error) on failure;
        the JudgmentOracle turns such failures into fallback verdicts.

        Args:
            photo_a: Photo labelled "a"
            photo_b: Photo labelled "b"
            model: Opaque model identifier passed through to the backend

        Returns:
            Verdict naming the winning side and a rationale
        """
        pass


class SnapshotStore(ABC):
    """Interface for persisting round snapshots and judgments."""

    @abstractmethod
    def save_round(self, snapshot: RoundSnapshot) -> None:
        """Persist the snapshot of a completed round."""
        pass

    @abstractmethod
    def load_latest(self, tournament_id: str) -> RoundSnapshot | None:
        """
        Load the latest completed round of a tournament.

        Returns None if the tournament has no persisted rounds.
        Raises StorageError if the persisted round cannot be read back.
        """
        pass

    @abstractmethod
    def persist_judgment(self, tournament_id: str, judgment: Judgment) -> None:
        """Append a judgment to the judgment history."""
        pass


class EliminationAlgorithm(ABC):
    """Interface for a round's selection/cut strategy."""

    name: str = "base"

    def __init__(self, rng: random.Random | None = None):
        self.rng: random.Random = rng or random.Random()

    @abstractmethod
    def apply(
        self, photos: Sequence[Photo], config: TournamentConfig, round_number: int
    ) -> list[Photo]:
        """
        Apply one round of elimination.

        Returns a new list with the same length and photo order. Only active
        photos may have their score, round or eliminated fields changed.
        """
        pass
