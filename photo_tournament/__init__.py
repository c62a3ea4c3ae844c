"""
Photo Tournament - Elimination Tournaments with Pairwise Judging

Ranks photos by running elimination rounds: a vision-model judge compares
random pairs, ELO ratings absorb the verdicts, and a pairwise, batched or
ELO-rated elimination strategy removes the weakest photos each round.
"""

from .controller import TournamentController
from .interfaces import EliminationAlgorithm, Judge, PhotoFetcher, PhotoSource, SnapshotStore
from .judges.oracle import JudgmentOracle
from .models import (
    Judgment,
    JudgeOutcome,
    Photo,
    RoundSnapshot,
    TournamentConfig,
    TournamentResult,
    TournamentState,
    Verdict,
)
from .rating import update_ratings

__version__ = "0.1.0"
__all__ = [
    "EliminationAlgorithm",
    "Judge",
    "JudgeOutcome",
    "Judgment",
    "JudgmentOracle",
    "Photo",
    "PhotoFetcher",
    "PhotoSource",
    "RoundSnapshot",
    "SnapshotStore",
    "TournamentConfig",
    "TournamentController",
    "TournamentResult",
    "TournamentState",
    "Verdict",
    "update_ratings",
]
