"""
ELO-rated elimination.

Lets active photos' ratings settle through synthetic random pairings before
cutting the lowest-rated fraction.
"""

import random
from collections.abc import Sequence
from dataclasses import replace

from typing_extensions import override

from ..interfaces import EliminationAlgorithm
from ..logging_config import get_logger
from ..models import Photo, TournamentConfig
from ..rating import DEFAULT_K_FACTOR, apply_match
from .base import active_photos, floor_cut, merge_round, rank_by_score, split_ranked

logger = get_logger("elo_elimination")

CHURN_SUB_ROUNDS = 10


class EloElimination(EliminationAlgorithm):
    """
    ELO elimination with internal rating churn.

    Every sub-round shuffles the active photos, pairs neighbours (the odd one
    out sits out) and lets the currently higher-rated photo of each pair win;
    on equal scores the second photo of the pair wins. Updates compound across
    sub-rounds and are kept by both survivors and eliminated photos.
    """

    name = "elo"

    def __init__(
        self,
        rng: random.Random | None = None,
        sub_rounds: int = CHURN_SUB_ROUNDS,
        k: float = DEFAULT_K_FACTOR,
    ):
        super().__init__(rng)
        self.sub_rounds: int = sub_rounds
        self.k: float = k

    def _churn(self, working: list[Photo]) -> None:
        """Run the synthetic sub-rounds, mutating the working copies."""
        for _ in range(self.sub_rounds):
            shuffled = list(working)
            self.rng.shuffle(shuffled)
            for j in range(0, len(shuffled) - 1, 2):
                photo_a, photo_b = shuffled[j], shuffled[j + 1]
                if photo_a.score > photo_b.score:
                    winner, loser = photo_a, photo_b
                else:
                    winner, loser = photo_b, photo_a
                apply_match(winner, loser, self.k)

    @override
    def apply(
        self, photos: Sequence[Photo], config: TournamentConfig, round_number: int
    ) -> list[Photo]:
        active = active_photos(photos)
        if not active:
            return list(photos)

        working = [replace(p) for p in active]
        self._churn(working)

        cut = floor_cut(len(working), config.effective_elimination_rate)
        survivors, eliminated = split_ranked(rank_by_score(working), cut)

        logger.debug(
            f"Round {round_number}: churned {len(working)} ratings over "
            f"{self.sub_rounds} sub-rounds, eliminating {[p.photo_id for p in eliminated]}"
        )
        return merge_round(photos, survivors, eliminated, round_number)
