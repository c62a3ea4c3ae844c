"""
Pairwise elimination.

Ranks all active photos by score and drops the bottom fraction.
"""

from collections.abc import Sequence

from typing_extensions import override

from ..interfaces import EliminationAlgorithm
from ..logging_config import get_logger
from ..models import Photo, TournamentConfig
from .base import active_photos, floor_cut, merge_round, rank_by_score, split_ranked

logger = get_logger("pairwise_elimination")


class PairwiseElimination(EliminationAlgorithm):
    """Eliminate floor(n * rate) lowest-scored active photos."""

    name = "pairwise"

    @override
    def apply(
        self, photos: Sequence[Photo], config: TournamentConfig, round_number: int
    ) -> list[Photo]:
        active = active_photos(photos)
        if not active:
            return list(photos)

        cut = floor_cut(len(active), config.effective_elimination_rate)
        survivors, eliminated = split_ranked(rank_by_score(active), cut)

        logger.debug(
            f"Round {round_number}: {len(active)} active, eliminating {cut}: "
            f"{[p.photo_id for p in eliminated]}"
        )
        return merge_round(photos, survivors, eliminated, round_number)
