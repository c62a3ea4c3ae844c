"""
N-wise (batched) elimination.

Splits active photos into consecutive batches and eliminates the weakest of
each batch independently.
"""

from collections.abc import Sequence

from typing_extensions import override

from ..interfaces import EliminationAlgorithm
from ..logging_config import get_logger
from ..models import Photo, TournamentConfig
from .base import active_photos, floor_cut, merge_round, rank_by_score, split_ranked

logger = get_logger("nwise_elimination")


class NwiseElimination(EliminationAlgorithm):
    """
    Batched elimination.

    Each batch loses max(1, floor(len(batch) * rate)) photos, so even tiny
    rates remove one photo per batch. A trailing singleton batch loses its
    only member. A batch of two or more always keeps at least one survivor.
    """

    name = "nwise"

    @staticmethod
    def batch_cut(batch_len: int, rate: float) -> int:
        cut = max(1, floor_cut(batch_len, rate))
        if batch_len > 1:
            cut = min(cut, batch_len - 1)
        return cut

    @override
    def apply(
        self, photos: Sequence[Photo], config: TournamentConfig, round_number: int
    ) -> list[Photo]:
        active = active_photos(photos)
        if len(active) <= 1:
            # Nothing to compete against; a lone photo is never cut
            return merge_round(photos, active, [], round_number) if active else list(photos)

        batch_size = config.effective_batch_size
        rate = config.effective_elimination_rate

        survivors = list[Photo]()
        eliminated = list[Photo]()
        for start in range(0, len(active), batch_size):
            batch = active[start:start + batch_size]
            cut = self.batch_cut(len(batch), rate)
            batch_survivors, batch_eliminated = split_ranked(rank_by_score(batch), cut)
            survivors.extend(batch_survivors)
            eliminated.extend(batch_eliminated)
            logger.debug(
                f"Round {round_number} batch {start // batch_size}: "
                f"eliminating {[p.photo_id for p in batch_eliminated]}"
            )

        return merge_round(photos, survivors, eliminated, round_number)
