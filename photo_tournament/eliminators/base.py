"""
Helpers shared by the elimination algorithms.

Algorithms never mutate their input photos: every touched photo is replaced
with a copy, and already-eliminated photos are passed through as-is.
"""

import math
from collections.abc import Sequence
from dataclasses import replace

from ..models import Photo


def active_photos(photos: Sequence[Photo]) -> list[Photo]:
    """Photos still in the running, in input order."""
    return [p for p in photos if not p.eliminated]


def rank_by_score(photos: Sequence[Photo]) -> list[Photo]:
    """
    Sort descending by score.

    sorted() is stable with reverse=True, so equal scores keep their input
    order and the later photo among ties lands lower.
    """
    return sorted(photos, key=lambda p: p.score, reverse=True)


def floor_cut(count: int, rate: float) -> int:
    """floor(count * rate), except that a group of one is never cut."""
    if count <= 1:
        return 0
    return math.floor(count * rate)


def split_ranked(ranked: Sequence[Photo], cut: int) -> tuple[list[Photo], list[Photo]]:
    """Split a ranked group into (survivors, eliminated), cutting from the bottom."""
    keep = len(ranked) - cut
    return list(ranked[:keep]), list(ranked[keep:])


def merge_round(
    photos: Sequence[Photo],
    survivors: Sequence[Photo],
    eliminated: Sequence[Photo],
    round_number: int,
) -> list[Photo]:
    """
    Rebuild the full photo list after a round.

    Survivors and eliminated photos carry their (possibly updated) scores and
    are stamped with round_number; everything else is returned untouched.
    """
    survivor_map = {p.photo_id: p for p in survivors}
    eliminated_map = {p.photo_id: p for p in eliminated}

    result = list[Photo]()
    for photo in photos:
        if photo.photo_id in eliminated_map:
            updated = eliminated_map[photo.photo_id]
            result.append(replace(photo, score=updated.score, round=round_number, eliminated=True))
        elif photo.photo_id in survivor_map:
            updated = survivor_map[photo.photo_id]
            result.append(replace(photo, score=updated.score, round=round_number))
        else:
            result.append(photo)
    return result
