"""
Dummy judge implementation for testing.

Provides deterministic and random verdicts without looking at the photos.
"""

import random

from typing_extensions import override

from ..exceptions import ValidationError
from ..interfaces import Judge
from ..models import Photo, Verdict


class DummyJudge(Judge):
    """
    Dummy judge for testing purposes.

    Deterministic mode prefers the lexicographically smaller photo id.
    """

    def __init__(self, mode: str = "deterministic", seed: int = 42):
        """
        Initialize dummy judge.

        Args:
            mode: "deterministic" or "random"
            seed: Random seed for reproducible results
        """
        if mode not in ("deterministic", "random"):
            raise ValidationError(f"Unknown mode: {mode}")
        self.mode = mode
        self.rng = random.Random(seed)
        self.judge_id = f"dummy_{mode}"

    @override
    def compare(self, photo_a: Photo, photo_b: Photo, model: str) -> Verdict:
        if self.mode == "deterministic":
            winner = "a" if photo_a.photo_id <= photo_b.photo_id else "b"
        else:
            winner = self.rng.choice(["a", "b"])

        return Verdict(
            winner=winner,
            rationale=f"Dummy {self.mode} verdict for {photo_a.photo_id} vs {photo_b.photo_id}",
            model=model,
            raw_output=f"Dummy judge output: {winner}",
        )
