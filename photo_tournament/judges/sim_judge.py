"""
Simulated judge implementation.

Picks the photo with the higher noisy latent score, for testing and for
running tournaments without a model.
"""

import random

from typing_extensions import override

from ..interfaces import Judge
from ..models import Photo, Verdict


class SimulatedJudge(Judge):
    """
    Simulated judge for testing purposes.

    Compares ground truth scores with added Gaussian noise.
    """

    def __init__(self, ground_truth: dict[str, float], noise: float = 0.1, seed: int | None = None):
        """
        Initialize simulated judge.

        Args:
            ground_truth: Dict mapping photo_id to true quality score
            noise: Amount of noise to add (0-1, scaled by score magnitude)
            seed: Optional seed for reproducible noise
        """
        self.ground_truth = ground_truth
        self.noise = max(0.0, min(1.0, noise))
        self.rng = random.Random(seed)
        self.judge_id = "simulated"

    def _noisy_score(self, photo: Photo) -> float:
        score = self.ground_truth.get(photo.photo_id, 0.0)
        if self.noise == 0:
            return score
        return score + self.rng.gauss(0, abs(score) * self.noise)

    @override
    def compare(self, photo_a: Photo, photo_b: Photo, model: str) -> Verdict:
        score_a = self._noisy_score(photo_a)
        score_b = self._noisy_score(photo_b)
        winner = "a" if score_a >= score_b else "b"
        top = photo_a if winner == "a" else photo_b

        rationale = (
            f"Simulated evaluation: {top.photo_id} scored {max(score_a, score_b):.3f} "
            f"(ground truth: {self.ground_truth.get(top.photo_id, 0.0):.3f})"
        )
        raw_output = (
            f"a. {photo_a.photo_id}: {score_a:.3f}\n"
            f"b. {photo_b.photo_id}: {score_b:.3f}\n"
        )
        return Verdict(winner=winner, rationale=rationale, model=model, raw_output=raw_output)

    def get_ground_truth(self) -> dict[str, float]:
        """Get ground truth scores for debugging."""
        return self.ground_truth.copy()
