"""
ELO rating calculations.

Pure math module; apply_match is the only helper that touches Photo objects.
"""

import math

from ..models import Photo

DEFAULT_K_FACTOR = 32.0


def expected_score(score_a: float, score_b: float) -> float:
    """Probability that A beats B: 1 / (1 + 10^((B - A) / 400))."""
    return 1.0 / (1.0 + math.pow(10.0, (score_b - score_a) / 400.0))


def update_ratings(
    winner_score: float, loser_score: float, k: float = DEFAULT_K_FACTOR
) -> tuple[float, float]:
    """
    Compute new scores after a match.

    Both expectations are computed independently from the pre-match scores
    and applied as k*(1 - E_w) and k*(0 - E_l). They sum to 1, so the pair's
    total only drifts by floating-point rounding.

    Args:
        winner_score: Current score of the winner
        loser_score: Current score of the loser
        k: K-factor controlling update size

    Returns:
        (new_winner_score, new_loser_score)
    """
    expected_winner = expected_score(winner_score, loser_score)
    expected_loser = expected_score(loser_score, winner_score)

    new_winner = winner_score + k * (1.0 - expected_winner)
    new_loser = loser_score + k * (0.0 - expected_loser)
    return new_winner, new_loser


def apply_match(winner: Photo, loser: Photo, k: float = DEFAULT_K_FACTOR) -> None:
    """Update two photos' scores in place after winner beat loser."""
    winner.score, loser.score = update_ratings(winner.score, loser.score, k)
