"""
Rating model.

Pure ELO-style score updates shared by the controller's judgment step and the
ELO elimination algorithm.
"""

from .elo import DEFAULT_K_FACTOR, apply_match, expected_score, update_ratings

__all__ = ["DEFAULT_K_FACTOR", "apply_match", "expected_score", "update_ratings"]
