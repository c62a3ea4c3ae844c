"""
Elimination algorithm implementations.

Available implementations:
- PairwiseElimination: global score cut over all active photos
- NwiseElimination: per-batch score cut with at least one elimination per batch
- EloElimination: synthetic ELO churn followed by a global score cut
"""

import random

from ..exceptions import ConfigurationError
from ..interfaces import EliminationAlgorithm
from .elo import EloElimination
from .nwise import NwiseElimination
from .pairwise import PairwiseElimination

ALGORITHMS: dict[str, type[EliminationAlgorithm]] = {
    "pairwise": PairwiseElimination,
    "nwise": NwiseElimination,
    "elo": EloElimination,
}


def create_algorithm(name: str, rng: random.Random | None = None) -> EliminationAlgorithm:
    """Instantiate the elimination algorithm registered under name."""
    try:
        algorithm_cls = ALGORITHMS[name]
    except KeyError:
        raise ConfigurationError(
            f"Unknown algorithm: {name!r} (expected one of {sorted(ALGORITHMS)})"
        ) from None
    return algorithm_cls(rng=rng)


__all__ = [
    "ALGORITHMS",
    "EloElimination",
    "NwiseElimination",
    "PairwiseElimination",
    "create_algorithm",
]
