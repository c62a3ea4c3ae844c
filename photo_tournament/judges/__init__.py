"""
Judge implementations.
"""

from .dummy_judge import DummyJudge
from .openrouter_judge import OpenRouterJudge
from .oracle import FALLBACK_RATIONALE, JudgmentOracle, extract_json_object
from .sim_judge import SimulatedJudge

__all__ = [
    "FALLBACK_RATIONALE",
    "DummyJudge",
    "JudgmentOracle",
    "OpenRouterJudge",
    "SimulatedJudge",
    "extract_json_object",
]
