"""
Judgment oracle adapter.

Wraps a Judge so that callers always receive a structurally valid Verdict:
any judge failure other than missing credentials is logged and replaced by a
random fallback verdict.
"""

import json
import random
import threading
from dataclasses import replace
from typing import Any, cast

from ..exceptions import MissingCredentialsError, NoJsonInResponseError, ValidationError
from ..interfaces import Judge
from ..logging_config import get_logger
from ..models import JudgeOutcome, Photo, Verdict

logger = get_logger("judgment_oracle")

FALLBACK_RATIONALE = "Random fallback due to API error"


def extract_json_object(text: str) -> dict[str, Any]:
    """
    Return the first well-formed JSON object embedded in text.

    Models often wrap their answer in prose or a ```json fence, so every "{"
    is tried as the start of an object until one decodes.

    Raises:
        NoJsonInResponseError: If no JSON object is found
    """
    decoder = json.JSONDecoder()
    start = text.find("{")
    while start != -1:
        try:
            obj, _ = decoder.raw_decode(text, start)
        except json.JSONDecodeError:
            pass
        else:
            if isinstance(obj, dict):
                return cast(dict[str, Any], obj)
        start = text.find("{", start + 1)

    preview = text[:200] + "..." if len(text) > 200 else text
    raise NoJsonInResponseError(f"No JSON object found in response: {preview!r}")


class JudgmentOracle:
    """
    Fallback-wrapping adapter around a Judge.

    evaluate() exposes whether a verdict came from the judge or the fallback;
    judge() returns just the verdict.
    """

    def __init__(self, judge: Judge, rng: random.Random | None = None):
        """
        Initialize the oracle.

        Args:
            judge: Underlying judge that may raise on failure
            rng: Random source for fallback winners
        """
        self.backend: Judge = judge
        self.rng: random.Random = rng or random.Random()
        self.fallback_count: int = 0
        # Parallel judging calls evaluate() from worker threads
        self._lock: threading.Lock = threading.Lock()

    def evaluate(
        self, photo_a: Photo, photo_b: Photo, model: str, round_number: int = 0
    ) -> JudgeOutcome:
        """Compare two photos; never raises except for missing credentials."""
        try:
            verdict = self.backend.compare(photo_a, photo_b, model)
            if not isinstance(verdict, Verdict):
                raise ValidationError(
                    f"Judge returned {type(verdict).__name__}, expected Verdict"
                )
            verdict = replace(verdict, model=model, round=round_number)
        except MissingCredentialsError:
            raise
        except Exception as e:
            with self._lock:
                self.fallback_count += 1
                fallback = self._fallback_verdict(model, round_number)
            logger.warning(
                f"Judging {photo_a.photo_id} vs {photo_b.photo_id} failed "
                f"({type(e).__name__}: {e}); using random fallback"
            )
            return JudgeOutcome(
                verdict=fallback,
                is_fallback=True,
                error=f"{type(e).__name__}: {e}",
            )

        return JudgeOutcome(verdict=verdict)

    def judge(
        self, photo_a: Photo, photo_b: Photo, model: str, round_number: int = 0
    ) -> Verdict:
        """Compare two photos and return a valid verdict."""
        return self.evaluate(photo_a, photo_b, model, round_number).verdict

    def _fallback_verdict(self, model: str, round_number: int) -> Verdict:
        winner = "a" if self.rng.random() > 0.5 else "b"
        return Verdict(
            winner=winner,
            rationale=FALLBACK_RATIONALE,
            model=model,
            round=round_number,
        )
