"""
Tests for the judgment oracle and the judge implementations.

The OpenRouter judge is exercised through httpx.MockTransport; no network
access is needed.
"""

import json
import random
import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import httpx
import pytest

from photo_tournament.exceptions import (
    MissingCredentialsError,
    NoJsonInResponseError,
    OpenRouterJudgeError,
    ValidationError,
)
from photo_tournament.interfaces import Judge
from photo_tournament.judges import (
    FALLBACK_RATIONALE,
    DummyJudge,
    JudgmentOracle,
    OpenRouterJudge,
    SimulatedJudge,
    extract_json_object,
)
from photo_tournament.judges.openrouter_judge import API_KEY_ENV, OPENROUTER_BASE_URL
from photo_tournament.models import Photo, Verdict


class FailingJudge(Judge):
    """Judge that always raises the given exception."""

    def __init__(self, error: Exception):
        self.error = error
        self.calls = 0

    def compare(self, photo_a: Photo, photo_b: Photo, model: str) -> Verdict:
        self.calls += 1
        raise self.error


class WrongTypeJudge(Judge):
    """Judge that returns something other than a Verdict."""

    def compare(self, photo_a: Photo, photo_b: Photo, model: str) -> Verdict:
        return {"winner": "a"}  # type: ignore[return-value]


def make_pair(directory: str | None = None) -> tuple[Photo, Photo]:
    if directory is None:
        return Photo("item-0", "/photos/a.jpg"), Photo("item-1", "/photos/b.png")
    path_a = Path(directory) / "a.jpg"
    path_b = Path(directory) / "b.png"
    _ = path_a.write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
    _ = path_b.write_bytes(b"\x89PNGfake-png")
    return Photo("item-0", str(path_a)), Photo("item-1", str(path_b))


def chat_response(content: str | None) -> dict[str, object]:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def mock_client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestExtractJsonObject:
    """Test JSON extraction from model output."""

    def test_plain_object(self) -> None:
        assert extract_json_object('{"winner": "a", "explanation": "x"}') == {
            "winner": "a",
            "explanation": "x",
        }

    def test_fenced_object_with_prose(self) -> None:
        """Objects inside code fences and chatter should be found."""
        # Arrange
        text = 'Here is my answer:\n```json\n{"winner": "b", "explanation": "sharper"}\n```\nThanks!'

        # Act
        result = extract_json_object(text)

        # Assert
        assert result["winner"] == "b"
        assert result["explanation"] == "sharper"

    def test_nested_object_returns_outer(self) -> None:
        assert extract_json_object('x {"a": {"b": 1}} y') == {"a": {"b": 1}}

    def test_skips_braces_that_are_not_json(self) -> None:
        """A stray brace before the real object should not stop the search."""
        assert extract_json_object('{not json} then {"winner": "a"}') == {"winner": "a"}

    def test_first_object_wins(self) -> None:
        assert extract_json_object('{"winner": "a"} {"winner": "b"}') == {"winner": "a"}

    @pytest.mark.parametrize("text", ["", "no json here", "[1, 2, 3]", "{broken"])
    def test_no_object_raises(self, text: str) -> None:
        with pytest.raises(NoJsonInResponseError):
            _ = extract_json_object(text)


class TestJudgmentOracle:
    """Test the fallback-wrapping oracle."""

    def test_passes_through_valid_verdict(self) -> None:
        """A working judge's verdict should be returned and stamped."""
        # Arrange
        oracle = JudgmentOracle(DummyJudge())
        photo_a, photo_b = make_pair()

        # Act
        outcome = oracle.evaluate(photo_a, photo_b, "test-model", round_number=3)

        # Assert
        assert outcome.is_fallback is False
        assert outcome.error is None
        assert outcome.verdict.winner == "a"
        assert outcome.verdict.model == "test-model"
        assert outcome.verdict.round == 3
        assert oracle.fallback_count == 0

    @pytest.mark.parametrize(
        "error",
        [
            RuntimeError("boom"),
            httpx.ConnectError("unreachable"),
            OpenRouterJudgeError("500"),
            NoJsonInResponseError("nothing"),
            ValueError("bad"),
        ],
    )
    def test_failures_become_fallback(self, error: Exception) -> None:
        """Any judge failure should produce a valid random verdict."""
        # Arrange
        oracle = JudgmentOracle(FailingJudge(error), rng=random.Random(0))
        photo_a, photo_b = make_pair()

        # Act
        outcome = oracle.evaluate(photo_a, photo_b, "test-model", round_number=2)

        # Assert
        assert outcome.is_fallback is True
        assert outcome.verdict.winner in ("a", "b")
        assert outcome.verdict.rationale == FALLBACK_RATIONALE
        assert outcome.verdict.round == 2
        assert outcome.error is not None and type(error).__name__ in outcome.error
        assert oracle.fallback_count == 1

    def test_wrong_return_type_becomes_fallback(self) -> None:
        oracle = JudgmentOracle(WrongTypeJudge())
        photo_a, photo_b = make_pair()

        outcome = oracle.evaluate(photo_a, photo_b, "test-model")

        assert outcome.is_fallback is True
        assert outcome.verdict.rationale == FALLBACK_RATIONALE

    def test_fallback_picks_both_sides(self) -> None:
        """Fallback winners should be random, not stuck on one side."""
        # Arrange
        oracle = JudgmentOracle(FailingJudge(RuntimeError("down")), rng=random.Random(7))
        photo_a, photo_b = make_pair()

        # Act
        winners = {oracle.judge(photo_a, photo_b, "m").winner for _ in range(200)}

        # Assert
        assert winners == {"a", "b"}
        assert oracle.fallback_count == 200

    def test_judge_returns_backend_verdict(self) -> None:
        judge = DummyJudge()
        oracle = JudgmentOracle(judge)
        photo_a, photo_b = make_pair()

        verdict = oracle.judge(photo_a, photo_b, "test-model", round_number=4)

        assert oracle.backend is judge
        assert verdict.winner == "a"
        assert verdict.model == "test-model"
        assert verdict.round == 4

    def test_fallback_count_is_exact_across_threads(self) -> None:
        """Concurrent failures must each be counted once."""
        # Arrange
        oracle = JudgmentOracle(FailingJudge(RuntimeError("down")), rng=random.Random(1))
        photo_a, photo_b = make_pair()

        # Act
        with ThreadPoolExecutor(max_workers=8) as executor:
            outcomes = list(
                executor.map(lambda _: oracle.evaluate(photo_a, photo_b, "m"), range(400))
            )

        # Assert
        assert all(o.is_fallback for o in outcomes)
        assert oracle.fallback_count == 400

    def test_missing_credentials_propagate(self) -> None:
        """Missing credentials are fatal and must not be masked."""
        # Arrange
        oracle = JudgmentOracle(FailingJudge(MissingCredentialsError("no key")))
        photo_a, photo_b = make_pair()

        # Act & Assert
        with pytest.raises(MissingCredentialsError):
            _ = oracle.evaluate(photo_a, photo_b, "test-model")
        assert oracle.fallback_count == 0


class TestOpenRouterJudge:
    """Test the OpenRouter judge against a mocked HTTP transport."""

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv(API_KEY_ENV, raising=False)
        with pytest.raises(MissingCredentialsError):
            _ = OpenRouterJudge()

    def test_api_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv(API_KEY_ENV, "env-key")
        judge = OpenRouterJudge(client=mock_client(lambda request: httpx.Response(200)))
        assert judge.api_key == "env-key"

    def test_successful_comparison(self) -> None:
        """A fenced JSON answer should become a verdict; the request should carry both images."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            photo_a, photo_b = make_pair(temp_dir)
            captured: list[httpx.Request] = []

            def handler(request: httpx.Request) -> httpx.Response:
                captured.append(request)
                return httpx.Response(
                    200,
                    json=chat_response(
                        'Sure!\n```json\n{"winner": "B", "explanation": "Better light"}\n```'
                    ),
                )

            judge = OpenRouterJudge(api_key="test-key", client=mock_client(handler))

            # Act
            verdict = judge.compare(photo_a, photo_b, "vision-model")

            # Assert
            assert verdict.winner == "b"
            assert verdict.rationale == "Better light"
            assert verdict.model == "vision-model"
            assert "Better light" in verdict.raw_output

            assert len(captured) == 1
            request = captured[0]
            assert str(request.url) == OPENROUTER_BASE_URL
            assert request.headers["Authorization"] == "Bearer test-key"
            body = json.loads(request.content)
            assert body["model"] == "vision-model"
            assert body["max_tokens"] == 150
            assert body["temperature"] == 0.1
            urls = [
                part["image_url"]["url"]
                for part in body["messages"][1]["content"]
                if part["type"] == "image_url"
            ]
            assert urls[0].startswith("data:image/jpeg;base64,")
            assert urls[1].startswith("data:image/png;base64,")

    def test_http_error_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            photo_a, photo_b = make_pair(temp_dir)
            judge = OpenRouterJudge(
                api_key="test-key",
                client=mock_client(lambda request: httpx.Response(500, json={"error": "down"})),
            )

            with pytest.raises(OpenRouterJudgeError):
                _ = judge.compare(photo_a, photo_b, "vision-model")

    def test_empty_content_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            photo_a, photo_b = make_pair(temp_dir)
            judge = OpenRouterJudge(
                api_key="test-key",
                client=mock_client(lambda request: httpx.Response(200, json=chat_response(None))),
            )

            with pytest.raises(OpenRouterJudgeError):
                _ = judge.compare(photo_a, photo_b, "vision-model")

    def test_invalid_winner_raises(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            photo_a, photo_b = make_pair(temp_dir)
            answer = json.dumps({"winner": "c", "explanation": "neither"})
            judge = OpenRouterJudge(
                api_key="test-key",
                client=mock_client(lambda request: httpx.Response(200, json=chat_response(answer))),
            )

            with pytest.raises(OpenRouterJudgeError):
                _ = judge.compare(photo_a, photo_b, "vision-model")

    @pytest.mark.parametrize(
        "content",
        [
            "I cannot decide.",
            '{"winner": "a"}',
            '{"winner": "a", "explanation": "   "}',
            '{"winner": "x", "explanation": "nope"}',
        ],
    )
    def test_bad_answers_fall_back_through_oracle(self, content: str) -> None:
        """Unusable model answers should end up as fallback verdicts."""
        with tempfile.TemporaryDirectory() as temp_dir:
            # Arrange
            photo_a, photo_b = make_pair(temp_dir)
            judge = OpenRouterJudge(
                api_key="test-key",
                client=mock_client(lambda request: httpx.Response(200, json=chat_response(content))),
            )
            oracle = JudgmentOracle(judge, rng=random.Random(1))

            # Act
            outcome = oracle.evaluate(photo_a, photo_b, "vision-model", round_number=1)

            # Assert
            assert outcome.is_fallback is True
            assert outcome.verdict.rationale == FALLBACK_RATIONALE

    def test_unreadable_photo_falls_back_through_oracle(self) -> None:
        """A photo file that cannot be read should not abort the tournament."""
        # Arrange
        judge = OpenRouterJudge(
            api_key="test-key",
            client=mock_client(lambda request: httpx.Response(200, json=chat_response("{}"))),
        )
        oracle = JudgmentOracle(judge)
        photo_a = Photo("item-0", "/nonexistent/a.jpg")
        photo_b = Photo("item-1", "/nonexistent/b.jpg")

        # Act
        outcome = oracle.evaluate(photo_a, photo_b, "vision-model")

        # Assert
        assert outcome.is_fallback is True


class TestSimulatedJudge:
    """Test SimulatedJudge behavior."""

    def test_noiseless_judge_follows_ground_truth(self) -> None:
        """Without noise the photo with higher ground truth always wins."""
        # Arrange
        judge = SimulatedJudge({"item-0": 0.2, "item-1": 0.9}, noise=0.0)
        photo_a, photo_b = make_pair()

        # Act
        forward = judge.compare(photo_a, photo_b, "sim")
        backward = judge.compare(photo_b, photo_a, "sim")

        # Assert
        assert forward.winner == "b"
        assert backward.winner == "a"
        assert forward.rationale.startswith("Simulated evaluation:")

    def test_seeded_noise_is_reproducible(self) -> None:
        truth = {"item-0": 0.5, "item-1": 0.55}
        photo_a, photo_b = make_pair()

        first = [SimulatedJudge(truth, noise=0.5, seed=3).compare(photo_a, photo_b, "m").winner for _ in range(5)]
        second = [SimulatedJudge(truth, noise=0.5, seed=3).compare(photo_a, photo_b, "m").winner for _ in range(5)]

        assert first == second

    def test_noise_is_clamped(self) -> None:
        assert SimulatedJudge({}, noise=5.0).noise == 1.0
        assert SimulatedJudge({}, noise=-1.0).noise == 0.0

    def test_ground_truth_copy(self) -> None:
        judge = SimulatedJudge({"item-0": 1.0})
        truth = judge.get_ground_truth()
        truth["item-0"] = 0.0
        assert judge.get_ground_truth() == {"item-0": 1.0}


class TestDummyJudge:
    """Test DummyJudge behavior."""

    def test_deterministic_prefers_smaller_id(self) -> None:
        judge = DummyJudge(mode="deterministic")
        photo_a, photo_b = make_pair()

        assert judge.compare(photo_a, photo_b, "m").winner == "a"
        assert judge.compare(photo_b, photo_a, "m").winner == "b"

    def test_random_mode_returns_valid_sides(self) -> None:
        judge = DummyJudge(mode="random", seed=1)
        photo_a, photo_b = make_pair()

        winners = {judge.compare(photo_a, photo_b, "m").winner for _ in range(50)}

        assert winners <= {"a", "b"}

    def test_invalid_mode(self) -> None:
        with pytest.raises(ValidationError):
            _ = DummyJudge(mode="psychic")
