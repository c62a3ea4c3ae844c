"""
OpenRouter judge implementation.

Sends both photos to a vision model through OpenRouter's chat completions
API and parses a {"winner", "explanation"} JSON answer.
"""

import base64
import os
from pathlib import Path

import httpx
from pydantic import TypeAdapter
from typing_extensions import TypedDict, override

from ..exceptions import MissingCredentialsError, OpenRouterJudgeError
from ..interfaces import Judge
from ..logging_config import get_logger
from ..models import Photo, Verdict
from .oracle import extract_json_object

logger = get_logger("openrouter_judge")

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1/chat/completions"
API_KEY_ENV = "OPENROUTER_API_KEY"

SYSTEM_PROMPT = "You are an expert photo judge."
JUDGE_PROMPT = """You will be shown two JPEG photos, encoded as base64 data URLs A and B.
Pick the better photograph purely on overall visual appeal, storytelling, and emotional impact.
Point out the positives and negatives per photo, in addition to the overall comparison.
Reply ONLY with:
{
  "winner": "<a|b>",
  "explanation": "<=40 words for comparison, and 20 words per photo>"
}"""


class ChatMessage(TypedDict):
    content: str | None


class ChatChoice(TypedDict):
    message: ChatMessage


class ChatCompletionResponse(TypedDict):
    """Subset of the OpenAI-compatible chat completion response we rely on."""

    choices: list[ChatChoice]


class JudgmentPayload(TypedDict):
    """Type definition for the judge's JSON answer."""

    winner: str
    explanation: str


def image_to_data_url(file_path: str) -> str:
    """Read an image file and encode it as a base64 data URL."""
    data = Path(file_path).read_bytes()
    mime_type = "image/png" if file_path.lower().endswith(".png") else "image/jpeg"
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


class OpenRouterJudge(Judge):
    """Vision-model judge backed by OpenRouter."""

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 60.0,
        max_tokens: int = 150,
        temperature: float = 0.1,
    ):
        """
        Initialize OpenRouter judge.

        Args:
            api_key: OpenRouter API key (defaults to OPENROUTER_API_KEY env var)
            client: Optional preconfigured httpx client
            timeout: Request timeout in seconds when creating our own client
            max_tokens: Completion token limit
            temperature: Sampling temperature

        Raises:
            MissingCredentialsError: If no API key is available
        """
        self.api_key: str | None = api_key or os.environ.get(API_KEY_ENV)
        if not self.api_key:
            raise MissingCredentialsError(f"{API_KEY_ENV} not found in environment variables")
        self.client: httpx.Client = client or httpx.Client(timeout=timeout)
        self.max_tokens: int = max_tokens
        self.temperature: float = temperature
        self.judge_id: str = "openrouter"

    @override
    def compare(self, photo_a: Photo, photo_b: Photo, model: str) -> Verdict:
        """
        Ask the model which of two photos is better.

        Raises:
            MissingCredentialsError: If the API key has been cleared
            OpenRouterJudgeError: On HTTP errors or empty responses
            NoJsonInResponseError: If the answer holds no JSON object
            pydantic.ValidationError: If the answer has the wrong shape
        """
        if not self.api_key:
            raise MissingCredentialsError(f"{API_KEY_ENV} not found in environment variables")

        request = self._build_request(photo_a, photo_b, model)
        content = self._invoke(request)
        payload = TypeAdapter(JudgmentPayload).validate_python(extract_json_object(content))

        winner = payload["winner"].strip().lower()
        if winner not in ("a", "b"):
            raise OpenRouterJudgeError(f"Invalid winner in judgment response: {payload['winner']!r}")
        if not payload["explanation"].strip():
            raise OpenRouterJudgeError("Invalid explanation in judgment response")

        return Verdict(
            winner=winner,
            rationale=payload["explanation"],
            model=model,
            raw_output=content,
        )

    def _build_request(self, photo_a: Photo, photo_b: Photo, model: str) -> dict[str, object]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": JUDGE_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_to_data_url(photo_a.path)}},
                        {"type": "text", "text": "Photo A (above)"},
                        {"type": "image_url", "image_url": {"url": image_to_data_url(photo_b.path)}},
                        {"type": "text", "text": "Photo B (above)"},
                    ],
                },
            ],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    def _invoke(self, request: dict[str, object]) -> str:
        """POST the request and return the message content."""
        logger.debug(f"Calling OpenRouter model {request['model']}")
        response = self.client.post(
            OPENROUTER_BASE_URL,
            json=request,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
                "X-Title": "Photo Tournament",
            },
        )
        if response.is_error:
            raise OpenRouterJudgeError(
                f"OpenRouter API error: {response.status_code} {response.reason_phrase}"
            )

        data = TypeAdapter(ChatCompletionResponse).validate_python(response.json())
        if not data["choices"] or not data["choices"][0]["message"]["content"]:
            raise OpenRouterJudgeError("No content in OpenRouter response")

        content = data["choices"][0]["message"]["content"]
        logger.debug(f"OpenRouter response: {content}")
        return content
