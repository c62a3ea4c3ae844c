"""
Tournament configuration loading.

Accepts a JSON object (inline or from a file) using either the camelCase keys
of the snapshot format or snake_case keys, and validates it into a
TournamentConfig.
"""

import json
from pathlib import Path
from typing import Any, cast

from pydantic import TypeAdapter, ValidationError as PydanticValidationError
from typing_extensions import TypedDict

from .exceptions import ConfigurationError
from .interfaces import ConfigState
from .logging_config import get_logger
from .models import TournamentConfig

logger = get_logger("config")

DEFAULT_ALGORITHM = "elo"
DEFAULT_ROUNDS = 3
DEFAULT_MODEL = "google/gemini-2.5-flash-preview-05-20"
DEFAULT_ELIMINATION_RATE = 0.5

_CAMEL_TO_SNAKE = {
    "eliminationRate": "elimination_rate",
    "batchSize": "batch_size",
    "tournamentId": "tournament_id",
}


class ConfigInput(TypedDict, total=False):
    """Type definition for user-supplied configuration."""
    algorithm: str
    rounds: int
    model: str
    elimination_rate: float | None
    batch_size: int | None
    tournament_id: str | None
    seed: int | None
    group: str | None


def default_config() -> TournamentConfig:
    """Configuration used when none is supplied."""
    return TournamentConfig(
        algorithm=DEFAULT_ALGORITHM,
        rounds=DEFAULT_ROUNDS,
        model=DEFAULT_MODEL,
        elimination_rate=DEFAULT_ELIMINATION_RATE,
    )


def config_from_dict(data: dict[str, Any]) -> TournamentConfig:
    """
    Build a TournamentConfig from a mapping.

    Raises:
        ConfigurationError: If the mapping has the wrong shape or invalid values
    """
    normalized = {_CAMEL_TO_SNAKE.get(key, key): value for key, value in data.items()}
    try:
        validated = TypeAdapter(ConfigInput).validate_python(normalized)
    except PydanticValidationError as e:
        raise ConfigurationError(f"Invalid tournament configuration: {e}") from e
    return TournamentConfig(**validated)


def config_to_dict(config: TournamentConfig) -> ConfigState:
    """Serialize a config using the snapshot's camelCase keys."""
    return {
        "algorithm": config.algorithm,
        "rounds": config.rounds,
        "model": config.model,
        "eliminationRate": config.elimination_rate,
        "batchSize": config.batch_size,
        "tournamentId": config.tournament_id,
        "seed": config.seed,
        "group": config.group,
    }


def load_config(source: str | None = None) -> TournamentConfig:
    """
    Load configuration from an inline JSON object, a JSON file path, or defaults.

    Args:
        source: JSON text, path to a .json file, or None for defaults

    Raises:
        ConfigurationError: If the source cannot be read or is invalid
    """
    if source is None:
        config = default_config()
        logger.info(f"Using default configuration: {config}")
        return config

    text = source.strip()
    if not text.startswith("{"):
        path = Path(source)
        if not path.is_file():
            raise ConfigurationError(f"Configuration is neither JSON nor an existing file: {source}")
        logger.info(f"Reading configuration from {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ConfigurationError(f"Configuration file {path} is not UTF-8: {e}") from e

    try:
        data: object = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON configuration: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError("Configuration must be a JSON object")

    return config_from_dict(cast(dict[str, Any], data))
