"""
Exception classes for the photo tournament system.

Centralized location for all custom exceptions to avoid circular imports.
"""


class TournamentError(Exception):
    """Base exception for all photo tournament errors."""
    pass


class JudgeError(TournamentError):
    """Base exception for all judge-related errors."""
    pass


class OpenRouterJudgeError(JudgeError):
    """Raised when the OpenRouter API call fails or returns an unusable response."""
    pass


class NoJsonInResponseError(JudgeError):
    """Raised when no JSON object can be found in a judge response."""
    pass


class ValidationError(TournamentError):
    """Base exception for validation-related errors."""
    pass


class ConfigurationError(TournamentError):
    """Base exception for configuration-related errors."""
    pass


class MissingCredentialsError(ConfigurationError):
    """Raised when a judge requires credentials that are not available."""
    pass


class StorageError(TournamentError):
    """Raised when persisted tournament state cannot be read back."""
    pass
