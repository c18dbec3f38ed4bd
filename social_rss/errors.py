from __future__ import annotations


class ConfigError(RuntimeError):
    """Raised when configuration is missing or invalid."""


class PayloadError(RuntimeError):
    """Raised when a raw feed payload cannot be read or decoded."""


class ProviderError(RuntimeError):
    """Raised when a provider response carries an error instead of a feed."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"{provider} error: {message}")
