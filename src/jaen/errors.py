from __future__ import annotations


class TranslationError(RuntimeError):
    """Base for errors that end a single translate invocation."""


class ConfigError(TranslationError):
    """Provider settings are incomplete: missing key/endpoint or no provider selected."""


class ProviderError(TranslationError):
    """The provider answered with a non-success status or could not be reached."""

    def __init__(self, provider: str, *, status: int | None = None, message: str | None = None) -> None:
        self.provider = provider
        self.status = status
        self.message = message
        if status is not None:
            text = f"{provider} error {status}"
            if message:
                text = f"{text}: {message}"
        else:
            text = f"{provider} request failed: {message or 'unknown error'}"
        super().__init__(text)
