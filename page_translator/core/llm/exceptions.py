"""
Exceptions raised by LLM providers.

All of them are scoped to a single request: the orchestrator catches them
per unit and retries or gives up on that unit only.
"""


class TranslationServiceError(Exception):
    """Base class for translation service failures."""


class ServiceUnavailableError(TranslationServiceError):
    """The server could not be reached or kept answering with errors."""

    def __init__(self, message: str, status_code: int = None):
        self.status_code = status_code
        super().__init__(message)


class TranslationTimeoutError(TranslationServiceError):
    """The request did not complete within the configured timeout."""


class ContextOverflowError(TranslationServiceError):
    """The prompt does not fit in the model's context window. Retrying will not help."""
