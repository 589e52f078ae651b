"""
LLM Provider System

Public API:
    - Exceptions: TranslationServiceError, ServiceUnavailableError,
      TranslationTimeoutError, ContextOverflowError
    - Base classes: LLMProvider, LLMResponse
    - Providers: OllamaProvider, OpenAICompatibleProvider
    - Factory: create_llm_provider

Example usage:
    >>> from page_translator.core.llm import create_llm_provider
    >>> provider = create_llm_provider("ollama", model="llama3")
    >>> response = await provider.generate("Translate: Hello")
"""

# Exceptions
from .exceptions import (
    TranslationServiceError,
    ServiceUnavailableError,
    TranslationTimeoutError,
    ContextOverflowError,
)

# Base classes
from .base import LLMProvider, LLMResponse, extract_tagged

# Providers
from .providers.ollama import OllamaProvider
from .providers.openai import OpenAICompatibleProvider

# Factory
from .factory import create_llm_provider

__all__ = [
    # Exceptions
    'TranslationServiceError',
    'ServiceUnavailableError',
    'TranslationTimeoutError',
    'ContextOverflowError',

    # Base
    'LLMProvider',
    'LLMResponse',
    'extract_tagged',

    # Providers
    'OllamaProvider',
    'OpenAICompatibleProvider',

    # Factory
    'create_llm_provider',
]
