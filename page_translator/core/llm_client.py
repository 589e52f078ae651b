"""
Centralized LLM client for all API communication
"""
from typing import Callable, Optional, Sequence

import httpx

from page_translator.config import (API_ENDPOINT, DEFAULT_MODEL, LANGUAGE_TAG_IN,
                                    LANGUAGE_TAG_OUT, REQUEST_TIMEOUT, TranslationConfig)
from page_translator.core.llm import (ContextOverflowError, LLMProvider, LLMResponse,
                                      TranslationServiceError, create_llm_provider,
                                      extract_tagged)
from page_translator.prompts import generate_language_detection_prompt, generate_translation_prompt

# Re-export for convenience
__all__ = ['LLMClient', 'create_llm_client', 'ContextOverflowError', 'TranslationServiceError', 'LLMResponse']


class LLMClient:
    """
    Translation service used by the page translator.

    translate_markup() and detect_language() are the whole contract; any
    object with the same two coroutines can stand in for it.
    """

    def __init__(self, provider_type: str = "ollama", **kwargs):
        self.provider_type = provider_type
        self.provider_kwargs = kwargs
        self._provider: Optional[LLMProvider] = None
        self.api_endpoint = kwargs.get("api_endpoint") or API_ENDPOINT
        self.model = kwargs.get("model") or DEFAULT_MODEL
        self.timeout = kwargs.pop("timeout", REQUEST_TIMEOUT)

    def _get_provider(self) -> LLMProvider:
        """Get or create the LLM provider"""
        if not self._provider:
            self._provider = create_llm_provider(self.provider_type, **self.provider_kwargs)
        return self._provider

    async def generate(self, prompt: str, system_prompt: Optional[str] = None,
                       timeout: Optional[int] = None) -> LLMResponse:
        provider = self._get_provider()
        return await provider.generate(prompt, timeout or self.timeout, system_prompt=system_prompt)

    async def generate_text(self, prompt: str, system_prompt: Optional[str] = None,
                            stream: bool = False, on_chunk: Optional[Callable[[str], None]] = None) -> str:
        """
        Full response text, requested in one piece or streamed.

        Streamed chunks are concatenated; on_chunk sees each one as it arrives.
        """
        provider = self._get_provider()
        if not stream:
            response = await provider.generate(prompt, self.timeout, system_prompt=system_prompt)
            if on_chunk:
                on_chunk(response.content)
            return response.content

        pieces = []
        async for piece in provider.generate_stream(prompt, self.timeout, system_prompt=system_prompt):
            pieces.append(piece)
            if on_chunk:
                on_chunk(piece)
        return "".join(pieces)

    async def translate_markup(
        self,
        markup: str,
        source_language: str,
        target_language: str,
        tokens: Sequence[str] = (),
        stream: bool = False,
        on_chunk: Optional[Callable[[str], None]] = None
    ) -> Optional[str]:
        """
        Translate one unit's markup.

        Returns:
            The translated markup, or None if the response lacked the
            TRANSLATION tags

        Raises:
            TranslationServiceError: If the service failed for this request
        """
        prompt = generate_translation_prompt(markup, source_language, target_language, tokens=tokens)
        raw = await self.generate_text(prompt.user, prompt.system, stream=stream, on_chunk=on_chunk)
        return self._get_provider().extract_translation(raw)

    async def detect_language(self, sample_text: str) -> Optional[str]:
        """
        Ask the model which language sample_text is written in.

        Returns:
            English language name, or None if the answer could not be read
        """
        prompt = generate_language_detection_prompt(sample_text)
        raw = await self.generate_text(prompt.user, prompt.system)
        language = extract_tagged(raw, LANGUAGE_TAG_IN, LANGUAGE_TAG_OUT)
        return language or None

    async def close(self):
        """Close the HTTP client and clean up resources"""
        if self._provider:
            await self._provider.close()
            self._provider = None


def create_llm_client(llm_provider: str, api_endpoint: str, model_name: str,
                      openai_api_key: Optional[str] = None,
                      context_window: Optional[int] = None,
                      timeout: Optional[int] = None,
                      log_callback: Optional[Callable] = None,
                      http_client: Optional[httpx.AsyncClient] = None) -> LLMClient:
    """
    Factory function to create an LLM client for a provider.

    Args:
        llm_provider: Provider type ('ollama' or 'openai')
        api_endpoint: API endpoint of the Ollama instance or OpenAI-compatible API
        model_name: Model name to use
        openai_api_key: API key for the OpenAI-compatible provider
        context_window: Context window size for the model
        timeout: Request timeout in seconds
        log_callback: Callback function for logging
        http_client: Optional pre-built httpx.AsyncClient

    Raises:
        ValueError: For an unknown provider
    """
    kwargs = dict(api_endpoint=api_endpoint, model=model_name, context_window=context_window,
                  log_callback=log_callback, http_client=http_client,
                  timeout=timeout or REQUEST_TIMEOUT)
    if llm_provider == "openai":
        return LLMClient(provider_type="openai", api_key=openai_api_key, **kwargs)
    if llm_provider == "ollama":
        return LLMClient(provider_type="ollama", **kwargs)
    raise ValueError(f"Unknown provider type: {llm_provider}")


def create_llm_client_from_config(config: TranslationConfig, log_callback: Optional[Callable] = None,
                                  http_client: Optional[httpx.AsyncClient] = None) -> LLMClient:
    return create_llm_client(
        config.llm_provider,
        config.api_endpoint,
        config.model,
        openai_api_key=config.openai_api_key,
        context_window=config.context_window,
        timeout=config.timeout,
        log_callback=log_callback,
        http_client=http_client,
    )
