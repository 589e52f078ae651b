"""
Factory for creating LLM provider instances.
"""

from page_translator.config import API_ENDPOINT, DEFAULT_MODEL, OLLAMA_NUM_CTX, OPENAI_API_KEY
from .base import LLMProvider
from .providers.ollama import OllamaProvider
from .providers.openai import OpenAICompatibleProvider


def create_llm_provider(provider_type: str = "ollama", **kwargs) -> LLMProvider:
    """
    Create an LLM provider instance.

    Args:
        provider_type: Type of provider ("ollama" or "openai")
        **kwargs: Provider-specific parameters:
            - api_endpoint: API endpoint URL
            - model: Model name/identifier
            - api_key: API key (OpenAI)
            - context_window: Context window size
            - log_callback: Logging callback function
            - http_client: Pre-built httpx.AsyncClient (tests, shared pools)

    Returns:
        Instantiated LLMProvider subclass

    Raises:
        ValueError: If provider_type is unknown or required parameters are missing

    Examples:
        >>> provider = create_llm_provider("ollama", model="llama3")
        >>> provider = create_llm_provider("openai", api_endpoint="http://localhost:1234/v1", model="qwen")
    """
    provider_type = (provider_type or "ollama").lower()

    if provider_type == "ollama":
        return OllamaProvider(
            api_endpoint=kwargs.get("api_endpoint") or API_ENDPOINT,
            model=kwargs.get("model") or DEFAULT_MODEL,
            context_window=kwargs.get("context_window") or OLLAMA_NUM_CTX,
            log_callback=kwargs.get("log_callback"),
            http_client=kwargs.get("http_client"),
        )
    elif provider_type == "openai":
        api_endpoint = kwargs.get("api_endpoint")
        if not api_endpoint:
            raise ValueError("OpenAI-compatible provider requires an api_endpoint.")
        return OpenAICompatibleProvider(
            api_endpoint=api_endpoint,
            model=kwargs.get("model") or DEFAULT_MODEL,
            api_key=kwargs.get("api_key") or OPENAI_API_KEY,
            context_window=kwargs.get("context_window") or OLLAMA_NUM_CTX,
            log_callback=kwargs.get("log_callback"),
            http_client=kwargs.get("http_client"),
        )
    else:
        raise ValueError(f"Unknown provider type: {provider_type}")
