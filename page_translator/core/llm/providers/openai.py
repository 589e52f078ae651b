"""
OpenAI-compatible provider implementation.

This module provides the OpenAICompatibleProvider class for interacting with
OpenAI API and compatible endpoints (llama.cpp, LM Studio, vLLM, OpenAI, etc.).
Streaming uses server-sent events: "data: {json}" lines ending with
"data: [DONE]".
"""

from typing import AsyncIterator, Callable, Dict, Optional

import httpx

from page_translator.config import OLLAMA_NUM_CTX, REQUEST_TIMEOUT
from ..base import LLMProvider, LLMResponse, parse_json_line


class OpenAICompatibleProvider(LLMProvider):
    """OpenAI-compatible API provider (works with llama.cpp, LM Studio, vLLM, OpenAI, etc.)"""

    def __init__(self, api_endpoint: str, model: str, api_key: Optional[str] = None,
                 context_window: int = OLLAMA_NUM_CTX, log_callback: Optional[Callable] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(model, http_client=http_client, log_callback=log_callback)
        self.api_endpoint = self._normalize_endpoint(api_endpoint)
        self.api_key = api_key
        self.context_window = context_window

    @staticmethod
    def _normalize_endpoint(endpoint: str) -> str:
        """
        Complete a base URL ending in /v1 with /chat/completions.

        http://localhost:1234/v1/ -> http://localhost:1234/v1/chat/completions
        Any other path is kept as given.
        """
        if not endpoint:
            return endpoint

        endpoint = endpoint.rstrip('/')
        if endpoint.endswith('/v1'):
            return endpoint + '/chat/completions'
        return endpoint

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _payload(self, prompt: str, system_prompt: Optional[str], stream: bool) -> dict:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        return {
            "model": self.model,
            "messages": messages,
            "stream": stream,
            # Local servers that support it skip <think> output
            "chat_template_kwargs": {
                "enable_thinking": False
            }
        }

    async def generate(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                       system_prompt: Optional[str] = None) -> LLMResponse:
        """
        Generate text using an OpenAI compatible API.

        Raises:
            TranslationServiceError: After the last failed attempt
        """
        data = await self._post_json(self._payload(prompt, system_prompt, stream=False), timeout)

        choice = (data.get("choices") or [{}])[0]
        usage = data.get("usage") or {}
        prompt_tokens = usage.get("prompt_tokens", 0)
        completion_tokens = usage.get("completion_tokens", 0)

        return LLMResponse(
            content=(choice.get("message") or {}).get("content") or "",
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            context_used=prompt_tokens + completion_tokens,
            context_limit=self.context_window,
            was_truncated=choice.get("finish_reason") == "length",
        )

    async def generate_stream(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                              system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Yield content deltas from the SSE stream."""
        def parse_line(line: str) -> Optional[str]:
            if not line.startswith("data:"):
                return None
            data = line[5:].strip()
            if not data or data == "[DONE]":
                return None
            chunk = parse_json_line(data)
            if not isinstance(chunk, dict):
                return None
            choice = (chunk.get("choices") or [{}])[0]
            return (choice.get("delta") or {}).get("content")

        async for piece in self._stream_lines(self._payload(prompt, system_prompt, stream=True),
                                              timeout, parse_line):
            yield piece
