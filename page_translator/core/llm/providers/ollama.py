"""
Ollama provider implementation.

Talks to a local Ollama server through /api/generate. Streaming responses
are newline-delimited JSON objects, each carrying a "response" text piece;
the last one has "done": true.
"""

from typing import AsyncIterator, Callable, Optional

import httpx

from page_translator.config import OLLAMA_NUM_CTX, REQUEST_TIMEOUT
from ..base import LLMProvider, LLMResponse, parse_json_line
from ..exceptions import ContextOverflowError


class OllamaProvider(LLMProvider):
    """Local Ollama server provider"""

    def __init__(self, api_endpoint: str, model: str, context_window: int = OLLAMA_NUM_CTX,
                 log_callback: Optional[Callable] = None,
                 http_client: Optional[httpx.AsyncClient] = None):
        super().__init__(model, http_client=http_client, log_callback=log_callback)
        self.api_endpoint = api_endpoint
        self.context_window = context_window

    def _payload(self, prompt: str, system_prompt: Optional[str], stream: bool) -> dict:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "stream": stream,
            "think": False,
            "options": {
                "num_ctx": self.context_window,
            },
        }
        if system_prompt:
            payload["system"] = system_prompt
        return payload

    async def generate(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                       system_prompt: Optional[str] = None) -> LLMResponse:
        """
        Generate text using Ollama.

        Raises:
            TranslationServiceError: After the last failed attempt
            ContextOverflowError: If the prompt fills the whole context window
        """
        data = await self._post_json(self._payload(prompt, system_prompt, stream=False), timeout)

        prompt_tokens = data.get("prompt_eval_count", 0)
        completion_tokens = data.get("eval_count", 0)
        if prompt_tokens and prompt_tokens >= self.context_window:
            raise ContextOverflowError(
                f"Prompt used {prompt_tokens} tokens of a {self.context_window} token context window"
            )

        return LLMResponse(
            content=data.get("response", ""),
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            context_used=prompt_tokens + completion_tokens,
            context_limit=self.context_window,
            was_truncated=data.get("done_reason") == "length",
        )

    async def generate_stream(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                              system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Yield response pieces as Ollama produces them."""
        def parse_line(line: str) -> Optional[str]:
            data = parse_json_line(line)
            if not data:
                return None
            if "error" in data:
                raise ValueError(data["error"])
            return data.get("response")

        async for piece in self._stream_lines(self._payload(prompt, system_prompt, stream=True),
                                              timeout, parse_line):
            yield piece
