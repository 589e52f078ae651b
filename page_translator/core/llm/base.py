"""
Base class for LLM providers.

Providers share one lazily created httpx.AsyncClient and one retry loop.
HTTP failures are mapped to the exceptions in .exceptions; after the last
attempt the mapped exception is raised to the caller.
"""
import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import AsyncIterator, Callable, Dict, Optional

import httpx

from page_translator.config import (
    MAX_TRANSLATION_ATTEMPTS,
    REQUEST_TIMEOUT,
    RETRY_DELAY,
    TRANSLATE_TAG_IN,
    TRANSLATE_TAG_OUT,
)
from .exceptions import (
    ContextOverflowError,
    ServiceUnavailableError,
    TranslationServiceError,
    TranslationTimeoutError,
)

logger = logging.getLogger(__name__)

_THINK_BLOCK_RE = re.compile(r'<think>.*?</think>', re.DOTALL | re.IGNORECASE)

CONTEXT_OVERFLOW_KEYWORDS = (
    "context_length", "maximum context", "context window", "token limit",
    "too many tokens", "reduce the length",
)


@dataclass
class LLMResponse:
    """Text returned by a provider, with token usage when the server reports it."""
    content: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    context_used: int = 0
    context_limit: int = 0
    was_truncated: bool = False


def extract_tagged(response: str, tag_in: str, tag_out: str) -> Optional[str]:
    """
    Text between tag_in and tag_out, or None if the tags are missing.

    <think> blocks emitted by reasoning models are dropped first.
    """
    if response is None:
        return None
    response = _THINK_BLOCK_RE.sub('', response)

    start = response.find(tag_in)
    if start == -1:
        return None
    start += len(tag_in)
    end = response.find(tag_out, start)
    if end == -1:
        return None
    return response[start:end].strip()


class LLMProvider(ABC):
    """Common HTTP plumbing for every provider."""

    def __init__(self, model: str, http_client: Optional[httpx.AsyncClient] = None,
                 log_callback: Optional[Callable] = None):
        self.model = model
        self.log_callback = log_callback
        self.api_endpoint: str = ""
        self.max_attempts = MAX_TRANSLATION_ATTEMPTS
        self.retry_delay = RETRY_DELAY
        self._client = http_client
        self._owns_client = http_client is None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT)
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this provider created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json"}

    @abstractmethod
    async def generate(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                       system_prompt: Optional[str] = None) -> LLMResponse:
        """Send one prompt and return the complete response."""

    async def generate_stream(self, prompt: str, timeout: int = REQUEST_TIMEOUT,
                              system_prompt: Optional[str] = None) -> AsyncIterator[str]:
        """Yield the response in chunks. Providers without streaming yield it whole."""
        response = await self.generate(prompt, timeout, system_prompt=system_prompt)
        yield response.content

    def extract_translation(self, response: str) -> Optional[str]:
        """Extract the translation from between the TRANSLATION tags."""
        return extract_tagged(response, TRANSLATE_TAG_IN, TRANSLATE_TAG_OUT)

    # === Error handling ===

    def _log(self, event_name: str, message: str, level: int = logging.WARNING) -> None:
        logger.log(level, message)
        if self.log_callback:
            self.log_callback(event_name, message)

    @staticmethod
    def _http_error_message(error: httpx.HTTPStatusError) -> str:
        message = str(error)
        try:
            error_json = error.response.json()
        except (ValueError, httpx.ResponseNotRead):
            return f"{message} - {error.response.text[:500]}" if error.response.text else message

        if isinstance(error_json, dict) and "error" in error_json:
            detail = error_json["error"]
            if isinstance(detail, dict):
                return detail.get("message", message)
            return str(detail)
        return message

    def _map_error(self, error: Exception) -> TranslationServiceError:
        """Translate an httpx/JSON failure into a TranslationServiceError."""
        if isinstance(error, httpx.TimeoutException):
            return TranslationTimeoutError(f"LLM request timed out ({self.api_endpoint}, model {self.model})")
        if isinstance(error, httpx.HTTPStatusError):
            message = self._http_error_message(error)
            if any(keyword in message.lower() for keyword in CONTEXT_OVERFLOW_KEYWORDS):
                return ContextOverflowError(message)
            return ServiceUnavailableError(
                f"HTTP {error.response.status_code} from {self.api_endpoint}: {message}",
                status_code=error.response.status_code,
            )
        if isinstance(error, httpx.HTTPError):
            return ServiceUnavailableError(f"Cannot reach {self.api_endpoint}: {error}")
        if isinstance(error, ValueError):
            return ServiceUnavailableError(f"Invalid JSON response from {self.api_endpoint}: {error}")
        return ServiceUnavailableError(f"{type(error).__name__}: {error}")

    async def _before_retry(self, attempt: int, error: TranslationServiceError) -> None:
        self._log("llm_retry",
                  f"⚠️ LLM request failed (attempt {attempt + 1}/{self.max_attempts}): {error}. "
                  f"Retrying in {self.retry_delay:g} seconds...")
        if self.retry_delay:
            await asyncio.sleep(self.retry_delay)

    async def _post_json(self, payload: dict, timeout: int) -> dict:
        """POST payload to the endpoint with retries; return the decoded JSON body."""
        client = await self._get_client()
        for attempt in range(self.max_attempts):
            try:
                response = await client.post(self.api_endpoint, json=payload,
                                             headers=self._headers(), timeout=timeout)
                response.raise_for_status()
                return response.json()
            except (httpx.HTTPError, ValueError) as e:
                error = self._map_error(e)
                if isinstance(error, ContextOverflowError) or attempt == self.max_attempts - 1:
                    self._log("llm_request_failed", f"❌ {error}", logging.ERROR)
                    raise error from e
                await self._before_retry(attempt, error)

        raise ServiceUnavailableError(f"No attempts made against {self.api_endpoint}")

    async def _stream_lines(self, payload: dict, timeout: int,
                            parse_line: Callable[[str], Optional[str]]) -> AsyncIterator[str]:
        """
        POST payload and yield the text pieces parse_line extracts from each line.

        A failed attempt is retried only while nothing has been yielded yet;
        a failure mid-stream is raised, since the caller already holds a prefix.
        """
        client = await self._get_client()
        for attempt in range(self.max_attempts):
            yielded = False
            try:
                async with client.stream("POST", self.api_endpoint, json=payload,
                                         headers=self._headers(), timeout=timeout) as response:
                    if response.is_error:
                        await response.aread()
                        response.raise_for_status()
                    async for line in response.aiter_lines():
                        piece = parse_line(line)
                        if piece:
                            yielded = True
                            yield piece
                return
            except (httpx.HTTPError, ValueError) as e:
                error = self._map_error(e)
                if yielded or isinstance(error, ContextOverflowError) or attempt == self.max_attempts - 1:
                    self._log("llm_request_failed", f"❌ {error}", logging.ERROR)
                    raise error from e
                await self._before_retry(attempt, error)


def parse_json_line(line: str) -> Optional[dict]:
    """Decode one NDJSON/SSE payload line; blank lines give None."""
    line = line.strip()
    if not line:
        return None
    return json.loads(line)
