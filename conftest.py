"""
Shared pytest fixtures.
"""
import asyncio
from typing import Callable, Dict, List, Optional

import pytest

from page_translator.core.dom.html_io import find_body, inner_markup, parse_document
from page_translator.core.dom.session import ExtractionSession
from page_translator.core.llm.exceptions import ServiceUnavailableError


def build_session(html: str, **kwargs) -> ExtractionSession:
    """Session over the <body> of html."""
    root = find_body(parse_document(html))
    return ExtractionSession(root, **kwargs)


def owner_markup(session: ExtractionSession, unit_id: int) -> str:
    return inner_markup(session.registry.lookup(unit_id).owner)


class FakeTranslationClient:
    """
    In-memory stand-in for LLMClient.

    Translations come from `translations` (exact markup match) or from
    `translate` (a function of the markup); the default prefixes "FR:".
    Markup listed in `failing` raises ServiceUnavailableError on every call.
    """

    def __init__(self, translations: Optional[Dict[str, str]] = None,
                 translate: Optional[Callable[[str], Optional[str]]] = None,
                 failing=(), detected_language: Optional[str] = None,
                 delays: Optional[Dict[str, float]] = None):
        self.translations = translations or {}
        self.translate = translate or (lambda markup: f"FR:{markup}")
        self.failing = set(failing)
        self.detected_language = detected_language
        self.delays = delays or {}
        self.calls: List[dict] = []
        self.detect_calls: List[str] = []

    async def translate_markup(self, markup, source_language, target_language, tokens=(), stream=False):
        self.calls.append({
            'markup': markup,
            'source_language': source_language,
            'target_language': target_language,
            'tokens': tuple(tokens),
            'stream': stream,
        })
        delay = self.delays.get(markup)
        if delay:
            await asyncio.sleep(delay)
        else:
            await asyncio.sleep(0)
        if markup in self.failing:
            raise ServiceUnavailableError("service down", status_code=503)
        if markup in self.translations:
            return self.translations[markup]
        return self.translate(markup)

    async def detect_language(self, sample_text):
        self.detect_calls.append(sample_text)
        return self.detected_language


@pytest.fixture
def make_session():
    return build_session


@pytest.fixture
def fake_client():
    return FakeTranslationClient


@pytest.fixture
def event_log():
    """log_callback that records (event_name, message) pairs."""
    events = []

    def log_callback(event_name, message=""):
        events.append((event_name, message))

    log_callback.events = events
    return log_callback
