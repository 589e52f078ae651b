"""
Page translation: extract, translate concurrently, apply on arrival.

Translation flow per unit:
1. Up to max_attempts requests, each validated for its tokens
2. The first valid translation is applied immediately
3. After the last attempt, a translation with token problems is still
   applied (missing/duplicate tokens are reported in the outcome)
4. A unit with no translation at all keeps its original markup

Units are translated concurrently under an asyncio.Semaphore; each result is
written as soon as it arrives, in whatever order the service answers.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from page_translator.config import (
    LANGUAGE_DETECTION_SAMPLE_CHARS,
    MAX_CONCURRENT_REQUESTS,
    MAX_TRANSLATION_ATTEMPTS,
    AUTO_DETECT_VALUES,
    TranslationConfig,
)
from page_translator.core.llm.exceptions import ContextOverflowError, TranslationServiceError
from .html_io import find_body, parse_document, serialize_document, text_of
from .placeholders import validate_placeholders
from .registry import ExtractedUnit, TranslationResult
from .reinsertion import APPLIED, DETACHED, FAILED, STALE, ApplyReport
from .session import ExtractionSession
from .translation_metrics import TranslationMetrics

logger = logging.getLogger(__name__)


class TranslationStatus(Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    TRANSLATING = "translating"
    COMPLETED = "completed"
    ERROR = "error"


def _log(log_callback: Optional[Callable], event_name: str, message: str, level: int = logging.INFO) -> None:
    logger.log(level, message)
    if log_callback:
        log_callback(event_name, message)


def _same_language(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a and b) and a.strip().casefold() == b.strip().casefold()


async def translate_unit_with_retry(
    unit: ExtractedUnit,
    llm_client: Any,
    source_language: str,
    target_language: str,
    stats: TranslationMetrics,
    max_attempts: int = MAX_TRANSLATION_ATTEMPTS,
    stream: bool = False,
    log_callback: Optional[Callable] = None
) -> Optional[str]:
    """
    Translate one unit with retry on service errors and token loss.

    Args:
        unit: Unit to translate
        llm_client: Object with an async translate_markup(markup, source, target,
            tokens=..., stream=...) method
        source_language: Source language name ("auto" if unknown)
        target_language: Target language name
        stats: TranslationMetrics instance for tracking
        max_attempts: Maximum number of requests for this unit
        stream: Ask the service for a streamed response
        log_callback: Optional logging callback

    Returns:
        Translated markup, or None if no attempt produced a translation
    """
    size = len(unit.translatable_markup)
    best_effort = None
    attempts = max(1, max_attempts)

    for attempt in range(attempts):
        if attempt > 0:
            _log(log_callback, "translation_attempt",
                 f"🔄 Unit {unit.id}: retry attempt {attempt + 1}/{attempts}", logging.DEBUG)

        try:
            translated = await llm_client.translate_markup(
                unit.translatable_markup,
                source_language,
                target_language,
                tokens=unit.tokens,
                stream=stream,
            )
        except ContextOverflowError as e:
            stats.service_errors += 1
            _log(log_callback, "unit_context_overflow", f"Unit {unit.id}: {e}", logging.WARNING)
            break
        except TranslationServiceError as e:
            stats.service_errors += 1
            stats.retry_attempts += 1
            _log(log_callback, "unit_translation_failed",
                 f"Unit {unit.id}, attempt {attempt + 1}/{attempts}: {e}", logging.WARNING)
            continue

        if translated is None:
            stats.retry_attempts += 1
            _log(log_callback, "unit_translation_failed",
                 f"Unit {unit.id}, attempt {attempt + 1}/{attempts}: no translation in response", logging.WARNING)
            continue

        is_valid, error_message = validate_placeholders(translated, unit.tokens)
        if is_valid:
            stats.record_success(attempt, size)
            return translated

        stats.placeholder_errors += 1
        stats.retry_attempts += 1
        best_effort = translated
        _log(log_callback, "placeholder_validation_failed",
             f"Unit {unit.id}, attempt {attempt + 1}/{attempts}: {error_message}", logging.DEBUG)

    if best_effort is not None:
        stats.record_success(attempts - 1, size)
        _log(log_callback, "placeholder_fallback",
             f"⚠️ Unit {unit.id}: applying translation with unresolved placeholders", logging.WARNING)
        return best_effort

    stats.record_failure(size)
    _log(log_callback, "unit_untranslated",
         f"✗ Unit {unit.id}: all attempts failed, keeping original text", logging.WARNING)
    return None


async def detect_source_language(
    session: ExtractionSession,
    llm_client: Any,
    log_callback: Optional[Callable] = None
) -> Optional[str]:
    """Ask the service for the language of the extracted units' text."""
    sample = " ".join(text_of(unit.owner).strip() for unit in session.units())
    sample = sample[:LANGUAGE_DETECTION_SAMPLE_CHARS]
    if not sample.strip():
        return None
    try:
        language = await llm_client.detect_language(sample)
    except TranslationServiceError as e:
        _log(log_callback, "language_detection_failed", f"Language detection failed: {e}", logging.WARNING)
        return None
    if language:
        _log(log_callback, "language_detected", f"Detected source language: {language}")
    return language


async def translate_page(
    session: ExtractionSession,
    llm_client: Any,
    source_language: str,
    target_language: str,
    max_attempts: int = MAX_TRANSLATION_ATTEMPTS,
    max_concurrent: int = MAX_CONCURRENT_REQUESTS,
    stream: bool = False,
    log_callback: Optional[Callable] = None,
    stats_callback: Optional[Callable] = None,
    status_callback: Optional[Callable] = None,
    check_interruption_callback: Optional[Callable] = None
) -> Tuple[ApplyReport, TranslationMetrics]:
    """
    Translate every content unit under the session root in place.

    Args:
        session: Extraction session over the document (a new pass is started)
        llm_client: Translation service (translate_markup / detect_language)
        source_language: Source language, or ""/"auto" to detect it
        target_language: Target language
        max_attempts: Requests per unit before giving up
        max_concurrent: Units translated at the same time
        stream: Request streamed responses
        log_callback: Optional callback(event_name, message)
        stats_callback: Optional callback receiving stats.to_dict() after each unit
        status_callback: Optional callback receiving each TranslationStatus
        check_interruption_callback: Optional callable; when it returns True,
            units not yet started are skipped

    Returns:
        Tuple of (ApplyReport with one outcome per applied unit, TranslationMetrics)
    """
    def set_status(status: TranslationStatus) -> None:
        if status_callback:
            status_callback(status)

    stats = TranslationMetrics()
    set_status(TranslationStatus.IDLE)

    units = session.extract()
    report = ApplyReport(pass_id=session.pass_id)
    stats.total_units = len(units)
    if stats_callback:
        stats_callback(stats.to_dict())

    if not units:
        stats.finalize()
        set_status(TranslationStatus.COMPLETED)
        return report, stats

    try:
        if (source_language or '').strip().lower() in AUTO_DETECT_VALUES:
            set_status(TranslationStatus.DETECTING)
            detected = await detect_source_language(session, llm_client, log_callback)
            if _same_language(detected, target_language):
                _log(log_callback, "translation_skipped",
                     f"Page is already in {target_language}, nothing to translate")
                stats.finalize()
                set_status(TranslationStatus.COMPLETED)
                return report, stats
            source_language = detected or "auto"

        set_status(TranslationStatus.TRANSLATING)
        _log(log_callback, "translation_started",
             f"Translating {len(units)} units from {source_language} to {target_language}")

        semaphore = asyncio.Semaphore(max(1, max_concurrent))
        interrupted = [False]

        async def process(unit: ExtractedUnit) -> None:
            async with semaphore:
                if interrupted[0] or (check_interruption_callback and check_interruption_callback()):
                    if not interrupted[0]:
                        interrupted[0] = True
                        _log(log_callback, "translation_interrupted",
                             f"⏸️ Translation interrupted after {stats.processed_units}/{len(units)} units")
                    stats.interrupted_units += 1
                    return
                translated = await translate_unit_with_retry(
                    unit, llm_client, source_language, target_language, stats,
                    max_attempts=max_attempts, stream=stream, log_callback=log_callback,
                )

            if translated is not None:
                outcome = session.apply_one(TranslationResult(unit.id, translated, unit.pass_id))
                report.add(outcome)
                if outcome.status == STALE:
                    stats.stale_units += 1
                elif outcome.status == DETACHED:
                    stats.detached_units += 1
                elif outcome.status == FAILED:
                    stats.failed_units += 1
                elif outcome.status == APPLIED and outcome.warnings:
                    stats.units_with_warnings += 1

            stats.record_processed()
            if stats_callback:
                stats_callback(stats.to_dict())

        await asyncio.gather(*(process(unit) for unit in units))

    except Exception:
        set_status(TranslationStatus.ERROR)
        raise

    stats.finalize()
    stats.log_summary(log_callback)
    set_status(TranslationStatus.COMPLETED)
    return report, stats


async def translate_html(
    html: str,
    llm_client: Any,
    config: TranslationConfig,
    log_callback: Optional[Callable] = None,
    stats_callback: Optional[Callable] = None,
    status_callback: Optional[Callable] = None,
    check_interruption_callback: Optional[Callable] = None
) -> Tuple[str, ApplyReport, TranslationMetrics]:
    """
    Translate a complete HTML document string.

    Returns:
        Tuple of (translated_html, report, stats)
    """
    doc_root = parse_document(html)
    root = find_body(doc_root)
    if root is None:
        root = doc_root

    session = ExtractionSession(root, log_callback=log_callback)
    report, stats = await translate_page(
        session,
        llm_client,
        config.source_language,
        config.target_language,
        max_attempts=config.max_attempts,
        max_concurrent=config.max_concurrent_requests,
        stream=config.stream,
        log_callback=log_callback,
        stats_callback=stats_callback,
        status_callback=status_callback,
        check_interruption_callback=check_interruption_callback,
    )
    return serialize_document(doc_root), report, stats
