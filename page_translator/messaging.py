"""
Message handling between a page session and the component driving it.

Messages are plain dicts with a "type" key:

    {"type": "GET_TEXT_NODES"}
        -> {"type": "TEXT_NODES", "pass_id": "...", "texts": [{id, pass_id, markup, tokens}, ...]}
    {"type": "REPLACE_TEXT", "replacements": [{"index": 0, "text": "...", "pass_id": "..."}]}
        -> {"type": "REPLACE_DONE", "report": {...}}
        pass_id may be given per replacement or once at the top level; a
        replacement with neither is reported as stale.
    {"type": "RESTORE_ALL"}
        -> {"type": "RESTORE_DONE"}

Anything else, or a malformed request, gets {"type": "ERROR", "error": "..."}.
"""
import logging
from typing import Any, Dict, List

from page_translator.core.dom.registry import TranslationResult
from page_translator.core.dom.session import ExtractionSession

logger = logging.getLogger(__name__)

GET_TEXT_NODES = "GET_TEXT_NODES"
TEXT_NODES = "TEXT_NODES"
REPLACE_TEXT = "REPLACE_TEXT"
REPLACE_DONE = "REPLACE_DONE"
RESTORE_ALL = "RESTORE_ALL"
RESTORE_DONE = "RESTORE_DONE"
ERROR = "ERROR"


class MessageError(ValueError):
    """A message could not be understood."""


def _error(message: str) -> Dict[str, Any]:
    logger.warning(message)
    return {"type": ERROR, "error": message}


def _parse_replacements(message: Dict[str, Any]) -> List[TranslationResult]:
    replacements = message.get("replacements")
    if not isinstance(replacements, list):
        raise MessageError("REPLACE_TEXT requires a 'replacements' list")

    default_pass_id = message.get("pass_id")
    results = []
    for position, item in enumerate(replacements):
        if not isinstance(item, dict) or "index" not in item or "text" not in item:
            raise MessageError(f"Replacement {position} needs 'index' and 'text'")
        try:
            unit_id = int(item["index"])
        except (TypeError, ValueError):
            raise MessageError(f"Replacement {position} has a non-integer index: {item['index']!r}") from None
        if not isinstance(item["text"], str):
            raise MessageError(f"Replacement {position} text must be a string")
        results.append(TranslationResult(unit_id, item["text"], item.get("pass_id", default_pass_id)))
    return results


def handle_message(session: ExtractionSession, message: Dict[str, Any]) -> Dict[str, Any]:
    """Dispatch one message against session and return the response dict."""
    if not isinstance(message, dict):
        return _error("Message must be an object")

    message_type = message.get("type")

    if message_type == GET_TEXT_NODES:
        units = session.extract()
        return {
            "type": TEXT_NODES,
            "pass_id": session.pass_id,
            "texts": [unit.to_dict() for unit in units],
        }

    if message_type == REPLACE_TEXT:
        try:
            results = _parse_replacements(message)
        except MessageError as e:
            return _error(str(e))
        report = session.apply(results)
        return {"type": REPLACE_DONE, "report": report.to_dict()}

    if message_type == RESTORE_ALL:
        session.restore_all()
        return {"type": RESTORE_DONE}

    return _error(f"Unknown message type: {message_type!r}")
