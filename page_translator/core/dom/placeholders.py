"""
Placeholder protection for content unit markup.

Protected fragments (inline code and the like) are swapped for opaque tokens
before a unit is handed to the translator, and swapped back afterwards:

    <p>Use <code>npm</code> to install</p>
    -> translatable markup: "Use [id0.0] to install"
    -> placeholders: [Placeholder("[id0.0]", "<code>npm</code>")]

Tokens are built from the unit id and a per-unit counter. A token that
already occurs in the unit's own markup is skipped, so a token can never be
confused with text that was on the page before extraction.

Resolution is textual and done in a single regex pass, so the translator may
move tokens around but each one is resolved at most once.
"""
import copy
import logging
import re
from collections import Counter
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from lxml import etree

from page_translator.config import PLACEHOLDER_PATTERN, create_placeholder
from .classifier import UnitClassifier
from .exceptions import DuplicatePlaceholderWarning, MissingPlaceholderWarning, PlaceholderWarning
from .html_io import outer_markup, parse_fragment, serialize_wrapper
from .registry import ContentUnit, Placeholder

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(PLACEHOLDER_PATTERN)


def _replace_with_text(element: etree._Element, text: str) -> None:
    """Remove element from its parent, leaving text (plus the element's tail) in its place."""
    parent = element.getparent()
    replacement = text + (element.tail or '')
    previous = element.getprevious()
    if previous is not None:
        previous.tail = (previous.tail or '') + replacement
    else:
        parent.text = (parent.text or '') + replacement
    parent.remove(element)


class PlaceholderProtector:
    """Replaces protected fragments of a unit's markup with tokens."""

    def __init__(self, classifier: Optional[UnitClassifier] = None, log_callback: Optional[Callable] = None):
        self.classifier = classifier or UnitClassifier()
        self.log_callback = log_callback

    def protect(self, unit: ContentUnit) -> ContentUnit:
        """Fill in unit.translatable_markup and unit.placeholders from the unit's snapshot."""
        wrapper = copy.deepcopy(unit.snapshot)
        unit.translatable_markup, unit.placeholders = self.protect_element(
            unit.id, wrapper, reserved_text=unit.original_markup
        )
        if unit.placeholders:
            logger.debug("Unit %d: %d protected fragments", unit.id, len(unit.placeholders))
        return unit

    def protect_markup(self, unit_id: int, markup: str) -> Tuple[str, List[Placeholder]]:
        """Protect a markup string (parsed into a throwaway wrapper)."""
        return self.protect_element(unit_id, parse_fragment(markup), reserved_text=markup)

    def protect_element(
        self,
        unit_id: int,
        wrapper: etree._Element,
        reserved_text: Optional[str] = None
    ) -> Tuple[str, List[Placeholder]]:
        """
        Replace protected fragments inside wrapper, in document order.

        Only the outermost protected element of a nested group is replaced;
        its descendants travel inside its fragment. The wrapper is modified
        in place, so pass a copy.

        Args:
            unit_id: Id used in the minted tokens
            wrapper: Detached wrapper element holding the unit's content
            reserved_text: Text tokens must not collide with (defaults to
                the wrapper's serialized markup)

        Returns:
            Tuple of (translatable_markup, placeholders)
        """
        if reserved_text is None:
            reserved_text = serialize_wrapper(wrapper)

        placeholders: List[Placeholder] = []
        counter = [0]

        def mint() -> str:
            token = create_placeholder(unit_id, counter[0])
            while token in reserved_text:
                counter[0] += 1
                token = create_placeholder(unit_id, counter[0])
            counter[0] += 1
            return token

        def walk(parent: etree._Element) -> None:
            for child in list(parent):
                if not isinstance(child.tag, str):
                    continue
                if self.classifier.is_opaque(child):
                    token = mint()
                    placeholders.append(Placeholder(token, outer_markup(child)))
                    _replace_with_text(child, token)
                else:
                    walk(child)

        walk(wrapper)
        return serialize_wrapper(wrapper), placeholders


def count_tokens(markup: str, tokens: Sequence[str]) -> Dict[str, int]:
    """Occurrences of each expected token in markup."""
    wanted = set(tokens)
    found = Counter(m.group(0) for m in _TOKEN_RE.finditer(markup) if m.group(0) in wanted)
    return {token: found.get(token, 0) for token in tokens}


def resolve_placeholders(
    markup: str,
    placeholders: Sequence[Placeholder],
    unit_id: int
) -> Tuple[str, List[PlaceholderWarning]]:
    """
    Substitute tokens in translated markup with their original fragments.

    The first occurrence of each token is resolved. A missing token yields a
    MissingPlaceholderWarning; a repeated token yields a
    DuplicatePlaceholderWarning and its extra occurrences stay as plain text.
    Bracketed text that is not one of this unit's tokens is left alone.

    Returns:
        Tuple of (resolved_markup, warnings)
    """
    fragments = {p.token: p.original_fragment for p in placeholders}
    warnings: List[PlaceholderWarning] = []

    for token, count in count_tokens(markup, [p.token for p in placeholders]).items():
        if count == 0:
            warnings.append(MissingPlaceholderWarning(unit_id, token))
        elif count > 1:
            warnings.append(DuplicatePlaceholderWarning(unit_id, token, count))

    resolved_tokens = set()

    def substitute(match: re.Match) -> str:
        token = match.group(0)
        if token in fragments and token not in resolved_tokens:
            resolved_tokens.add(token)
            return fragments[token]
        return token

    return _TOKEN_RE.sub(substitute, markup), warnings


def validate_placeholders(translated_text: str, tokens: Sequence[str]) -> Tuple[bool, str]:
    """
    Check that every expected token appears exactly once.

    Args:
        translated_text: Translator output
        tokens: Tokens the unit's translatable markup carried

    Returns:
        Tuple of (is_valid, error_message); error_message is empty when valid
    """
    if not tokens:
        return True, ""

    errors = []
    counts = count_tokens(translated_text, tokens)

    missing = [token for token, count in counts.items() if count == 0]
    if missing:
        errors.append(f"Missing placeholders: {', '.join(missing)}")

    for token, count in counts.items():
        if count > 1:
            errors.append(f"Duplicate: {token} appears {count} times (should appear once)")

    if errors:
        return False, "; ".join(errors)
    return True, ""
