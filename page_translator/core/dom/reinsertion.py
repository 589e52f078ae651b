"""
Reinsertion of translated markup into the live tree.

For each translation result:
1. Look the unit up in the current registry (unknown id or another pass's
   id -> "stale"; never written to an element that happens to reuse the id)
2. Check the owner element is still attached to the session root
   (-> "detached")
3. Resolve tokens back to their original fragments
4. Parse the resolved markup and swap it in as the owner's children
   (a parse failure -> "failed", the owner keeps its previous content)

Every result gets its own UnitOutcome; nothing here raises for a single bad
result, so one unit never stops the rest of a batch.
"""
import copy
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Union

from lxml import etree

from .exceptions import DetachedElementWarning, DomTranslationError, MarkupWriteError, StaleUnitError
from .html_io import is_attached, parse_fragment, replace_children
from .placeholders import resolve_placeholders
from .registry import ContentUnit, TranslationResult, UnitRegistry

logger = logging.getLogger(__name__)

APPLIED = "applied"
RESTORED = "restored"
STALE = "stale"
DETACHED = "detached"
FAILED = "failed"


@dataclass
class UnitOutcome:
    """What happened to one result (or one restore) for one unit.

    unit_id is None for a result too malformed to name its unit.
    """
    unit_id: Optional[int]
    status: str
    warnings: List[Warning] = field(default_factory=list)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.status in (APPLIED, RESTORED)

    def to_dict(self) -> dict:
        return {
            'id': self.unit_id,
            'status': self.status,
            'warnings': [str(w) for w in self.warnings],
            'error': str(self.error) if self.error else None,
        }


@dataclass
class ApplyReport:
    """Per-unit outcomes of one apply() or restore_all() call."""
    pass_id: Optional[str] = None
    outcomes: List[UnitOutcome] = field(default_factory=list)

    def add(self, outcome: UnitOutcome) -> None:
        self.outcomes.append(outcome)

    def extend(self, other: 'ApplyReport') -> None:
        self.outcomes.extend(other.outcomes)

    def _ids(self, status: str) -> List[int]:
        return [o.unit_id for o in self.outcomes if o.status == status]

    @property
    def applied(self) -> List[int]:
        return self._ids(APPLIED)

    @property
    def restored(self) -> List[int]:
        return self._ids(RESTORED)

    @property
    def stale(self) -> List[int]:
        return self._ids(STALE)

    @property
    def detached(self) -> List[int]:
        return self._ids(DETACHED)

    @property
    def failed(self) -> List[int]:
        return self._ids(FAILED)

    @property
    def warnings(self) -> List[Warning]:
        return [w for o in self.outcomes for w in o.warnings]

    def outcome_for(self, unit_id: int) -> Optional[UnitOutcome]:
        """Latest outcome recorded for unit_id."""
        for outcome in reversed(self.outcomes):
            if outcome.unit_id == unit_id:
                return outcome
        return None

    def summary(self) -> Dict[str, int]:
        counts = {APPLIED: 0, RESTORED: 0, STALE: 0, DETACHED: 0, FAILED: 0}
        for outcome in self.outcomes:
            counts[outcome.status] = counts.get(outcome.status, 0) + 1
        counts['warnings'] = len(self.warnings)
        return counts

    def to_dict(self) -> dict:
        return {
            'pass_id': self.pass_id,
            'outcomes': [o.to_dict() for o in self.outcomes],
            'summary': self.summary(),
        }


ResultLike = Union[TranslationResult, tuple, dict]


def coerce_result(result: ResultLike) -> TranslationResult:
    """
    Accept a TranslationResult, an (id, markup[, pass_id]) tuple or a dict.

    Raises:
        KeyError, TypeError, ValueError: If the result is malformed
    """
    if isinstance(result, dict):
        unit_id = result['id'] if 'id' in result else result['index']
        markup = result.get('translated_markup', result.get('text'))
        pass_id = result.get('pass_id')
    else:
        unit_id, markup, *rest = result
        if len(rest) > 1:
            raise TypeError(f"Result tuple has {len(rest) + 2} items, expected 2 or 3")
        pass_id = rest[0] if rest else None

    if isinstance(unit_id, bool):
        raise TypeError(f"Unit id must be an integer, got {unit_id!r}")
    if not isinstance(markup, str):
        raise TypeError(f"Result for unit {unit_id} has no translated markup")
    return TranslationResult(int(unit_id), markup, pass_id)


class ReinsertionEngine:
    """The only writer of unit owner elements."""

    def __init__(self, root: etree._Element, log_callback: Optional[Callable] = None):
        self.root = root
        self.log_callback = log_callback

    def _log(self, event_name: str, message: str, level: int = logging.DEBUG) -> None:
        logger.log(level, message)
        if self.log_callback:
            self.log_callback(event_name, message)

    def _resolve_unit(self, registry: UnitRegistry, unit_id: int, pass_id: Optional[str]):
        """Return (unit, None) or (None, outcome) when the unit cannot be written."""
        try:
            unit = registry.lookup(unit_id, pass_id)
        except StaleUnitError as e:
            self._log("unit_stale", str(e), logging.INFO)
            return None, UnitOutcome(unit_id, STALE, error=e)

        if not is_attached(unit.owner, self.root):
            warning = DetachedElementWarning(unit_id)
            self._log("unit_detached", str(warning), logging.WARNING)
            return None, UnitOutcome(unit_id, DETACHED, warnings=[warning])

        return unit, None

    def apply_one(self, registry: UnitRegistry, result: ResultLike) -> UnitOutcome:
        """
        Write one translated result into its owner element.

        A result must name the pass it was produced for; one without a
        pass_id could target a unit that merely reuses the id, so it is
        reported as stale.

        Raises:
            KeyError, TypeError, ValueError: If result cannot be read as a
                TranslationResult
        """
        result = coerce_result(result)
        if result.pass_id is None:
            error = StaleUnitError(result.unit_id, None, registry.pass_id)
            self._log("unit_stale", str(error), logging.INFO)
            return UnitOutcome(result.unit_id, STALE, error=error)

        unit, outcome = self._resolve_unit(registry, result.unit_id, result.pass_id)
        if outcome is not None:
            return outcome

        resolved, warnings = resolve_placeholders(result.translated_markup, unit.placeholders, unit.id)
        for warning in warnings:
            self._log("placeholder_warning", str(warning), logging.WARNING)

        try:
            wrapper = parse_fragment(resolved)
        except (etree.ParserError, etree.XMLSyntaxError, ValueError) as e:
            error = MarkupWriteError(f"Unit {unit.id}: translated markup could not be parsed: {e}")
            self._log("unit_write_failed", str(error), logging.WARNING)
            return UnitOutcome(unit.id, FAILED, warnings=warnings, error=error)

        replace_children(unit.owner, wrapper)
        unit.applied_markup = resolved
        return UnitOutcome(unit.id, APPLIED, warnings=warnings)

    def apply(self, registry: UnitRegistry, results: Iterable[ResultLike]) -> ApplyReport:
        """Apply a batch of results; each one is independent of the others."""
        report = ApplyReport(pass_id=registry.pass_id)
        for position, result in enumerate(results):
            try:
                result = coerce_result(result)
            except (KeyError, TypeError, ValueError) as e:
                error = DomTranslationError(f"Malformed result at position {position}: {e!r}")
                self._log("result_malformed", str(error), logging.WARNING)
                report.add(UnitOutcome(None, FAILED, error=error))
                continue
            report.add(self.apply_one(registry, result))

        self._log("results_applied",
                  f"Applied {len(report.applied)} units "
                  f"({len(report.stale)} stale, {len(report.detached)} detached, {len(report.failed)} failed)")
        return report

    def _write_original(self, unit: ContentUnit) -> None:
        replace_children(unit.owner, copy.deepcopy(unit.snapshot))
        unit.applied_markup = None

    def restore(self, registry: UnitRegistry, unit_id: int, pass_id: Optional[str] = None) -> UnitOutcome:
        """Write a unit's original markup back, whatever it currently shows."""
        unit, outcome = self._resolve_unit(registry, unit_id, pass_id)
        if outcome is not None:
            return outcome
        self._write_original(unit)
        return UnitOutcome(unit.id, RESTORED)

    def restore_all(self, registry: UnitRegistry) -> ApplyReport:
        report = ApplyReport(pass_id=registry.pass_id)
        for unit in registry:
            report.add(self.restore(registry, unit.id))
        self._log("units_restored", f"Restored {len(report.restored)} units")
        return report
