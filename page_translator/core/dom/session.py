"""
Extraction session: one document root, one live registry at a time.

A session replaces module-level state, so several documents (or frames)
can be processed side by side without sharing registries.

Usage:
    session = ExtractionSession(body)
    units = session.extract()
    report = session.apply([TranslationResult(u.id, translate(u.translatable_markup), u.pass_id)
                            for u in units])
    session.restore_all()
"""
import logging
from typing import Callable, Iterable, List, Optional

from lxml import etree

from .classifier import UnitClassifier
from .exceptions import EmptyExtractionResult
from .extractor import ContentUnitExtractor
from .placeholders import PlaceholderProtector
from .registry import ContentUnit, ExtractedUnit, UnitRegistry
from .reinsertion import ApplyReport, ReinsertionEngine, ResultLike, UnitOutcome

logger = logging.getLogger(__name__)


class ExtractionSession:
    """Extract, translate-apply and restore content units under one root."""

    def __init__(
        self,
        root: etree._Element,
        classifier: Optional[UnitClassifier] = None,
        log_callback: Optional[Callable] = None
    ):
        self.root = root
        self.classifier = classifier or UnitClassifier()
        self.log_callback = log_callback
        self.extractor = ContentUnitExtractor(self.classifier, log_callback)
        self.protector = PlaceholderProtector(self.classifier, log_callback)
        self.engine = ReinsertionEngine(root, log_callback)
        self._registry = UnitRegistry()
        self.last_notice: Optional[Warning] = None

    @property
    def registry(self) -> UnitRegistry:
        return self._registry

    @property
    def pass_id(self) -> str:
        return self._registry.pass_id

    def units(self) -> List[ContentUnit]:
        return self._registry.units()

    def extract(self) -> List[ExtractedUnit]:
        """
        Start a new extraction pass.

        The previous registry is dropped wholesale; results still in flight
        for it will come back as stale.

        Returns:
            Public views of the units, in document order (possibly empty)
        """
        units, registry = self.extractor.extract(self.root)
        for unit in units:
            self.protector.protect(unit)
        self._registry = registry
        self.last_notice = None

        if not units:
            notice = EmptyExtractionResult(registry.pass_id)
            self.last_notice = notice
            logger.info(str(notice))
            if self.log_callback:
                self.log_callback("empty_extraction", str(notice))

        return [unit.to_extracted() for unit in units]

    def apply(self, results: Iterable[ResultLike]) -> ApplyReport:
        return self.engine.apply(self._registry, results)

    def apply_one(self, result: ResultLike) -> UnitOutcome:
        return self.engine.apply_one(self._registry, result)

    def restore(self, unit_id: int, pass_id: Optional[str] = None) -> UnitOutcome:
        return self.engine.restore(self._registry, unit_id, pass_id)

    def restore_all(self) -> None:
        self.engine.restore_all(self._registry)
