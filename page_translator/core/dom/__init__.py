"""
Content unit extraction, placeholder protection and reinsertion.

Public API:
    - Session: ExtractionSession
    - Data: ContentUnit, ExtractedUnit, TranslationResult, Placeholder, UnitRegistry
    - Reports: ApplyReport, UnitOutcome
    - Rules: UnitClassifier, CandidateRule, ExcludedSubtreeRule, ProtectedFragmentRule
    - Errors: DomTranslationError, StaleUnitError, MarkupWriteError and the
      placeholder/detached/empty-extraction warnings
"""

from .exceptions import (
    DomTranslationError,
    StaleUnitError,
    MarkupWriteError,
    PlaceholderWarning,
    MissingPlaceholderWarning,
    DuplicatePlaceholderWarning,
    DetachedElementWarning,
    EmptyExtractionResult,
)
from .classifier import (
    RuleKind,
    NodeRule,
    CandidateRule,
    ExcludedSubtreeRule,
    ProtectedFragmentRule,
    UnitClassifier,
)
from .registry import ContentUnit, ExtractedUnit, Placeholder, TranslationResult, UnitRegistry
from .extractor import ContentUnitExtractor, find_leaf_candidates, find_leaf_candidates_naive
from .placeholders import PlaceholderProtector, resolve_placeholders, validate_placeholders
from .reinsertion import ApplyReport, ReinsertionEngine, UnitOutcome
from .session import ExtractionSession

__all__ = [
    'DomTranslationError',
    'StaleUnitError',
    'MarkupWriteError',
    'PlaceholderWarning',
    'MissingPlaceholderWarning',
    'DuplicatePlaceholderWarning',
    'DetachedElementWarning',
    'EmptyExtractionResult',
    'RuleKind',
    'NodeRule',
    'CandidateRule',
    'ExcludedSubtreeRule',
    'ProtectedFragmentRule',
    'UnitClassifier',
    'ContentUnit',
    'ExtractedUnit',
    'Placeholder',
    'TranslationResult',
    'UnitRegistry',
    'ContentUnitExtractor',
    'find_leaf_candidates',
    'find_leaf_candidates_naive',
    'PlaceholderProtector',
    'resolve_placeholders',
    'validate_placeholders',
    'ApplyReport',
    'ReinsertionEngine',
    'UnitOutcome',
    'ExtractionSession',
]
