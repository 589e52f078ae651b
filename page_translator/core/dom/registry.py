"""
Content units and the per-pass unit registry.
"""
import uuid
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, NamedTuple, Optional, Tuple

from lxml import etree

from .exceptions import StaleUnitError


class Placeholder(NamedTuple):
    """A token standing in for a protected fragment."""
    token: str
    original_fragment: str


class ExtractedUnit(NamedTuple):
    """
    Public view of a content unit, handed to the translation layer.

    Holds only what a translator needs: the ids to send the result back
    with, the markup to translate and the tokens it must keep intact.
    """
    id: int
    pass_id: str
    translatable_markup: str
    tokens: Tuple[str, ...]

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'pass_id': self.pass_id,
            'markup': self.translatable_markup,
            'tokens': list(self.tokens),
        }


class TranslationResult(NamedTuple):
    """Translated markup for one unit. A result without a pass_id is never applied."""
    unit_id: int
    translated_markup: str
    pass_id: Optional[str] = None


@dataclass
class ContentUnit:
    """
    One block element's markup treated as a single translation granule.

    original_markup and snapshot are taken at extraction time and never
    change; only the reinsertion engine writes to the owner element.
    """
    id: int
    pass_id: str
    owner: etree._Element
    original_markup: str
    snapshot: etree._Element = field(repr=False)
    translatable_markup: str = ""
    placeholders: List[Placeholder] = field(default_factory=list)
    applied_markup: Optional[str] = None

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(p.token for p in self.placeholders)

    def to_extracted(self) -> ExtractedUnit:
        return ExtractedUnit(self.id, self.pass_id, self.translatable_markup, self.tokens)


def new_pass_id() -> str:
    return uuid.uuid4().hex[:8]


class UnitRegistry:
    """
    Mapping from unit id to ContentUnit for exactly one extraction pass.

    A registry is never merged with another one: each pass builds a new
    registry and the session drops the previous registry wholesale.
    """

    def __init__(self, pass_id: Optional[str] = None):
        self.pass_id = pass_id or new_pass_id()
        self._units: Dict[int, ContentUnit] = {}

    def register(self, unit: ContentUnit) -> None:
        if unit.pass_id != self.pass_id:
            raise ValueError(f"Unit {unit.id} belongs to pass {unit.pass_id}, not {self.pass_id}")
        if unit.id in self._units:
            raise ValueError(f"Unit id {unit.id} already registered in pass {self.pass_id}")
        self._units[unit.id] = unit

    def lookup(self, unit_id: int, pass_id: Optional[str] = None) -> ContentUnit:
        """
        Return the unit registered under unit_id.

        Raises:
            StaleUnitError: If pass_id names another pass or the id is unknown.
        """
        if pass_id is not None and pass_id != self.pass_id:
            raise StaleUnitError(unit_id, pass_id, self.pass_id)
        try:
            return self._units[unit_id]
        except KeyError:
            raise StaleUnitError(unit_id, pass_id or self.pass_id, self.pass_id) from None

    def units(self) -> List[ContentUnit]:
        return [self._units[k] for k in sorted(self._units)]

    def __contains__(self, unit_id: int) -> bool:
        return unit_id in self._units

    def __iter__(self) -> Iterator[ContentUnit]:
        return iter(self.units())

    def __len__(self) -> int:
        return len(self._units)
