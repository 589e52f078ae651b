"""
Content unit extraction.

Extraction flow:
1. One pre-order walk over the tree numbers every element with an
   (enter, exit) span and collects the candidate elements in document order.
   Spans make "a contains b" an O(1) comparison.
2. Leaf detection: a candidate that contains another candidate is dropped,
   so no two units are ever nested (otherwise the inner text would be
   translated twice).
3. Candidates inside an excluded subtree, and candidates without rendered
   text (text of script, style and other excluded descendants does not
   count), are dropped.
4. The survivors become ContentUnits whose id is their position in the
   output, registered in a fresh UnitRegistry.

Example:
    <blockquote><p>Quote text</p></blockquote>
    -> candidates [blockquote, p]; blockquote contains p -> one unit, owned by <p>
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple, TypeVar

from lxml import etree

from .classifier import UnitClassifier
from .html_io import snapshot_children, serialize_wrapper
from .registry import ContentUnit, UnitRegistry

logger = logging.getLogger(__name__)

NodeT = TypeVar('NodeT')
Span = Tuple[int, int]


def find_leaf_candidates(
    candidates: Sequence[NodeT],
    contains: Callable[[NodeT, NodeT], bool],
    order_key: Optional[Callable[[NodeT], int]] = None
) -> List[NodeT]:
    """
    Single-pass nested-candidate detection.

    Keeps a stack of open candidates. For each candidate, pop while the top
    does not contain it; a non-empty stack afterwards means the top has a
    nested candidate and is therefore not a leaf. O(n) for O(1) contains().

    Args:
        candidates: Candidates in strict document (pre-)order
        contains: contains(a, b) is True when a is a proper ancestor of b
        order_key: Optional pre-order index used to check the precondition

    Returns:
        Leaf candidates, in document order

    Raises:
        ValueError: If order_key shows the input is not in pre-order
    """
    stack: List[int] = []
    non_leaf = [False] * len(candidates)
    previous_key = None

    for index, node in enumerate(candidates):
        if order_key is not None:
            key = order_key(node)
            if previous_key is not None and key <= previous_key:
                raise ValueError("Candidates must be supplied in strict document order")
            previous_key = key

        while stack and not contains(candidates[stack[-1]], node):
            stack.pop()
        if stack:
            non_leaf[stack[-1]] = True
        stack.append(index)

    return [node for node, nested in zip(candidates, non_leaf) if not nested]


def find_leaf_candidates_naive(
    candidates: Sequence[NodeT],
    contains: Callable[[NodeT, NodeT], bool]
) -> List[NodeT]:
    """Pairwise O(n^2) reference for find_leaf_candidates."""
    return [
        a for a in candidates
        if not any(a is not b and contains(a, b) for b in candidates)
    ]


def has_rendered_text(element: etree._Element, classifier: UnitClassifier) -> bool:
    """
    True if element shows non-whitespace text outside excluded descendants.

    Text inside <script>, <style>, opt-out subtrees and comments does not
    count; the tails following them do. A block whose only text sits in
    excluded descendants would reach the translator as nothing but tokens.
    """
    if element.text and element.text.strip():
        return True
    for child in element:
        if isinstance(child.tag, str) and not classifier.excludes_self(child):
            if has_rendered_text(child, classifier):
                return True
        if child.tail and child.tail.strip():
            return True
    return False


class TreeIndex:
    """Pre-order spans and excluded flags for every element under a root."""

    def __init__(self, spans: Dict[etree._Element, Span], excluded: Dict[etree._Element, bool],
                 candidates: List[etree._Element]):
        self.spans = spans
        self.excluded = excluded
        self.candidates = candidates

    def contains(self, ancestor: etree._Element, node: etree._Element) -> bool:
        """True if ancestor is a proper ancestor of node."""
        enter_a, exit_a = self.spans[ancestor]
        enter_n, _ = self.spans[node]
        return enter_a < enter_n <= exit_a

    def order_of(self, node: etree._Element) -> int:
        return self.spans[node][0]

    @classmethod
    def build(cls, root: etree._Element, classifier: UnitClassifier) -> 'TreeIndex':
        """
        Walk root once in pre-order.

        An element's exit index is the enter index of its last descendant; it
        is settled when the walk leaves the element's subtree. The excluded
        flag is inherited from the parent, so the rule runs once per element.
        """
        enter: Dict[etree._Element, int] = {}
        spans: Dict[etree._Element, Span] = {}
        excluded: Dict[etree._Element, bool] = {}
        candidates: List[etree._Element] = []
        open_elements: List[etree._Element] = []
        counter = -1

        for element in root.iter(etree.Element):
            counter += 1
            parent = element.getparent() if element is not root else None
            while open_elements and open_elements[-1] is not parent:
                closed = open_elements.pop()
                spans[closed] = (enter[closed], counter - 1)

            inherited = excluded[open_elements[-1]] if open_elements else False
            excluded[element] = inherited or classifier.excludes_self(element)
            enter[element] = counter
            open_elements.append(element)

            if classifier.is_candidate(element):
                candidates.append(element)

        while open_elements:
            closed = open_elements.pop()
            spans[closed] = (enter[closed], counter)

        # Excluded flags below root still depend on root's own ancestors
        if any(classifier.excludes_self(a) for a in root.iterancestors()):
            excluded = {element: True for element in excluded}

        return cls(spans, excluded, candidates)


class ContentUnitExtractor:
    """Produces the ordered content units of a tree and a fresh registry."""

    def __init__(self, classifier: Optional[UnitClassifier] = None, log_callback: Optional[Callable] = None):
        self.classifier = classifier or UnitClassifier()
        self.log_callback = log_callback

    def find_units(self, root: etree._Element) -> List[etree._Element]:
        """Eligible owner elements under root, in document order."""
        index = TreeIndex.build(root, self.classifier)
        leaves = find_leaf_candidates(index.candidates, index.contains, index.order_of)

        eligible = []
        for element in leaves:
            if index.excluded[element]:
                continue
            if not has_rendered_text(element, self.classifier):
                continue
            eligible.append(element)

        logger.debug("%d candidates, %d leaves, %d eligible",
                     len(index.candidates), len(leaves), len(eligible))
        return eligible

    def extract(self, root: etree._Element, pass_id: Optional[str] = None) -> Tuple[List[ContentUnit], UnitRegistry]:
        """
        Run one extraction pass.

        Returns:
            Tuple of (units in document order, new registry holding them).
            The units carry original markup only; placeholders are added by
            the protector.
        """
        registry = UnitRegistry(pass_id)
        units = []

        for position, owner in enumerate(self.find_units(root)):
            snapshot = snapshot_children(owner)
            unit = ContentUnit(
                id=position,
                pass_id=registry.pass_id,
                owner=owner,
                original_markup=serialize_wrapper(snapshot),
                snapshot=snapshot,
            )
            registry.register(unit)
            units.append(unit)

        if self.log_callback:
            self.log_callback("units_extracted", f"Extracted {len(units)} content units (pass {registry.pass_id})")

        return units, registry
