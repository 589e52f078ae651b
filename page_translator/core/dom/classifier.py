"""
Unit classification rules.

Three independent predicates decide how the extractor and the placeholder
protector treat an element:

    candidate  - the element may become a content unit (block-level text)
    excluded   - the element and its whole subtree are never translated
    protected  - inline markup that must pass through translation unchanged

Each rule is a NodeRule and can be tested on its own; UnitClassifier only
bundles one rule of each kind.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, Tuple

from lxml import etree

from page_translator.config import (
    CONTENT_BLOCK_TAGS,
    EXCLUDED_TAGS,
    OPT_OUT_CLASSES,
    PROTECTED_INLINE_TAGS,
    CODE_BLOCK_TAGS,
    SYNTAX_HIGHLIGHT_MARKERS,
    UNSAFE_FRAGMENT_TAGS,
)
from .html_io import local_name


class RuleKind(Enum):
    CANDIDATE = "candidate"
    EXCLUDED = "excluded"
    PROTECTED = "protected"


def _classes(element: etree._Element) -> Tuple[str, ...]:
    return tuple((element.get('class') or '').lower().split())


class NodeRule(ABC):
    """A predicate over a single element."""

    kind: RuleKind

    @abstractmethod
    def matches(self, element: etree._Element) -> bool:
        ...

    def __call__(self, element: etree._Element) -> bool:
        return self.matches(element)


@dataclass
class CandidateRule(NodeRule):
    """Block elements whose markup is sent as one translation request."""

    tags: FrozenSet[str] = CONTENT_BLOCK_TAGS
    kind: RuleKind = field(default=RuleKind.CANDIDATE, init=False)

    def matches(self, element: etree._Element) -> bool:
        return local_name(element) in self.tags


@dataclass
class ExcludedSubtreeRule(NodeRule):
    """
    Elements whose subtree is never translated.

    Matches excluded tags (script, pre, code, ...), elements with
    translate="no" and elements carrying an opt-out class such as
    "notranslate". The rule tests a single element; callers apply it to the
    element and each of its ancestors.
    """

    tags: FrozenSet[str] = EXCLUDED_TAGS
    opt_out_classes: FrozenSet[str] = OPT_OUT_CLASSES
    honor_translate_attribute: bool = True
    kind: RuleKind = field(default=RuleKind.EXCLUDED, init=False)

    def matches(self, element: etree._Element) -> bool:
        if local_name(element) in self.tags:
            return True
        if self.honor_translate_attribute and (element.get('translate') or '').strip().lower() == 'no':
            return True
        return any(cls in self.opt_out_classes for cls in _classes(element))


@dataclass
class ProtectedFragmentRule(NodeRule):
    """
    Inline code-like fragments kept verbatim through translation.

    An element is protected when it is an inline code tag, is not inside a
    code block ancestor (<pre>), carries no syntax-highlight class, and holds
    only inert markup (no script-like descendants, no on* handlers).

    Inside a unit this rule only decides for tags the excluded rule does not
    already cover. With the default tables <code> is also an excluded tag, so
    a highlighted or non-inert <code> is still tokenized (see
    UnitClassifier.is_opaque), while a non-inert <kbd> or <samp> stays in the
    markup sent for translation.
    """

    tags: FrozenSet[str] = PROTECTED_INLINE_TAGS
    code_block_tags: FrozenSet[str] = CODE_BLOCK_TAGS
    highlight_markers: Tuple[str, ...] = SYNTAX_HIGHLIGHT_MARKERS
    unsafe_tags: FrozenSet[str] = UNSAFE_FRAGMENT_TAGS
    kind: RuleKind = field(default=RuleKind.PROTECTED, init=False)

    def matches(self, element: etree._Element) -> bool:
        if local_name(element) not in self.tags:
            return False
        if any(local_name(a) in self.code_block_tags for a in element.iterancestors()):
            return False
        if any(cls.startswith(self.highlight_markers) for cls in _classes(element)):
            return False
        return self.is_inert(element)

    def is_inert(self, element: etree._Element) -> bool:
        for node in element.iter(etree.Element):
            if local_name(node) in self.unsafe_tags:
                return False
            if any(name.lower().startswith('on') for name in node.attrib):
                return False
        return True


@dataclass
class UnitClassifier:
    """One rule of each kind, consulted by the extractor and the protector."""

    candidate_rule: NodeRule = field(default_factory=CandidateRule)
    excluded_rule: NodeRule = field(default_factory=ExcludedSubtreeRule)
    protected_rule: NodeRule = field(default_factory=ProtectedFragmentRule)

    def is_candidate(self, element: etree._Element) -> bool:
        return self.candidate_rule.matches(element)

    def excludes_self(self, element: etree._Element) -> bool:
        return self.excluded_rule.matches(element)

    def is_excluded(self, element: etree._Element) -> bool:
        """True if the element or any of its ancestors matches the excluded rule."""
        if self.excluded_rule.matches(element):
            return True
        return any(self.excluded_rule.matches(a) for a in element.iterancestors())

    def is_protected(self, element: etree._Element) -> bool:
        return self.protected_rule.matches(element)

    def is_opaque(self, element: etree._Element) -> bool:
        """
        True if the element is carried through translation as a token.

        Protected fragments, plus excluded subtrees nested inside a unit
        (e.g. a <pre> block inside a list item). An excluded element is
        opaque whatever the protected rule says about it: its content is never
        translated, so it travels as a token and comes back from the original
        page verbatim.
        """
        return self.protected_rule.matches(element) or self.excluded_rule.matches(element)

    @classmethod
    def with_tags(
        cls,
        candidate_tags: Iterable[str] = CONTENT_BLOCK_TAGS,
        excluded_tags: Iterable[str] = EXCLUDED_TAGS,
        protected_tags: Iterable[str] = PROTECTED_INLINE_TAGS,
    ) -> 'UnitClassifier':
        """Build a classifier from plain tag lists."""
        return cls(
            candidate_rule=CandidateRule(tags=frozenset(t.lower() for t in candidate_tags)),
            excluded_rule=ExcludedSubtreeRule(tags=frozenset(t.lower() for t in excluded_tags)),
            protected_rule=ProtectedFragmentRule(tags=frozenset(t.lower() for t in protected_tags)),
        )
