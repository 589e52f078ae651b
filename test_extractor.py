"""
Tests for content unit extraction and leaf detection.
"""
import random

import pytest
from lxml import etree

from page_translator.core.dom.classifier import UnitClassifier
from page_translator.core.dom.extractor import (
    ContentUnitExtractor,
    TreeIndex,
    find_leaf_candidates,
    find_leaf_candidates_naive,
)
from page_translator.core.dom.html_io import find_body, parse_document


def _units(html):
    root = find_body(parse_document(html))
    units, registry = ContentUnitExtractor().extract(root)
    return units, registry


def _is_ancestor(a, b):
    return any(ancestor is a for ancestor in b.iterancestors())


def test_single_paragraph_unit():
    units, registry = _units("<p>Hello <strong>world</strong>!</p>")
    assert len(units) == 1
    assert units[0].id == 0
    assert units[0].owner.tag == 'p'
    assert units[0].original_markup == "Hello <strong>world</strong>!"
    assert len(registry) == 1


def test_nested_candidate_keeps_only_inner_paragraph():
    units, _ = _units("<blockquote><p>Quote text</p></blockquote>")
    assert len(units) == 1
    assert units[0].owner.tag == 'p'
    assert units[0].original_markup == "Quote text"


def test_code_block_is_excluded():
    units, _ = _units("<pre><code>const x = 1;</code></pre><p>Hello</p>")
    assert [u.original_markup for u in units] == ["Hello"]


def test_whitespace_only_candidates_yield_nothing():
    units, registry = _units("<div>  </div><p>\n\t</p><li> </li>")
    assert units == []
    assert len(registry) == 0


def test_excluded_ancestor_drops_candidates():
    units, _ = _units('<div class="notranslate"><p>Keep as is</p></div>'
                      '<div translate="no"><ul><li>Nope</li></ul></div>'
                      '<p>Translate me</p>')
    assert [u.original_markup for u in units] == ["Translate me"]


def test_ids_follow_document_order():
    units, registry = _units("<h1>One</h1><p>Two</p><ul><li>Three</li><li>Four</li></ul>")
    assert [u.id for u in units] == [0, 1, 2, 3]
    assert [u.original_markup for u in units] == ["One", "Two", "Three", "Four"]
    assert all(u.pass_id == registry.pass_id for u in units)
    assert registry.lookup(2) is units[2]


def test_leaf_invariant_on_nested_layout():
    html = ("<div><div><p>a</p><div><p>b</p><blockquote>c</blockquote></div></div>"
            "<li><div>d</div></li><td><p>e</p>f</td></div>")
    units, _ = _units(html)
    owners = [u.owner for u in units]
    for a in owners:
        for b in owners:
            assert not _is_ancestor(a, b)
    assert len(owners) == 5


def test_root_inside_excluded_ancestor_yields_nothing():
    doc = parse_document('<div class="notranslate"><section><p>Hidden</p></section></div>')
    section = next(doc.iter('section'))
    units, _ = ContentUnitExtractor().extract(section)
    assert units == []


def test_extract_uses_given_pass_id():
    root = find_body(parse_document("<p>x</p>"))
    units, registry = ContentUnitExtractor().extract(root, pass_id="abcd1234")
    assert registry.pass_id == "abcd1234"
    assert units[0].pass_id == "abcd1234"


def test_extract_reports_through_log_callback(event_log):
    root = find_body(parse_document("<p>x</p><p>y</p>"))
    ContentUnitExtractor(log_callback=event_log).extract(root)
    assert event_log.events[0][0] == "units_extracted"
    assert "2 content units" in event_log.events[0][1]


# --- leaf detection algorithm ---

def _interval_contains(a, b):
    return a[0] < b[0] and b[1] <= a[1]


def test_find_leaf_candidates_on_intervals():
    # (enter, exit) spans in pre-order: 0 contains 1 and 3; 1 contains 2
    spans = [(0, 5), (1, 2), (2, 2), (3, 3), (6, 6)]
    leaves = find_leaf_candidates(spans, _interval_contains, order_key=lambda s: s[0])
    assert leaves == [(2, 2), (3, 3), (6, 6)]
    assert leaves == find_leaf_candidates_naive(spans, _interval_contains)


def test_find_leaf_candidates_rejects_out_of_order_input():
    spans = [(3, 3), (0, 5)]
    with pytest.raises(ValueError):
        find_leaf_candidates(spans, _interval_contains, order_key=lambda s: s[0])


def test_find_leaf_candidates_empty():
    assert find_leaf_candidates([], _interval_contains) == []


def _random_tree(rng, tags, size):
    root = etree.Element('body')
    nodes = [root]
    for _ in range(size):
        parent = rng.choice(nodes)
        child = etree.SubElement(parent, rng.choice(tags))
        child.text = rng.choice(['', ' ', 'word'])
        nodes.append(child)
    return root


@pytest.mark.parametrize("seed", range(25))
def test_stack_detection_matches_pairwise_reference(seed):
    rng = random.Random(seed)
    root = _random_tree(rng, ['div', 'p', 'span', 'li', 'blockquote', 'section'], rng.randint(1, 60))
    index = TreeIndex.build(root, UnitClassifier())

    fast = find_leaf_candidates(index.candidates, index.contains, index.order_of)
    naive = find_leaf_candidates_naive(index.candidates, index.contains)
    assert fast == naive

    slow_contains = lambda a, b: _is_ancestor(a, b)
    assert find_leaf_candidates_naive(index.candidates, slow_contains) == naive


@pytest.mark.parametrize("seed", range(10))
def test_spans_agree_with_tree_structure(seed):
    rng = random.Random(1000 + seed)
    root = _random_tree(rng, ['div', 'p', 'span'], 40)
    index = TreeIndex.build(root, UnitClassifier())
    elements = list(root.iter())
    for a in elements:
        for b in elements:
            assert index.contains(a, b) == _is_ancestor(a, b)


def test_blocks_with_only_script_or_style_text_are_dropped():
    units, _ = _units("<p><script>var a = 1;</script></p>"
                      "<div><style>p { color: red }</style> </div>"
                      "<p><!-- note --></p>"
                      '<p><span class="notranslate">Brand</span></p>'
                      "<p><script>x()</script>Hello</p>")
    assert [u.original_markup for u in units] == ["<script>x()</script>Hello"]


def test_tail_after_excluded_descendant_counts_as_text():
    units, _ = _units('<li><span translate="no">ACME</span> rocks</li>')
    assert len(units) == 1
