"""
Tests for the unit classification rules.
"""
import lxml.html

from page_translator.core.dom.classifier import (
    CandidateRule,
    ExcludedSubtreeRule,
    ProtectedFragmentRule,
    RuleKind,
    UnitClassifier,
)


def _body(html):
    return lxml.html.document_fromstring(html).find('body')


def _first(root, tag):
    return next(root.iter(tag))


def test_candidate_rule_matches_block_tags_only():
    body = _body("<h2>Title</h2><p>Text <span>inline</span></p>")
    rule = CandidateRule()
    assert rule.kind is RuleKind.CANDIDATE
    assert rule(_first(body, 'h2'))
    assert rule(_first(body, 'p'))
    assert not rule(_first(body, 'span'))


def test_excluded_rule_tags_attribute_and_class():
    body = _body(
        '<script>var a;</script>'
        '<p translate="no">Brand</p>'
        '<div class="Header notranslate">Logo</div>'
        '<p>Normal</p>'
    )
    rule = ExcludedSubtreeRule()
    paragraphs = list(body.iter('p'))
    assert rule(_first(body, 'script'))
    assert rule(paragraphs[0])
    assert rule(_first(body, 'div'))
    assert not rule(paragraphs[1])


def test_excluded_rule_can_ignore_translate_attribute():
    body = _body('<p translate="no">Brand</p>')
    assert not ExcludedSubtreeRule(honor_translate_attribute=False)(_first(body, 'p'))


def test_is_excluded_checks_ancestors():
    body = _body('<div class="notranslate"><p>Inside</p></div><p>Outside</p>')
    classifier = UnitClassifier()
    inside, outside = list(body.iter('p'))
    assert classifier.is_excluded(inside)
    assert not classifier.excludes_self(inside)
    assert not classifier.is_excluded(outside)


def test_protected_rule_accepts_plain_inline_code():
    body = _body('<p>Use <code>npm</code> or <kbd>Ctrl</kbd></p>')
    rule = ProtectedFragmentRule()
    assert rule(_first(body, 'code'))
    assert rule(_first(body, 'kbd'))


def test_protected_rule_rejects_code_inside_pre():
    body = _body('<pre><code>const x = 1;</code></pre>')
    assert not ProtectedFragmentRule()(_first(body, 'code'))


def test_protected_rule_rejects_syntax_highlight_classes():
    body = _body('<p><code class="language-js">x</code><code class="hljs">y</code></p>')
    rule = ProtectedFragmentRule()
    assert not any(rule(code) for code in body.iter('code'))


def test_protected_rule_requires_inert_markup():
    body = _body('<p><kbd onclick="go()">k</kbd><code><span>a</span></code></p>')
    rule = ProtectedFragmentRule()
    assert not rule(_first(body, 'kbd'))
    assert rule(_first(body, 'code'))


def test_with_tags_builds_custom_classifier():
    classifier = UnitClassifier.with_tags(candidate_tags=['SECTION'], excluded_tags=['aside'],
                                          protected_tags=['var'])
    body = _body('<section>a</section><aside>b</aside><p><var>x</var></p>')
    assert classifier.is_candidate(_first(body, 'section'))
    assert not classifier.is_candidate(_first(body, 'p'))
    assert classifier.excludes_self(_first(body, 'aside'))
    assert classifier.is_protected(_first(body, 'var'))


def test_excluded_code_is_opaque_whatever_its_attributes():
    body = _body('<p><code onclick="go()">a</code> <code class="hljs">b</code> '
                 '<kbd onclick="go()">k</kbd> <kbd>q</kbd></p>')
    classifier = UnitClassifier()
    codes = list(body.iter('code'))
    kbds = list(body.iter('kbd'))
    assert not any(classifier.is_protected(code) for code in codes)
    assert all(classifier.is_opaque(code) for code in codes)
    assert not classifier.is_opaque(kbds[0])
    assert classifier.is_opaque(kbds[1])
