"""
Tests for placeholder protection and resolution.
"""
from page_translator.core.dom.exceptions import DuplicatePlaceholderWarning, MissingPlaceholderWarning
from page_translator.core.dom.placeholders import (
    PlaceholderProtector,
    count_tokens,
    resolve_placeholders,
    validate_placeholders,
)
from page_translator.core.dom.registry import Placeholder


def test_inline_code_becomes_token(make_session):
    session = make_session("<p>Use <code>npm</code> to install</p>")
    unit = session.extract()[0]
    assert unit.translatable_markup == "Use [id0.0] to install"
    assert unit.tokens == ("[id0.0]",)
    assert session.registry.lookup(0).placeholders == [Placeholder("[id0.0]", "<code>npm</code>")]


def test_multiple_tokens_in_order(make_session):
    session = make_session("<p><code>a</code> and <code>b</code></p>")
    unit = session.extract()[0]
    assert unit.translatable_markup == "[id0.0] and [id0.1]"
    fragments = [p.original_fragment for p in session.registry.lookup(0).placeholders]
    assert fragments == ["<code>a</code>", "<code>b</code>"]


def test_token_lands_after_previous_sibling(make_session):
    session = make_session("<p><em>Run</em> <code>make</code> now</p>")
    unit = session.extract()[0]
    assert unit.translatable_markup == "<em>Run</em> [id0.0] now"


def test_nested_protected_elements_give_one_token(make_session):
    session = make_session("<p>Press <kbd><code>Ctrl</code>+C</kbd>.</p>")
    unit = session.extract()[0]
    assert unit.translatable_markup == "Press [id0.0]."
    assert session.registry.lookup(0).placeholders[0].original_fragment == "<kbd><code>Ctrl</code>+C</kbd>"


def test_excluded_block_inside_unit_is_tokenized(make_session):
    session = make_session("<ul><li>Run this:<pre>ls -la</pre></li></ul>")
    unit = session.extract()[0]
    assert unit.translatable_markup == "Run this:[id0.0]"
    assert session.registry.lookup(0).placeholders[0].original_fragment == "<pre>ls -la</pre>"


def test_highlighted_code_is_tokenized(make_session):
    session = make_session('<p>See <code class="language-py">x = 1</code></p>')
    unit = session.extract()[0]
    assert unit.translatable_markup == "See [id0.0]"


def test_token_colliding_with_page_text_is_skipped(make_session):
    session = make_session("<p>Literal [id0.0] then <code>x</code></p>")
    unit = session.extract()[0]
    assert unit.tokens == ("[id0.1]",)
    assert unit.translatable_markup == "Literal [id0.0] then [id0.1]"


def test_protect_markup_leaves_plain_markup_alone():
    markup, placeholders = PlaceholderProtector().protect_markup(4, "Hello <b>there</b>")
    assert markup == "Hello <b>there</b>"
    assert placeholders == []


def test_protect_markup_uses_unit_id():
    markup, placeholders = PlaceholderProtector().protect_markup(12, "Type <kbd>q</kbd>")
    assert markup == "Type [id12.0]"
    assert placeholders[0].token == "[id12.0]"


def test_protect_does_not_touch_owner(make_session):
    session = make_session("<p>Use <code>npm</code></p>")
    session.extract()
    owner = session.registry.lookup(0).owner
    assert owner.find('code') is not None


# --- resolution ---

PLACEHOLDERS = [Placeholder("[id0.0]", "<code>npm</code>"), Placeholder("[id0.1]", "<kbd>q</kbd>")]


def test_resolve_restores_fragments_in_any_order():
    resolved, warnings = resolve_placeholders("[id0.1] puis [id0.0]", PLACEHOLDERS, 0)
    assert resolved == "<kbd>q</kbd> puis <code>npm</code>"
    assert warnings == []


def test_resolve_reports_missing_token():
    resolved, warnings = resolve_placeholders("Utilisez [id0.0]", PLACEHOLDERS, 0)
    assert resolved == "Utilisez <code>npm</code>"
    assert len(warnings) == 1
    assert isinstance(warnings[0], MissingPlaceholderWarning)
    assert warnings[0].token == "[id0.1]"


def test_resolve_duplicate_token_resolves_first_only():
    resolved, warnings = resolve_placeholders("[id0.0] et [id0.0] [id0.1]", PLACEHOLDERS, 0)
    assert resolved == "<code>npm</code> et [id0.0] <kbd>q</kbd>"
    assert len(warnings) == 1
    assert isinstance(warnings[0], DuplicatePlaceholderWarning)
    assert warnings[0].count == 2


def test_resolve_ignores_foreign_tokens():
    resolved, warnings = resolve_placeholders("[id7.0] [id0.0] [id0.1]", PLACEHOLDERS, 0)
    assert resolved == "[id7.0] <code>npm</code> <kbd>q</kbd>"
    assert warnings == []


def test_count_tokens():
    counts = count_tokens("[id0.0] [id0.0] [id1.0]", ["[id0.0]", "[id0.1]"])
    assert counts == {"[id0.0]": 2, "[id0.1]": 0}


def test_validate_placeholders():
    tokens = ["[id0.0]", "[id0.1]"]
    assert validate_placeholders("a [id0.0] b [id0.1]", tokens) == (True, "")
    assert validate_placeholders("no tokens here", []) == (True, "")

    ok, message = validate_placeholders("a [id0.0]", tokens)
    assert not ok
    assert "Missing placeholders: [id0.1]" in message

    ok, message = validate_placeholders("[id0.0] [id0.0] [id0.1]", tokens)
    assert not ok
    assert "Duplicate: [id0.0] appears 2 times" in message
