"""
Tests for writing translations back into the tree and restoring originals.
"""
from conftest import owner_markup

from page_translator.core.dom.exceptions import (
    DetachedElementWarning,
    DuplicatePlaceholderWarning,
    MarkupWriteError,
    MissingPlaceholderWarning,
    StaleUnitError,
)
from page_translator.core.dom.html_io import serialize_document
from page_translator.core.dom.registry import TranslationResult
from page_translator.core.dom.reinsertion import coerce_result


def test_apply_translation_keeps_inline_markup(make_session):
    session = make_session("<p>Hello <strong>world</strong></p>")
    unit = session.extract()[0]
    report = session.apply([TranslationResult(unit.id, "안녕 <strong>세계</strong>", unit.pass_id)])
    assert report.applied == [0]
    assert owner_markup(session, 0) == "안녕 <strong>세계</strong>"


def test_apply_resolves_tokens(make_session):
    session = make_session("<p>Use <code>npm</code> to install</p>")
    unit = session.extract()[0]
    report = session.apply([(unit.id, "Utilisez [id0.0] pour installer", unit.pass_id)])
    assert report.applied == [0]
    assert report.warnings == []
    assert owner_markup(session, 0) == "Utilisez <code>npm</code> pour installer"


def test_apply_is_idempotent(make_session):
    session = make_session("<p>One</p>")
    unit = session.extract()[0]
    result = TranslationResult(unit.id, "Un", unit.pass_id)
    session.apply([result])
    session.apply([result])
    assert owner_markup(session, 0) == "Un"


def test_restore_all_gives_back_original_document(make_session):
    html = ('<div><h1>Title</h1><p>Use <code>npm</code> &amp; <a href="/x">link</a></p>'
            '<ul><li>One</li><li>Two<pre>keep</pre></li></ul></div>')
    session = make_session(html)
    before = serialize_document(session.root)
    units = session.extract()
    session.apply([TranslationResult(u.id, f"T{u.id} {u.translatable_markup}", u.pass_id) for u in units])
    assert serialize_document(session.root) != before

    session.restore_all()
    assert serialize_document(session.root) == before


def test_restore_single_unit(make_session):
    session = make_session("<p>One</p><p>Two</p>")
    units = session.extract()
    session.apply([(u.id, "X", u.pass_id) for u in units])
    outcome = session.restore(1)
    assert outcome.status == "restored"
    assert owner_markup(session, 0) == "X"
    assert owner_markup(session, 1) == "Two"
    assert session.registry.lookup(1).applied_markup is None


def test_result_from_previous_pass_is_stale(make_session):
    session = make_session("<p>One</p>")
    old_unit = session.extract()[0]
    session.extract()
    report = session.apply([TranslationResult(old_unit.id, "Un", old_unit.pass_id)])
    assert report.stale == [0]
    assert isinstance(report.outcomes[0].error, StaleUnitError)
    assert owner_markup(session, 0) == "One"


def test_unknown_unit_id_is_stale(make_session, event_log):
    session = make_session("<p>One</p>", log_callback=event_log)
    session.extract()
    report = session.apply([TranslationResult(42, "?")])
    assert report.stale == [42]
    assert "unit_stale" in [name for name, _ in event_log.events]


def test_detached_owner_is_reported_not_written(make_session):
    session = make_session("<div><p>One</p></div><p>Two</p>")
    units = session.extract()
    owner = session.registry.lookup(0).owner
    owner.getparent().remove(owner)

    report = session.apply([(u.id, "X", u.pass_id) for u in units])
    assert report.detached == [0]
    assert report.applied == [1]
    assert isinstance(report.outcomes[0].warnings[0], DetachedElementWarning)
    assert owner.text == "One"


def test_missing_token_is_applied_with_warning(make_session):
    session = make_session("<p>Use <code>npm</code></p>")
    unit = session.extract()[0]
    report = session.apply([(unit.id, "Utilisez-le", unit.pass_id)])
    outcome = report.outcome_for(0)
    assert outcome.status == "applied"
    assert isinstance(outcome.warnings[0], MissingPlaceholderWarning)
    assert owner_markup(session, 0) == "Utilisez-le"
    assert report.summary()['warnings'] == 1


def test_duplicate_token_keeps_extra_as_text(make_session):
    session = make_session("<p>Use <code>npm</code></p>")
    unit = session.extract()[0]
    report = session.apply([(unit.id, "[id0.0] [id0.0]", unit.pass_id)])
    outcome = report.outcome_for(0)
    assert isinstance(outcome.warnings[0], DuplicatePlaceholderWarning)
    assert owner_markup(session, 0) == "<code>npm</code> [id0.0]"


def test_unparseable_markup_keeps_previous_content(make_session):
    session = make_session("<p>One</p><p>Two</p>")
    units = session.extract()
    session.apply([(0, "Un", units[0].pass_id)])

    report = session.apply([(0, "</div>oops", units[0].pass_id), (1, "Deux", units[1].pass_id)])
    assert report.failed == [0]
    assert report.applied == [1]
    assert isinstance(report.outcome_for(0).error, MarkupWriteError)
    assert owner_markup(session, 0) == "Un"
    assert owner_markup(session, 1) == "Deux"


def test_report_to_dict(make_session):
    session = make_session("<p>One</p>")
    unit = session.extract()[0]
    report = session.apply([(unit.id, "Un", unit.pass_id), (5, "x", unit.pass_id)])
    data = report.to_dict()
    assert data['pass_id'] == unit.pass_id
    assert data['outcomes'][0] == {'id': 0, 'status': 'applied', 'warnings': [], 'error': None}
    assert data['outcomes'][1]['status'] == 'stale'
    assert data['summary']['applied'] == 1
    assert data['summary']['stale'] == 1


def test_coerce_result_accepts_dicts_and_tuples():
    assert coerce_result({'index': '3', 'text': 'x'}) == TranslationResult(3, 'x', None)
    assert coerce_result({'id': 1, 'translated_markup': 'y', 'pass_id': 'p'}) == TranslationResult(1, 'y', 'p')
    assert coerce_result((2, 'z')) == TranslationResult(2, 'z', None)


def test_result_without_pass_id_is_never_applied(make_session):
    session = make_session("<p>First</p><p>Second</p>")
    session.extract()
    first = session.registry.lookup(0).owner
    first.getparent().remove(first)
    session.extract()

    report = session.apply([TranslationResult(0, "Premier")])
    assert report.stale == [0]
    assert report.applied == []
    assert isinstance(report.outcomes[0].error, StaleUnitError)
    assert owner_markup(session, 0) == "Second"


def test_malformed_results_do_not_abort_batch(make_session):
    session = make_session("<p>One</p><p>Two</p>")
    units = session.extract()
    pass_id = units[0].pass_id

    report = session.apply([
        {"foo": 1},
        ("x", "Un", pass_id),
        (0,),
        (0, "Un", pass_id, "extra"),
        None,
        {"index": 0, "text": None, "pass_id": pass_id},
        (1, "Deux", pass_id),
    ])
    assert report.applied == [1]
    assert len(report.failed) == 6
    assert all(o.unit_id is None for o in report.outcomes if o.status == "failed")
    assert owner_markup(session, 0) == "One"
    assert owner_markup(session, 1) == "Deux"
    assert report.to_dict()['summary']['failed'] == 6


def test_restore_after_sequence_of_applies(make_session):
    session = make_session("<p>Use <code>npm</code> here</p><p>Other</p>")
    before = serialize_document(session.root)
    unit = session.extract()[0]

    session.apply([(unit.id, "Un [id0.0]", unit.pass_id)])
    failed = session.apply([(unit.id, "</div>oops", unit.pass_id)])
    assert failed.failed == [0]
    session.apply([(unit.id, "Deux [id0.0] [id0.0]", unit.pass_id)])
    assert owner_markup(session, 0) == "Deux <code>npm</code> [id0.0]"

    outcome = session.restore(unit.id)
    assert outcome.status == "restored"
    assert owner_markup(session, 0) == "Use <code>npm</code> here"
    assert serialize_document(session.root) == before
