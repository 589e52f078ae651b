"""
Tests for TranslationMetrics counting and summaries.
"""
from page_translator.core.dom.translation_metrics import TranslationMetrics


def test_record_success_and_failure():
    stats = TranslationMetrics(total_units=4)
    stats.record_success(0, 10)
    stats.record_success(0, 30)
    stats.record_success(2, 5)
    stats.record_failure(50)

    assert stats.successful_first_try == 2
    assert stats.successful_after_retry == 1
    assert stats.failed_units == 1
    assert stats.completed_units == 3
    assert stats.retry_distribution == {0: 2, 2: 1}
    assert stats.max_unit_size == 50
    assert stats.total_unit_size == 95
    assert stats.success_rate == 0.75
    assert stats.first_try_rate == 0.5


def test_rates_with_no_units():
    stats = TranslationMetrics()
    assert stats.success_rate == 0.0
    assert stats.first_try_rate == 0.0
    assert stats.avg_time_per_unit == 0.0


def test_finalize_sets_timing():
    stats = TranslationMetrics(total_units=2, start_time=100.0)
    stats.finalize()
    assert stats.end_time >= 100.0
    assert stats.total_time_seconds == stats.end_time - 100.0


def test_to_dict_has_progress_fields():
    stats = TranslationMetrics(total_units=3)
    stats.record_processed()
    data = stats.to_dict()
    assert data['total_units'] == 3
    assert data['processed_units'] == 1
    assert data['completed_units'] == 0
    assert 'retry_distribution' in data


def test_log_summary_sends_event(event_log):
    stats = TranslationMetrics(total_units=2)
    stats.record_success(0)
    stats.record_failure()
    stats.stale_units = 1
    stats.placeholder_errors = 2

    summary = stats.log_summary(event_log)
    assert event_log.events == [("translation_stats", summary)]
    assert "Total units: 2" in summary
    assert "Untranslated units: 1 (50.0%)" in summary
    assert "Skipped units: 1 stale, 0 detached" in summary
    assert "Placeholder validation errors: 2" in summary


def test_merge_adds_counts():
    first = TranslationMetrics(total_units=2, max_unit_size=10)
    first.record_success(0, 10)
    second = TranslationMetrics(total_units=3)
    second.record_success(1, 40)
    second.record_failure(5)

    first.merge(second)
    assert first.total_units == 5
    assert first.completed_units == 2
    assert first.failed_units == 1
    assert first.max_unit_size == 40
    assert first.retry_distribution == {0: 1, 1: 1}
