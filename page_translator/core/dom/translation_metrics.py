"""Translation metrics for one page translation run."""

import time
from dataclasses import dataclass, field
from typing import Dict


@dataclass
class TranslationMetrics:
    """Per-run counts, timing and retry distribution.

    Every translated unit lands in one of successful_first_try,
    successful_after_retry or failed_units (no usable translation).
    stale_units, detached_units and write failures (also in failed_units)
    count translations that could not be written back. processed_units only
    moves forward and drives progress reporting.
    """
    # === Counts ===
    total_units: int = 0
    successful_first_try: int = 0
    successful_after_retry: int = 0
    failed_units: int = 0
    stale_units: int = 0
    detached_units: int = 0
    units_with_warnings: int = 0
    interrupted_units: int = 0

    # === Progress tracking ===
    processed_units: int = 0

    # === Retry & Error Tracking ===
    retry_attempts: int = 0
    placeholder_errors: int = 0
    service_errors: int = 0

    # === Timing ===
    total_time_seconds: float = 0.0
    start_time: float = field(default_factory=time.time)
    end_time: float = 0.0

    # === Retry Distribution ===
    retry_distribution: Dict[int, int] = field(default_factory=dict)
    """Map of retry_count -> number_of_units. Example: {0: 85, 1: 10}"""

    # === Unit Size Stats (characters of translatable markup) ===
    total_unit_size: int = 0
    max_unit_size: int = 0

    def record_success(self, attempt: int, unit_size: int = 0) -> None:
        """Record a unit translated on attempt number `attempt` (0 = first try)."""
        if attempt == 0:
            self.successful_first_try += 1
        else:
            self.successful_after_retry += 1
        self.retry_distribution[attempt] = self.retry_distribution.get(attempt, 0) + 1
        self._update_unit_stats(unit_size)

    def record_failure(self, unit_size: int = 0) -> None:
        """Record a unit left untranslated."""
        self.failed_units += 1
        self._update_unit_stats(unit_size)

    def record_processed(self) -> None:
        self.processed_units += 1

    def _update_unit_stats(self, unit_size: int) -> None:
        self.max_unit_size = max(self.max_unit_size, unit_size)
        self.total_unit_size += unit_size

    def finalize(self) -> None:
        """Finalize metrics (call when translation completes)."""
        self.end_time = time.time()
        self.total_time_seconds = self.end_time - self.start_time

    @property
    def completed_units(self) -> int:
        return self.successful_first_try + self.successful_after_retry

    @property
    def avg_time_per_unit(self) -> float:
        if self.total_units == 0:
            return 0.0
        return self.total_time_seconds / self.total_units

    @property
    def success_rate(self) -> float:
        if self.total_units == 0:
            return 0.0
        return self.completed_units / self.total_units

    @property
    def first_try_rate(self) -> float:
        if self.total_units == 0:
            return 0.0
        return self.successful_first_try / self.total_units

    def to_dict(self) -> Dict:
        """Convert metrics to dictionary for serialization."""
        return {
            "total_units": self.total_units,
            "completed_units": self.completed_units,
            "processed_units": self.processed_units,
            "successful_first_try": self.successful_first_try,
            "successful_after_retry": self.successful_after_retry,
            "failed_units": self.failed_units,
            "stale_units": self.stale_units,
            "detached_units": self.detached_units,
            "units_with_warnings": self.units_with_warnings,
            "interrupted_units": self.interrupted_units,
            "retry_attempts": self.retry_attempts,
            "placeholder_errors": self.placeholder_errors,
            "service_errors": self.service_errors,
            "total_time_seconds": self.total_time_seconds,
            "avg_time_per_unit": self.avg_time_per_unit,
            "total_unit_size": self.total_unit_size,
            "max_unit_size": self.max_unit_size,
            "success_rate": self.success_rate,
            "first_try_rate": self.first_try_rate,
            "retry_distribution": self.retry_distribution,
        }

    def _pct(self, value: int) -> float:
        if self.total_units == 0:
            return 0.0
        return round(value / self.total_units * 100, 1)

    def log_summary(self, log_callback=None) -> str:
        """Build the end-of-run summary and send it to log_callback.

        Returns:
            Summary string
        """
        summary_lines = [
            "=== Translation Summary ===",
            f"Total units: {self.total_units}",
            f"Success 1st try: {self.successful_first_try} ({self._pct(self.successful_first_try)}%)",
            f"Success after retry: {self.successful_after_retry} ({self._pct(self.successful_after_retry)}%)",
            f"Total retry attempts: {self.retry_attempts}",
        ]

        if self.failed_units > 0:
            summary_lines.append(f"Untranslated units: {self.failed_units} ({self._pct(self.failed_units)}%)")

        if self.stale_units or self.detached_units:
            summary_lines.append(f"Skipped units: {self.stale_units} stale, {self.detached_units} detached")

        if self.interrupted_units > 0:
            summary_lines.append(f"Not started (interrupted): {self.interrupted_units}")

        if self.placeholder_errors > 0 or self.units_with_warnings > 0:
            summary_lines.extend([
                "",
                "=== Placeholder Issues ===",
                f"Placeholder validation errors: {self.placeholder_errors}",
                f"Units applied with unresolved tokens: {self.units_with_warnings}",
            ])

        if self.total_time_seconds > 0:
            summary_lines.extend([
                "",
                "=== Timing ===",
                f"Total time: {self.total_time_seconds:.2f}s",
                f"Avg per unit: {self.avg_time_per_unit:.2f}s",
            ])

        if self.retry_distribution:
            summary_lines.append("")
            summary_lines.append("=== Retry Distribution ===")
            for attempt, count in sorted(self.retry_distribution.items()):
                summary_lines.append(f"  {attempt} retries: {count} units ({self._pct(count)}%)")

        summary = "\n".join(summary_lines)

        if log_callback:
            log_callback("translation_stats", summary)

        return summary

    def merge(self, other: 'TranslationMetrics') -> None:
        """Add another run's counts into this one (e.g. several pages)."""
        self.total_units += other.total_units
        self.successful_first_try += other.successful_first_try
        self.successful_after_retry += other.successful_after_retry
        self.failed_units += other.failed_units
        self.stale_units += other.stale_units
        self.detached_units += other.detached_units
        self.units_with_warnings += other.units_with_warnings
        self.interrupted_units += other.interrupted_units
        self.processed_units += other.processed_units
        self.retry_attempts += other.retry_attempts
        self.placeholder_errors += other.placeholder_errors
        self.service_errors += other.service_errors
        self.total_time_seconds += other.total_time_seconds
        self.total_unit_size += other.total_unit_size
        self.max_unit_size = max(self.max_unit_size, other.max_unit_size)

        for attempt, count in other.retry_distribution.items():
            self.retry_distribution[attempt] = self.retry_distribution.get(attempt, 0) + count
