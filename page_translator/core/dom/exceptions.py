"""
Errors and warnings raised while extracting and reinserting content units.

All of them are scoped to a single unit: they end up in an ApplyReport
outcome and never abort processing of the remaining units.
"""


class DomTranslationError(Exception):
    """Base class for content unit errors."""


class StaleUnitError(DomTranslationError):
    """A result references a unit id that is not part of the current pass."""

    def __init__(self, unit_id: int, pass_id=None, current_pass_id=None):
        self.unit_id = unit_id
        self.pass_id = pass_id
        self.current_pass_id = current_pass_id
        if pass_id is None:
            message = f"Result for unit {unit_id} carries no pass id (current pass is {current_pass_id})"
        elif pass_id != current_pass_id:
            message = f"Unit {unit_id} belongs to pass {pass_id}, current pass is {current_pass_id}"
        else:
            message = f"Unit {unit_id} is not registered in pass {current_pass_id}"
        super().__init__(message)


class MarkupWriteError(DomTranslationError):
    """Resolved markup could not be parsed into the owner element."""


class PlaceholderWarning(UserWarning):
    """Base class for token problems found in translated markup."""

    def __init__(self, unit_id: int, token: str, message: str):
        self.unit_id = unit_id
        self.token = token
        super().__init__(message)


class MissingPlaceholderWarning(PlaceholderWarning):
    """Translated markup lacks an expected token; the fragment is not restored."""

    def __init__(self, unit_id: int, token: str):
        super().__init__(unit_id, token, f"Unit {unit_id}: token {token} missing from translation")


class DuplicatePlaceholderWarning(PlaceholderWarning):
    """A token appears more than once; only the first occurrence is resolved."""

    def __init__(self, unit_id: int, token: str, count: int):
        self.count = count
        super().__init__(unit_id, token, f"Unit {unit_id}: token {token} appears {count} times")


class DetachedElementWarning(UserWarning):
    """The owner element was removed from the live tree before the write."""

    def __init__(self, unit_id: int):
        self.unit_id = unit_id
        super().__init__(f"Unit {unit_id}: owner element is no longer attached to the document")


class EmptyExtractionResult(UserWarning):
    """No eligible units were found. A valid terminal state, not an error."""

    def __init__(self, pass_id=None):
        self.pass_id = pass_id
        super().__init__(f"No translatable content units found (pass {pass_id})")
