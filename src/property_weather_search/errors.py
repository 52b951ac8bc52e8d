"""Error taxonomy for property weather search.

Validation errors reach the caller as HTTP 400, upstream weather errors are
recovered per coordinate, and store errors propagate to a generic 500.
"""

from __future__ import annotations


class SearchError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(SearchError):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidRange(ValidationError):
    pass


class InvalidCondition(ValidationError):
    def __init__(self, message: str, invalid: list[str] | None = None):
        super().__init__(message)
        self.invalid = list(invalid or [])


class UpstreamError(SearchError):
    def __init__(self, message: str, *, key: str | None = None):
        super().__init__(message)
        self.key = key


class StoreError(SearchError):
    pass
