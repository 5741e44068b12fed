"""Errors raised by the memoization decorators."""


class MemoizeUsageError(Exception):
    """Raised when memoize() is configured wrongly or applied to an unsupported member."""
    pass
