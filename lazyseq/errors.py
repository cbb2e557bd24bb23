"""Exception types raised by lazy sequence pipelines.

Errors raised inside caller-supplied callbacks are never wrapped: they reach
the caller of the terminal operation unchanged.
"""


class LazySeqError(Exception):
    """Base class for pipeline errors."""
    pass


class ReuseViolationError(LazySeqError):
    """Raised when a stage or terminal is attached to a consumed sequence."""
    pass


class ExhaustionWithoutBoundError(LazySeqError):
    """Raised when an exhaustive terminal meets an unbounded sequence."""
    pass


class NoValueError(LazySeqError, LookupError):
    """Raised when reading the value of an absent result."""
    pass
