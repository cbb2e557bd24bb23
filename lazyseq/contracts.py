"""Functional contracts consumed by the pipeline, and the absent/present result.

Each contract is structural: any callable with the matching call signature
(a function, lambda, bound method or object defining ``__call__``) satisfies
it. The pipeline never builds these itself; callers always supply them.
"""

from typing import Any, Callable, Generic, Protocol, TypeVar, runtime_checkable

from .errors import NoValueError

T = TypeVar("T")
R = TypeVar("R")
T_contra = TypeVar("T_contra", contravariant=True)
R_co = TypeVar("R_co", covariant=True)


@runtime_checkable
class Predicate(Protocol[T_contra]):
    """``T -> bool``. May be called any number of times per element."""

    def __call__(self, element: T_contra) -> bool:
        ...


@runtime_checkable
class Consumer(Protocol[T_contra]):
    """``T -> None``. Called once per surviving element, in order."""

    def __call__(self, element: T_contra) -> None:
        ...


@runtime_checkable
class Transformer(Protocol[T_contra, R_co]):
    """``T -> R``. Must be total over the elements it receives."""

    def __call__(self, element: T_contra) -> R_co:
        ...


@runtime_checkable
class Combiner(Protocol[T]):
    """``(T, T) -> T``. Applied left to right."""

    def __call__(self, left: T, right: T) -> T:
        ...


@runtime_checkable
class Supplier(Protocol[R_co]):
    """``() -> T``. Called once per pull of a generator source."""

    def __call__(self) -> R_co:
        ...


def require_callable(fn: Any, role: str) -> None:
    """Reject a non-callable argument at chain-construction time."""
    if not callable(fn):
        raise TypeError(f"{role} must be callable, got {type(fn).__name__}")


class CallbackStopIteration(Exception):
    """Carries a StopIteration raised by a callback out of the generator chain."""

    def __init__(self, original: StopIteration):
        super().__init__(original)
        self.original = original


def guarded(fn: Callable[..., R]) -> Callable[..., R]:
    """
    Wrap a callback that runs inside a generator.

    A StopIteration escaping a generator frame turns into RuntimeError, so it
    travels as CallbackStopIteration and is unwrapped by the evaluator.
    """

    def call(*args):
        try:
            return fn(*args)
        except StopIteration as e:
            raise CallbackStopIteration(e) from None

    return call


class Maybe(Generic[T]):
    """
    A value that may be absent.

    Returned by the terminals whose result is undefined on empty input
    (``reduce`` without identity, ``average``, ``min``, ``max``,
    ``find_first``). ``Maybe.of(None)`` is present; only ``Maybe.empty()``
    is absent, so a ``None`` element and "no element" never collide.
    """

    __slots__ = ("_value", "_present")

    def __init__(self, value: Any = None, present: bool = False):
        self._value = value
        self._present = present

    @classmethod
    def of(cls, value: T) -> "Maybe[T]":
        return cls(value, True)

    @classmethod
    def empty(cls) -> "Maybe[Any]":
        return cls()

    @property
    def is_present(self) -> bool:
        return self._present

    @property
    def is_empty(self) -> bool:
        return not self._present

    def get(self) -> T:
        """Return the value, or raise NoValueError when absent."""
        if not self._present:
            raise NoValueError("No value present")
        return self._value

    def or_else(self, default: T) -> T:
        return self._value if self._present else default

    def or_else_get(self, supplier: Callable[[], T]) -> T:
        return self._value if self._present else supplier()

    def map(self, fn: Callable[[T], R]) -> "Maybe[R]":
        if not self._present:
            return Maybe.empty()
        return Maybe.of(fn(self._value))

    def if_present(self, consumer: Callable[[T], None]) -> None:
        if self._present:
            consumer(self._value)

    def __bool__(self) -> bool:
        return self._present

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Maybe):
            return NotImplemented
        if not self._present:
            return not other._present
        return other._present and self._value == other._value

    def __hash__(self) -> int:
        return hash((self._present, self._value))

    def __repr__(self) -> str:
        if not self._present:
            return "Maybe.empty()"
        return f"Maybe.of({self._value!r})"
