"""
Source adapters: the entry points that wrap data into a fresh LazySequence.

Wrapping is O(1); nothing is pulled from a container or supplier until a
terminal operation runs.
"""

import logging
from typing import Any, Callable, Iterable, Optional

from .config import EvaluationSettings
from .contracts import guarded, require_callable
from .errors import ReuseViolationError
from .lazy import LazySequence

logger = logging.getLogger(__name__)


def from_container(container: Iterable[Any], settings: Optional[EvaluationSettings] = None) -> LazySequence:
    """
    Wrap a bounded, already realized collection (list, tuple, range, dict,
    set, str ...). Each stored element is pulled exactly once, in the
    container's iteration order.

    One-shot iterators are rejected; wrap those with ``from_iterable``.
    """
    try:
        opened = iter(container)
    except TypeError:
        raise TypeError(f"from_container expects an iterable container, got {type(container).__name__}") from None
    if opened is container:
        raise TypeError("from_container expects a re-iterable container; use from_iterable() for iterators")

    logger.debug(f"Wrapping container of type {type(container).__name__}")
    return LazySequence(lambda: iter(container), finite=True, settings=settings)


def from_generator(supplier: Callable[[], Any], settings: Optional[EvaluationSettings] = None) -> LazySequence:
    """Wrap a Supplier as an infinite sequence; every pull calls ``supplier()`` once."""
    require_callable(supplier, "from_generator supplier")

    pull = guarded(supplier)

    def generate():
        while True:
            yield pull()

    logger.debug(f"Wrapping supplier {supplier!r} as an infinite sequence")
    return LazySequence(generate, finite=False, settings=settings)


def from_iterable(iterable: Iterable[Any], finite: bool = True,
                  settings: Optional[EvaluationSettings] = None) -> LazySequence:
    """
    Wrap any iterable, including a one-shot iterator or generator.

    The caller states whether it ends: pass ``finite=False`` for things like
    ``itertools.count()`` so exhaustive terminals are refused.
    """
    try:
        iter(iterable)
    except TypeError:
        raise TypeError(f"from_iterable expects an iterable, got {type(iterable).__name__}") from None
    return LazySequence(lambda: iter(iterable), finite=finite, settings=settings)


def of(*items: Any, settings: Optional[EvaluationSettings] = None) -> LazySequence:
    return from_container(items, settings=settings)


def empty(settings: Optional[EvaluationSettings] = None) -> LazySequence:
    return from_container((), settings=settings)


def iterate(seed: Any, fn: Callable[[Any], Any], settings: Optional[EvaluationSettings] = None) -> LazySequence:
    """Infinite sequence ``seed, fn(seed), fn(fn(seed)), ...``"""
    require_callable(fn, "iterate function")
    step = guarded(fn)

    def generate():
        value = seed
        while True:
            yield value
            value = step(value)

    return LazySequence(generate, finite=False, settings=settings)


def concat(*sequences: LazySequence, settings: Optional[EvaluationSettings] = None) -> LazySequence:
    """
    Join fresh sequences end to end. The result owns its parts: consuming it
    consumes them, and a consumed part cannot be concatenated.
    """
    for seq in sequences:
        if not isinstance(seq, LazySequence):
            raise TypeError(f"concat expects LazySequence arguments, got {type(seq).__name__}")
        if seq._find_consumed() is not None:
            raise ReuseViolationError("Cannot concat a sequence that was already consumed")
    owned = set()
    for seq in sequences:
        lineage = {id(node) for node in seq._lineage()}
        if owned & lineage:
            raise ReuseViolationError("Concatenated sequences must not share a source sequence")
        owned |= lineage

    def generate():
        for seq in sequences:
            yield from seq._build_iterator()

    return LazySequence(
        generate,
        finite=all(seq.finite for seq in sequences),
        settings=settings,
        upstreams=tuple(sequences),
    )
