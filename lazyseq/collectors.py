"""
Collectors: the accumulation strategy behind ``LazySequence.collect``.

A collector is three cooperating callables:

* ``supplier()`` builds a fresh accumulator,
* ``accumulator(acc, element)`` folds one element in and returns the
  accumulator to continue with (it may mutate ``acc`` and return it, or
  return a new value),
* ``finisher(acc)`` turns the final accumulator into the result.

The evaluator does not know the container type; everything it needs comes from
these three parts, so a collector can be exercised on its own with
``Collector.evaluate``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Hashable, Iterable, Optional, TypeVar

from .contracts import Maybe, require_callable

T = TypeVar("T")
A = TypeVar("A")
R = TypeVar("R")
K = TypeVar("K")


def _identity(acc):
    return acc


@dataclass(frozen=True)
class Collector(Generic[T, A, R]):
    """(supplier, accumulator, finisher) triple."""
    supplier: Callable[[], A]
    accumulator: Callable[[A, T], A]
    finisher: Callable[[A], R] = field(default=_identity)

    def __post_init__(self):
        require_callable(self.supplier, "Collector supplier")
        require_callable(self.accumulator, "Collector accumulator")
        require_callable(self.finisher, "Collector finisher")

    @classmethod
    def of(cls, supplier: Callable[[], A], accumulator: Callable[[A, T], A],
           finisher: Optional[Callable[[A], R]] = None) -> "Collector[T, A, R]":
        return cls(supplier, accumulator, finisher if finisher is not None else _identity)

    def evaluate(self, elements: Iterable[T]) -> R:
        """Run the collector over any iterable, outside a pipeline."""
        acc = self.supplier()
        for element in elements:
            acc = self.accumulator(acc, element)
        return self.finisher(acc)


# --------- stock collectors ----------

def _append(acc, element):
    acc.append(element)
    return acc


def _add(acc, element):
    acc.add(element)
    return acc


def to_list() -> Collector:
    """Collect into a new list, in encounter order."""
    return Collector(list, _append)


def to_set() -> Collector:
    return Collector(set, _add)


def to_dict(key_fn: Callable[[Any], Hashable], value_fn: Optional[Callable] = None,
            merge: Optional[Callable[[Any, Any], Any]] = None) -> Collector:
    """
    Collect into a dict keyed by ``key_fn``.

    Duplicate keys raise ValueError unless ``merge(old, new)`` is given.
    """
    require_callable(key_fn, "key_fn")
    value_of = value_fn if value_fn is not None else _identity

    def accumulate(acc, element):
        key = key_fn(element)
        value = value_of(element)
        if key in acc:
            if merge is None:
                raise ValueError(f"Duplicate key: {key!r}")
            value = merge(acc[key], value)
        acc[key] = value
        return acc

    return Collector(dict, accumulate)


def joining(separator: str = "", prefix: str = "", suffix: str = "") -> Collector:
    """Concatenate the string form of each element."""

    def finish(parts):
        return prefix + separator.join(parts) + suffix

    return Collector(list, lambda acc, element: _append(acc, str(element)), finish)


def counting() -> Collector:
    return Collector(lambda: 0, lambda acc, _element: acc + 1)


def summing(mapper: Optional[Callable[[Any], Any]] = None) -> Collector:
    project = mapper if mapper is not None else _identity
    return Collector(lambda: 0, lambda acc, element: acc + project(element))


def averaging(mapper: Optional[Callable[[Any], Any]] = None) -> Collector:
    """Arithmetic mean as a Maybe; absent when nothing was collected."""
    project = mapper if mapper is not None else _identity

    def accumulate(acc, element):
        acc[0] += project(element)
        acc[1] += 1
        return acc

    def finish(acc):
        total, count = acc
        if count == 0:
            return Maybe.empty()
        return Maybe.of(total / count)

    return Collector(lambda: [0, 0], accumulate, finish)


def reducing(combiner: Callable[[Any, Any], Any], identity: Any) -> Collector:
    require_callable(combiner, "combiner")
    return Collector(lambda: identity, combiner)


def mapping(fn: Callable[[Any], Any], downstream: Collector) -> Collector:
    """Apply ``fn`` to each element before handing it to ``downstream``."""
    require_callable(fn, "mapping function")
    return Collector(
        downstream.supplier,
        lambda acc, element: downstream.accumulator(acc, fn(element)),
        downstream.finisher,
    )


def grouping_by(key_fn: Callable[[Any], Hashable], downstream: Optional[Collector] = None,
                map_factory: Callable[[], Dict] = dict) -> Collector:
    """
    Group elements by ``key_fn``; each group is reduced by ``downstream``
    (a list by default). Keys keep first-seen order.
    """
    require_callable(key_fn, "key_fn")
    inner = downstream if downstream is not None else to_list()

    def accumulate(groups, element):
        key = key_fn(element)
        if key not in groups:
            groups[key] = inner.supplier()
        groups[key] = inner.accumulator(groups[key], element)
        return groups

    def finish(groups):
        result = map_factory()
        for key, acc in groups.items():
            result[key] = inner.finisher(acc)
        return result

    return Collector(dict, accumulate, finish)


def partitioning_by(pred: Callable[[Any], bool], downstream: Optional[Collector] = None) -> Collector:
    """Split into ``{True: ..., False: ...}``; both keys are always present."""
    require_callable(pred, "predicate")
    inner = downstream if downstream is not None else to_list()

    def supply():
        return {True: inner.supplier(), False: inner.supplier()}

    def accumulate(parts, element):
        key = bool(pred(element))
        parts[key] = inner.accumulator(parts[key], element)
        return parts

    def finish(parts):
        return {key: inner.finisher(acc) for key, acc in parts.items()}

    return Collector(supply, accumulate, finish)
