"""
Lazy, single-use sequence pipelines.

A ``LazySequence`` holds a source and a list of pending stage operations.
Stages return new sequences and do no work; a terminal operation builds the
generator chain once, pulls elements through it on demand and produces a
result. A sequence (and every sequence upstream of it) can be consumed once.
"""

import logging
from typing import Any, Callable, Dict, Hashable, Iterable, Iterator, List, Optional, Tuple

from . import collectors
from .collectors import Collector
from .config import EvaluationSettings, get_settings
from .contracts import (
    CallbackStopIteration,
    Combiner,
    Consumer,
    Maybe,
    Predicate,
    Transformer,
    guarded,
    require_callable,
)
from .errors import ExhaustionWithoutBoundError, ReuseViolationError

logger = logging.getLogger(__name__)

FRESH = "fresh"
CONSUMED = "consumed"

_NO_IDENTITY = object()


class LazySequence:
    """
    A chainable, lazy, at-most-once-traversable sequence.

    Stage operations (``filter``, ``transform``, ``flat_expand``, ``limit``,
    ``skip``, ``distinct`` ...) are recorded and applied only when a terminal
    operation (``for_each``, ``reduce``, ``collect``, ``any_match`` ...) pulls
    elements. Build sequences with the functions in ``lazyseq.sources``.
    """

    def __init__(self, source: Callable[[], Iterator[Any]], ops=None, *, finite: bool = True,
                 settings: Optional[EvaluationSettings] = None, upstreams: Tuple["LazySequence", ...] = ()):
        self._source = source          # zero-arg callable opening the raw element iterator
        self._ops = ops or []          # sequence of ("op_name", arg)
        self._finite = finite
        self._settings = settings if settings is not None else get_settings()
        self._upstreams = upstreams    # sequences this one took ownership of
        self._state = FRESH

    # --------- lifecycle ----------
    @property
    def state(self) -> str:
        return self._state

    @property
    def is_consumed(self) -> bool:
        return self._state == CONSUMED

    @property
    def finite(self) -> bool:
        return self._finite

    @property
    def settings(self) -> EvaluationSettings:
        return self._settings

    # --------- chainable stages (lazy) ----------
    def filter(self, pred: Predicate) -> "LazySequence":
        """Keep elements for which ``pred`` holds."""
        require_callable(pred, "filter predicate")
        return self._with_op(("filter", pred))

    def transform(self, fn: Transformer) -> "LazySequence":
        """Replace every element with ``fn(element)``."""
        require_callable(fn, "transform function")
        return self._with_op(("transform", fn))

    def map(self, fn: Transformer) -> "LazySequence":
        """Alias for transform()"""
        return self.transform(fn)

    def flat_expand(self, fn: Transformer[Any, Iterable[Any]]) -> "LazySequence":
        """
        Replace every element with the elements of ``fn(element)``.

        ``fn`` returns any iterable (or a fresh LazySequence); its elements are
        all yielded before the next upstream element is pulled. Only one level
        is flattened.
        """
        require_callable(fn, "flat_expand function")
        return self._with_op(("flat_expand", fn))

    def flat_map(self, fn: Transformer[Any, Iterable[Any]]) -> "LazySequence":
        """Alias for flat_expand()"""
        return self.flat_expand(fn)

    def limit(self, n):
        """Yield at most the first ``n`` elements. Bounds an infinite sequence."""
        return self._with_op(("limit", max(int(n), 0)), finite=True)

    def take(self, n):
        """Alias for limit()"""
        return self.limit(n)

    def skip(self, n):
        """Discard the first ``n`` elements."""
        return self._with_op(("skip", max(int(n), 0)))

    def distinct(self, key: Optional[Transformer] = None) -> "LazySequence":
        """Yield each element the first time an equal value (or key) is seen."""
        if key is not None:
            require_callable(key, "distinct key")
        return self._with_op(("distinct", key))

    def peek(self, consumer: Consumer) -> "LazySequence":
        """Call ``consumer`` on each element as it passes through."""
        require_callable(consumer, "peek consumer")
        return self._with_op(("peek", consumer))

    def take_while(self, pred: Predicate) -> "LazySequence":
        """Yield elements until ``pred`` first fails, then stop pulling."""
        require_callable(pred, "take_while predicate")
        return self._with_op(("take_while", pred), finite=True)

    def drop_while(self, pred: Predicate) -> "LazySequence":
        """Discard elements until ``pred`` first fails, then yield the rest."""
        require_callable(pred, "drop_while predicate")
        return self._with_op(("drop_while", pred))

    def batch(self, size):
        """Group elements into tuples of ``size``; the last one may be shorter."""
        size = int(size)
        if size < 1:
            raise ValueError("Batch size must be >= 1")
        return self._with_op(("batch", size))

    def chunk(self, size):
        """Alias for batch() - groups elements into chunks of specified size"""
        return self.batch(size)

    def page(self, page_number, page_size):
        """Get a specific page of results (1-indexed)"""
        if page_number < 1:
            raise ValueError("Page number must be >= 1")
        offset = (page_number - 1) * page_size
        return self.skip(offset).limit(page_size)

    def sorted(self, key: Optional[Transformer] = None, reverse: bool = False) -> "LazySequence":
        """
        Buffering stage: drains upstream on the first pull, then yields the
        elements in sorted order. Not allowed on an infinite sequence.
        """
        if not self._finite and self._settings.enforce_bounds:
            raise ExhaustionWithoutBoundError("Cannot sort an infinite sequence; add limit() first")
        return self._with_op(("sorted", (key, reverse)), finite=True)

    # --------- terminal operations (force evaluation) ----------
    def for_each(self, consumer: Consumer) -> None:
        """Call ``consumer`` on every element, in order."""
        require_callable(consumer, "for_each consumer")

        def drive(it):
            for item in it:
                consumer(item)

        self._evaluate("for_each", drive)

    def reduce(self, combiner: Combiner, identity: Any = _NO_IDENTITY):
        """
        Fold elements left to right with ``combiner``.

        With ``identity`` the fold starts there and an empty sequence returns it
        unchanged. Without it the result is a Maybe, absent on empty input.
        """
        require_callable(combiner, "reduce combiner")

        def drive(it):
            if identity is not _NO_IDENTITY:
                acc = identity
            else:
                try:
                    acc = next(it)
                except StopIteration:
                    return Maybe.empty()
            for item in it:
                acc = combiner(acc, item)
            return acc if identity is not _NO_IDENTITY else Maybe.of(acc)

        return self._evaluate("reduce", drive)

    def collect(self, collector: Collector):
        """Accumulate elements with a Collector and return its finished result."""
        if not isinstance(collector, Collector):
            raise TypeError(f"collect() expects a Collector, got {type(collector).__name__}")
        return self._evaluate("collect", collector.evaluate)

    def to_list(self) -> List[Any]:
        return self.collect(collectors.to_list())

    def to_set(self) -> set:
        return self.collect(collectors.to_set())

    def group_by(self, key_fn: Transformer) -> Dict[Hashable, List[Any]]:
        """Group elements by the result of key_fn"""
        return self.collect(collectors.grouping_by(key_fn))

    def sum(self, mapper: Optional[Transformer] = None):
        """Return the sum of all elements (0 when empty)"""
        return self.collect(collectors.summing(mapper))

    def count(self) -> int:
        """Return the count of elements"""
        return self.collect(collectors.counting())

    def average(self, mapper: Optional[Transformer] = None) -> Maybe:
        """Arithmetic mean as a Maybe; absent on an empty sequence."""
        return self.collect(collectors.averaging(mapper))

    def min(self, key: Optional[Transformer] = None) -> Maybe:
        """Smallest element (first of equals) as a Maybe."""
        measure = key if key is not None else _identity
        return self.reduce(lambda a, b: b if measure(b) < measure(a) else a)

    def max(self, key: Optional[Transformer] = None) -> Maybe:
        """Largest element (first of equals) as a Maybe."""
        measure = key if key is not None else _identity
        return self.reduce(lambda a, b: b if measure(b) > measure(a) else a)

    def any_match(self, pred: Optional[Predicate] = None) -> bool:
        """True as soon as one element satisfies ``pred`` (truthiness by default)."""
        test = pred if pred is not None else bool

        def drive(it):
            for item in it:
                if test(item):
                    return True
            return False

        return self._evaluate("any_match", drive, exhaustive=False)

    def all_match(self, pred: Optional[Predicate] = None) -> bool:
        """False as soon as one element fails ``pred``; True on an empty sequence."""
        test = pred if pred is not None else bool

        def drive(it):
            for item in it:
                if not test(item):
                    return False
            return True

        return self._evaluate("all_match", drive, exhaustive=False)

    def none_match(self, pred: Optional[Predicate] = None) -> bool:
        """False as soon as one element satisfies ``pred``; True on an empty sequence."""
        test = pred if pred is not None else bool

        def drive(it):
            for item in it:
                if test(item):
                    return False
            return True

        return self._evaluate("none_match", drive, exhaustive=False)

    def find_first(self) -> Maybe:
        """First element as a Maybe; pulls at most one element."""

        def drive(it):
            for item in it:
                return Maybe.of(item)
            return Maybe.empty()

        return self._evaluate("find_first", drive, exhaustive=False)

    def find(self, pred: Predicate) -> Maybe:
        """Return the first element that satisfies the predicate, as a Maybe"""
        return self.filter(pred).find_first()

    # --------- iterator protocol ----------
    def __iter__(self) -> Iterator[Any]:
        # iterating is a terminal operation: the sequence is consumed here,
        # before the first element is requested
        return _PipelineIterator(self._begin("iter", exhaustive=False))

    def __repr__(self) -> str:
        ops = [op for op, _ in self._ops]
        return f"LazySequence(ops={ops}, finite={self._finite}, state={self._state})"

    # --------- evaluation ----------
    def _evaluate(self, name: str, drive: Callable[[Iterator[Any]], Any], exhaustive: bool = True):
        it = self._begin(name, exhaustive)
        try:
            result = drive(it)
        except CallbackStopIteration as e:
            logger.debug(f"Terminal '{name}' aborted: {e.original!r}")
            raise e.original from None
        except Exception as e:
            logger.debug(f"Terminal '{name}' aborted: {e!r}")
            raise
        logger.debug(f"Terminal '{name}' completed")
        return result

    def _begin(self, name: str, exhaustive: bool) -> Iterator[Any]:
        consumed = self._find_consumed()
        if consumed is not None:
            logger.warning(f"Terminal '{name}' rejected: {consumed!r} was already consumed")
            raise ReuseViolationError(
                f"Cannot run '{name}': the sequence or one of its upstream sequences was already consumed"
            )
        if exhaustive and not self._finite and self._settings.enforce_bounds:
            logger.warning(f"Terminal '{name}' rejected on an infinite sequence: {self!r}")
            raise ExhaustionWithoutBoundError(
                f"'{name}' would never finish on an infinite sequence; add limit() or take_while() first"
            )
        self._mark_consumed()
        logger.debug(f"Terminal '{name}' started on {self!r}")
        return self._build_iterator(exhaustive)

    def _build_iterator(self, exhaustive: bool = False) -> Iterator[Any]:
        # Build the pipeline starting from the source
        max_pulls = self._settings.max_pulls
        it = self._source()
        if max_pulls is not None:
            it = _capped(it, max_pulls)
        for index, (op, arg) in enumerate(self._ops):
            if op == "filter":
                it = _filter(it, arg)
            elif op == "transform":
                it = _transform(it, arg)
            elif op == "flat_expand":
                # an infinite sub-sequence is refused unless a later stage bounds it
                refuse_infinite = (
                    exhaustive
                    and self._settings.enforce_bounds
                    and not any(later in _BOUNDING_OPS for later, _ in self._ops[index + 1:])
                )
                it = _flat_expand(it, arg, max_pulls, refuse_infinite)
            elif op == "limit":
                it = _limit(it, arg)
            elif op == "skip":
                it = _skip(it, arg)
            elif op == "distinct":
                it = _distinct(it, arg)
            elif op == "peek":
                it = _peek(it, arg)
            elif op == "take_while":
                it = _take_while(it, arg)
            elif op == "drop_while":
                it = _drop_while(it, arg)
            elif op == "batch":
                it = _batch(it, arg)
            elif op == "sorted":
                it = _sorted(it, *arg)
            else:
                raise ValueError(f"Unknown op: {op}")
        return it

    # --------- helpers ----------
    def _with_op(self, op_tuple, finite: Optional[bool] = None) -> "LazySequence":
        self._ensure_fresh(op_tuple[0])
        return LazySequence(
            self._source,
            self._ops + [op_tuple],
            finite=self._finite if finite is None else finite,
            settings=self._settings,
            upstreams=(self,),
        )

    def _ensure_fresh(self, action: str) -> None:
        if self._find_consumed() is not None:
            logger.warning(f"Stage '{action}' rejected: {self!r} is part of a consumed chain")
            raise ReuseViolationError(f"Cannot attach '{action}' to an already consumed sequence")

    def _lineage(self) -> List["LazySequence"]:
        """This sequence and every sequence upstream of it."""
        nodes = []
        stack = [self]
        while stack:
            seq = stack.pop()
            nodes.append(seq)
            stack.extend(seq._upstreams)
        return nodes

    def _find_consumed(self) -> Optional["LazySequence"]:
        for seq in self._lineage():
            if seq._state == CONSUMED:
                return seq
        return None

    def _mark_consumed(self) -> None:
        for seq in self._lineage():
            seq._state = CONSUMED


def _identity(x):
    return x


# --------- stage generators ----------

# stages after which an infinite upstream can still finish
_BOUNDING_OPS = ("limit", "take_while")


class _PipelineIterator:
    """Iterator handed out by ``iter(seq)``; re-raises a callback's StopIteration as-is."""

    def __init__(self, it: Iterator[Any]):
        self._it = it

    def __iter__(self):
        return self

    def __next__(self):
        try:
            return next(self._it)
        except CallbackStopIteration as e:
            raise e.original from None


def _capped(gen, max_pulls, what="Source"):
    pulled = 0
    for x in gen:
        pulled += 1
        if pulled > max_pulls:
            logger.warning(f"{what} pull cap of {max_pulls} exceeded")
            raise ExhaustionWithoutBoundError(f"{what} produced more than max_pulls={max_pulls} elements")
        yield x


def _filter(gen, pred):
    pred = guarded(pred)
    for x in gen:
        if pred(x):
            yield x


def _transform(gen, fn):
    fn = guarded(fn)
    for x in gen:
        yield fn(x)


def _flat_expand(gen, fn, max_pulls=None, refuse_infinite=False):
    fn = guarded(fn)
    flattened = _flatten(gen, fn, refuse_infinite)
    if max_pulls is not None:
        flattened = _capped(flattened, max_pulls, "Flattened output")
    yield from flattened


def _flatten(gen, fn, refuse_infinite):
    for x in gen:
        child = fn(x)
        if isinstance(child, LazySequence):
            if refuse_infinite and not child._finite:
                logger.warning(f"Stage 'flat_expand' produced an infinite sub-sequence: {child!r}")
                raise ExhaustionWithoutBoundError(
                    "flat_expand produced an infinite sub-sequence; add limit() or take_while() after it"
                )
            # the sub-sequence is consumed like any other terminal
            yield from child._begin("flat_expand", exhaustive=False)
        else:
            yield from iter(child)


def _limit(gen, n):
    if n <= 0:
        return
    taken = 0
    for x in gen:
        yield x
        taken += 1
        if taken >= n:
            return


def _skip(gen, k):
    skipped = 0
    for x in gen:
        if skipped < k:
            skipped += 1
            continue
        yield x


def _distinct(gen, key):
    key = guarded(key) if key is not None else None
    seen = set()
    seen_unhashable = []
    for x in gen:
        marker = key(x) if key is not None else x
        try:
            if marker in seen:
                continue
            seen.add(marker)
        except TypeError:
            # unhashable values fall back to equality scans
            if marker in seen_unhashable:
                continue
            seen_unhashable.append(marker)
        yield x


def _peek(gen, consumer):
    consumer = guarded(consumer)
    for x in gen:
        consumer(x)
        yield x


def _take_while(gen, pred):
    pred = guarded(pred)
    for x in gen:
        if not pred(x):
            return
        yield x


def _drop_while(gen, pred):
    pred = guarded(pred)
    dropping = True
    for x in gen:
        if dropping and pred(x):
            continue
        dropping = False
        yield x


def _batch(gen, size):
    bucket = []
    for x in gen:
        bucket.append(x)
        if len(bucket) == size:
            yield tuple(bucket)
            bucket = []
    if bucket:
        yield tuple(bucket)


def _sorted(gen, key, reverse):
    key = guarded(key) if key is not None else None
    yield from sorted(gen, key=key, reverse=reverse)
