"""lazyseq - lazy, single-use sequence pipelines (filter -> transform -> act)."""

from . import collectors
from .collectors import Collector
from .config import EvaluationSettings, configure, get_settings, reset_settings
from .contracts import Combiner, Consumer, Maybe, Predicate, Supplier, Transformer
from .errors import ExhaustionWithoutBoundError, LazySeqError, NoValueError, ReuseViolationError
from .lazy import LazySequence
from .sources import concat, empty, from_container, from_generator, from_iterable, iterate, of

__version__ = "0.1.0"

__all__ = [
    "Collector",
    "Combiner",
    "Consumer",
    "EvaluationSettings",
    "ExhaustionWithoutBoundError",
    "LazySeqError",
    "LazySequence",
    "Maybe",
    "NoValueError",
    "Predicate",
    "ReuseViolationError",
    "Supplier",
    "Transformer",
    "collectors",
    "concat",
    "configure",
    "empty",
    "from_container",
    "from_generator",
    "from_iterable",
    "get_settings",
    "iterate",
    "of",
    "reset_settings",
]
