import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Optional, Tuple

from .protocol import (
    EXHAUSTED,
    ExhaustionGuard,
    IteratorProducer,
    Producer,
    ProducerIterator,
)
from .stages import (
    BatchProducer,
    ConcatProducer,
    MappingProducer,
    SingleProducer,
    TerminatingFilterProducer,
    predicate_filter,
    skip_filter,
    slice_filter,
    while_filter,
)
from .utils import MaterializationLimitError, TracingProducer, get_settings

logger = logging.getLogger(__name__)

NOT_FOUND = -1

StageConstructor = Callable[[Producer], Producer]


@dataclass(frozen=True)
class Found:
    """Result of a linear search; ``index`` is NOT_FOUND when nothing matched."""
    value: Any = None
    index: int = NOT_FOUND

    @property
    def found(self) -> bool:
        return self.index != NOT_FOUND


@dataclass(frozen=True)
class Single:
    """Marks a concat() argument as one element even if it is iterable."""
    value: Any


class LazySequence:
    """
    A restartable, chainable lazy sequence.

    The chain holds a base factory and an ordered tuple of stage
    constructors. Nothing runs until a terminal operation or iteration
    asks for elements; every such request builds a fresh producer, so the
    same chain can be consumed any number of times.
    """

    def __init__(self, source: Callable[[], Producer], stages: Tuple[StageConstructor, ...] = ()):
        self._source = source
        self._stages = tuple(stages)

    @classmethod
    def from_iterable(cls, iterable) -> "LazySequence":
        """Chain over a re-iterable collection (list, tuple, range, another chain)."""
        if isinstance(iterable, LazySequence):
            return iterable
        return cls(lambda: IteratorProducer(iter(iterable)))

    # --------- chainable stages (lazy) ----------
    def slice(self, begin, end=None) -> "LazySequence":
        """Keep positions ``begin <= index < end``.

        ``slice(n)`` and ``slice(n, None)`` both mean the first ``n``
        elements; use skip() to drop a prefix without an end bound.
        """
        return self._with_stage(partial(TerminatingFilterProducer, decide=slice_filter(begin, end)))

    def while_(self, predicate) -> "LazySequence":
        """Keep elements while ``predicate(value, index)`` holds, then stop."""
        return self._with_stage(partial(TerminatingFilterProducer, decide=while_filter(predicate)))

    take_while = while_

    def filter(self, predicate) -> "LazySequence":
        return self._with_stage(partial(TerminatingFilterProducer, decide=predicate_filter(predicate)))

    def map(self, transform) -> "LazySequence":
        return self._with_stage(partial(MappingProducer, transform=transform))

    def take(self, n) -> "LazySequence":
        return self.slice(n)

    def skip(self, n) -> "LazySequence":
        return self._with_stage(partial(TerminatingFilterProducer, decide=skip_filter(n)))

    def batch(self, size) -> "LazySequence":
        """Group elements into tuples of ``size``; the last one may be shorter"""
        size = int(size)
        if size < 1:
            raise ValueError("Batch size must be >= 1")
        return self._with_stage(partial(BatchProducer, size=size))

    def page(self, page_number, page_size) -> "LazySequence":
        """Get a specific page of results (1-indexed)"""
        if page_number < 1:
            raise ValueError("Page number must be >= 1")
        offset = (page_number - 1) * page_size
        return self.slice(offset, offset + page_size)

    def concat(self, *items) -> "LazySequence":
        """
        Lazily append other sequences or single values.

        Chains and other iterables contribute their elements, anything else
        (including ``str``/``bytes`` and ``Single`` wrappers) contributes
        itself. Parts are opened only when the consumer reaches them.
        """
        parts = (self.restart,) + tuple(_concat_part(item) for item in items)
        return LazySequence(lambda: ConcatProducer(parts))

    # --------- restarting ----------
    def restart(self) -> Producer:
        """Build a fresh producer: base factory folded through every stage."""
        settings = get_settings()
        producer = ExhaustionGuard(self._source())
        for stage in self._stages:
            producer = stage(producer)
        logger.debug("Restarted sequence with %d stages", len(self._stages))
        if settings.trace_pulls:
            producer = TracingProducer(producer, label=f"LazySequence@{id(self):x}")
        return producer

    def __iter__(self):
        return ProducerIterator(self.restart())

    # --------- terminal operations ----------
    def reduce(self, combine, initial):
        """Fold elements in order with ``combine(acc, value, index)``"""
        producer = self.restart()
        acc = initial
        index = 0
        result = producer.produce_next()
        while result is not EXHAUSTED:
            acc = combine(acc, result.value, index)
            index += 1
            result = producer.produce_next()
        return acc

    def search(self, predicate) -> Found:
        """Return the first element matching ``predicate(value, index)`` with its index"""
        producer = self.restart()
        index = 0
        result = producer.produce_next()
        while result is not EXHAUSTED:
            if predicate(result.value, index):
                logger.debug("Match at index %d", index)
                return Found(result.value, index)
            index += 1
            result = producer.produce_next()
        return Found()

    def find(self, predicate):
        return self.search(predicate).value

    def find_index(self, predicate) -> int:
        return self.search(predicate).index

    def some(self, predicate) -> bool:
        return self.find_index(predicate) != NOT_FOUND

    def every(self, predicate) -> bool:
        return self.find_index(lambda value, index: not predicate(value, index)) == NOT_FOUND

    def includes(self, item) -> bool:
        return self.some(lambda value, index: value == item)

    def __contains__(self, item):
        return self.includes(item)

    def for_each(self, action) -> None:
        """Call ``action(value)`` for every element, for side effects"""
        for item in self:
            action(item)

    def to_list(self) -> list:
        limit = get_settings().materialize_limit
        items = []
        for item in self:
            if limit is not None and len(items) >= limit:
                raise MaterializationLimitError(limit)
            items.append(item)
        return items

    def join(self, delimiter: Optional[str] = None) -> str:
        if delimiter is None:
            delimiter = get_settings().default_delimiter
        return delimiter.join(str(item) for item in self.to_list())

    def first(self, default=None):
        """Return the first element, or default if empty"""
        result = self.restart().produce_next()
        return default if result is EXHAUSTED else result.value

    def count(self) -> int:
        """Return the count of elements"""
        return self.reduce(lambda acc, value, index: acc + 1, 0)

    # --------- helpers ----------
    def _with_stage(self, stage: StageConstructor) -> "LazySequence":
        return LazySequence(self._source, self._stages + (stage,))

    def __repr__(self):
        return f"LazySequence(stages={len(self._stages)})"


def _concat_part(item) -> Callable[[], Producer]:
    if isinstance(item, LazySequence):
        return item.restart
    if isinstance(item, Single):
        return partial(SingleProducer, item.value)
    if isinstance(item, Iterable) and not isinstance(item, (str, bytes, bytearray)):
        return lambda: IteratorProducer(iter(item))
    return partial(SingleProducer, item)
