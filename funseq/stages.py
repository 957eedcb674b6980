"""
Stage producers: each wraps an upstream producer and reshapes what it yields.

Stages keep only a cursor and a reference to their upstream, so abandoning one
halfway needs no cleanup. Position counters always start at 0 per stage.
"""

from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .protocol import EXHAUSTED, Produced, Producer, ProductionResult

Predicate = Callable[[Any, int], bool]
Transform = Callable[[Any, int], Any]
ProducerFactory = Callable[[], Producer]


@dataclass(frozen=True)
class FilterOutcome:
    """Decision for one candidate element. ``done`` wins over ``skip``."""
    skip: bool
    done: bool


Decide = Callable[[Any, int], FilterOutcome]


# ---------- decision functions ----------

def slice_filter(begin, end=None) -> Decide:
    """Skip positions before ``begin`` and stop at ``end``.

    With a single argument it is the end bound and ``begin`` is 0.
    """
    if end is None:
        begin, end = 0, begin

    def decide(value, index):
        return FilterOutcome(skip=index < begin, done=index >= end)

    return decide


def skip_filter(count) -> Decide:
    """Skip the first ``count`` positions; never ends the sequence."""
    def decide(value, index):
        return FilterOutcome(skip=index < count, done=False)

    return decide


def while_filter(predicate: Predicate) -> Decide:
    """Pass elements through until ``predicate`` first fails."""
    def decide(value, index):
        return FilterOutcome(skip=False, done=not predicate(value, index))

    return decide


def predicate_filter(predicate: Predicate) -> Decide:
    """Drop elements rejected by ``predicate``; never ends the sequence."""
    def decide(value, index):
        return FilterOutcome(skip=not predicate(value, index), done=False)

    return decide


# ---------- stage producers ----------

class TerminatingFilterProducer:
    """
    Filters upstream elements and may end the sequence early.

    ``decide`` sees every upstream element with its 0-based pull position,
    skipped ones included. When it reports ``done`` the current element is
    dropped and the stage is exhausted for good.
    """

    def __init__(self, upstream: Producer, decide: Decide):
        self._upstream = upstream
        self._decide = decide
        self._index = 0
        self._exhausted = False

    def produce_next(self) -> ProductionResult:
        while not self._exhausted:
            result = self._upstream.produce_next()
            if result is EXHAUSTED:
                self._exhausted = True
                break

            outcome = self._decide(result.value, self._index)
            self._index += 1
            if outcome.done:
                self._exhausted = True
                break
            if not outcome.skip:
                return result
        return EXHAUSTED


class MappingProducer:
    """Applies ``transform(value, index)`` to each upstream element."""

    def __init__(self, upstream: Producer, transform: Transform):
        self._upstream = upstream
        self._transform = transform
        self._index = 0

    def produce_next(self) -> ProductionResult:
        result = self._upstream.produce_next()
        if result is EXHAUSTED:
            return EXHAUSTED
        value = self._transform(result.value, self._index)
        self._index += 1
        return Produced(value)


class BatchProducer:
    """Groups upstream elements into tuples of ``size``; the last may be short."""

    def __init__(self, upstream: Producer, size: int):
        self._upstream = upstream
        self._size = size
        self._exhausted = False

    def produce_next(self) -> ProductionResult:
        if self._exhausted:
            return EXHAUSTED

        bucket = []
        while len(bucket) < self._size:
            result = self._upstream.produce_next()
            if result is EXHAUSTED:
                self._exhausted = True
                break
            bucket.append(result.value)

        if not bucket:
            return EXHAUSTED
        return Produced(tuple(bucket))


class SingleProducer:
    """Yields one value, then is exhausted."""

    def __init__(self, value: Any):
        self._value = value
        self._done = False

    def produce_next(self) -> ProductionResult:
        if self._done:
            return EXHAUSTED
        self._done = True
        return Produced(self._value)


class ConcatProducer:
    """
    Drains a series of producers one after another.

    Each part is opened only once the previous one is exhausted, so an
    unbounded part is never touched before the consumer gets to it.
    """

    def __init__(self, parts: Sequence[ProducerFactory]):
        self._parts = parts
        self._position = 0
        self._current = None

    def produce_next(self) -> ProductionResult:
        while self._position < len(self._parts):
            if self._current is None:
                self._current = self._parts[self._position]()

            result = self._current.produce_next()
            if result is not EXHAUSTED:
                return result

            self._current = None
            self._position += 1
        return EXHAUSTED


class EvolveProducer:
    """Infinite producer of ``initial, step(initial), step(step(initial)), ...``"""

    def __init__(self, step: Callable[[Any], Any], initial: Any):
        self._step = step
        self._current = initial
        self._started = False

    def produce_next(self) -> ProductionResult:
        if self._started:
            self._current = self._step(self._current)
        else:
            self._started = True
        return Produced(self._current)
