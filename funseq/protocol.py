"""
Pull protocol shared by every stage of a lazy sequence.

A producer hands out one element per ``produce_next()`` call and reports
``EXHAUSTED`` once nothing is left. Exhaustion is sticky: after the first
``EXHAUSTED`` every later call returns it again.
"""

from dataclasses import dataclass
from typing import Any, Iterator, Protocol, Union


@dataclass(frozen=True)
class Produced:
    """A single element handed out by a producer."""
    value: Any


class _Exhausted:
    """Marker returned once a producer has nothing left."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self):
        return "EXHAUSTED"

    def __bool__(self):
        return False


EXHAUSTED = _Exhausted()

ProductionResult = Union[Produced, _Exhausted]


class Producer(Protocol):
    """Protocol for pull-based element producers"""

    def produce_next(self) -> ProductionResult:
        """Return the next element wrapped in ``Produced``, or ``EXHAUSTED``"""
        ...


class EmptyProducer:
    """Producer that never yields anything."""

    def produce_next(self) -> ProductionResult:
        return EXHAUSTED


class IteratorProducer:
    """
    Adapts a Python iterator to the pull protocol.

    Python iterators are not required to keep raising ``StopIteration``, so
    the adapter remembers when it ran dry and stops touching the iterator.
    """

    def __init__(self, iterator: Iterator[Any]):
        self._iterator = iterator
        self._exhausted = False

    def produce_next(self) -> ProductionResult:
        if self._exhausted:
            return EXHAUSTED
        try:
            value = next(self._iterator)
        except StopIteration:
            self._exhausted = True
            return EXHAUSTED
        return Produced(value)


class ProducerIterator:
    """Exposes a producer through the Python iterator protocol."""

    def __init__(self, producer: Producer):
        self._producer = producer

    def __iter__(self):
        return self

    def __next__(self):
        result = self._producer.produce_next()
        if result is EXHAUSTED:
            raise StopIteration
        return result.value


class ExhaustionGuard:
    """Makes exhaustion sticky for producers that do not enforce it themselves."""

    def __init__(self, producer: Producer):
        self._producer = producer
        self._exhausted = False

    def produce_next(self) -> ProductionResult:
        if self._exhausted:
            return EXHAUSTED
        result = self._producer.produce_next()
        if result is EXHAUSTED:
            self._exhausted = True
        return result
