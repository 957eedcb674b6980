"""
Convenience constructors and list helpers built on LazySequence.
"""

import functools
import itertools
from typing import Any, Callable, Dict, Iterable, List, Optional

from .lazy import LazySequence
from .protocol import IteratorProducer
from .stages import EvolveProducer
from .utils import InvalidRangeError


def sequence(func: Callable[..., Iterable[Any]]) -> Callable[..., LazySequence]:
    """
    Lift a function returning an iterable (typically a generator function)
    into a factory of restartable sequences.

    Example:
        @sequence
        def fib():
            a, b = 1, 2
            while True:
                yield a
                a, b = b, a + b

        fib().slice(5).to_list()  # [1, 2, 3, 5, 8]
    """
    @functools.wraps(func)
    def factory(*args, **kwargs) -> LazySequence:
        return LazySequence(lambda: IteratorProducer(iter(func(*args, **kwargs))))

    return factory


def evolve(step: Callable[[Any], Any], initial: Any) -> LazySequence:
    """Infinite sequence ``initial, step(initial), step(step(initial)), ...``"""
    return LazySequence(lambda: EvolveProducer(step, initial))


def range(start, stop=None, step=1) -> LazySequence:
    """
    Ascending arithmetic sequence, like the builtin but lazy and restartable.

    ``range(n)`` counts from 0 to n-1. A ``stop`` at or below ``start`` gives
    an empty sequence; a non-positive ``step`` raises InvalidRangeError.
    """
    if stop is None:
        start, stop = 0, start
    if step <= 0:
        raise InvalidRangeError(f"range() step must be positive, got {step}")
    return evolve(lambda n: n + step, start).while_(lambda n, i: n < stop)


def _for_all(prefix: List[Any], lists):
    head, tail = lists[0], lists[1:]
    for item in head:
        if tail:
            yield from _for_all(prefix + [item], tail)
        else:
            yield prefix + [item]


@sequence
def for_all(*lists):
    """Every combination of one element per input; the last input varies fastest."""
    if not lists:
        return iter(())
    return _for_all([], lists)


def flatten(lists: Iterable[Iterable[Any]]) -> List[Any]:
    """Concatenate a finite collection of collections into one list"""
    return list(itertools.chain.from_iterable(lists))


def flatten_entries(entries: Iterable[Any]) -> Dict[Any, Any]:
    """Build a mapping from (key, value) pairs; later keys overwrite earlier ones"""
    return {entry[0]: entry[1] for entry in entries}


def sort(items: Iterable[Any], comparator: Optional[Callable[[Any, Any], int]] = None) -> List[Any]:
    """Return a new stably sorted list, ordered by ``comparator(a, b)`` if given"""
    if comparator is None:
        return sorted(items)
    return sorted(items, key=functools.cmp_to_key(comparator))
