import pytest

from funseq.protocol import EXHAUSTED, IteratorProducer, ProducerIterator
from funseq.stages import (
    BatchProducer,
    ConcatProducer,
    EvolveProducer,
    FilterOutcome,
    MappingProducer,
    SingleProducer,
    TerminatingFilterProducer,
    predicate_filter,
    skip_filter,
    slice_filter,
    while_filter,
)


def drain(producer):
    return list(ProducerIterator(producer))


def source(items):
    return IteratorProducer(iter(items))


class TestDecisionFunctions:
    """Test the filter outcomes behind slice, while and filter"""

    def test_slice_filter_two_bounds(self):
        decide = slice_filter(2, 4)
        assert decide("x", 1) == FilterOutcome(skip=True, done=False)
        assert decide("x", 2) == FilterOutcome(skip=False, done=False)
        assert decide("x", 4) == FilterOutcome(skip=False, done=True)

    def test_slice_filter_single_bound_is_end(self):
        decide = slice_filter(3)
        assert decide("x", 0) == FilterOutcome(skip=False, done=False)
        assert decide("x", 3).done

    def test_skip_filter(self):
        decide = skip_filter(2)
        assert decide("x", 1) == FilterOutcome(skip=True, done=False)
        assert decide("x", 2) == FilterOutcome(skip=False, done=False)
        assert decide("x", 10**12) == FilterOutcome(skip=False, done=False)

    def test_while_filter(self):
        decide = while_filter(lambda v, i: v < 5)
        assert decide(4, 0) == FilterOutcome(skip=False, done=False)
        assert decide(5, 1) == FilterOutcome(skip=False, done=True)

    def test_predicate_filter(self):
        decide = predicate_filter(lambda v, i: v % 2 == 0)
        assert decide(2, 0) == FilterOutcome(skip=False, done=False)
        assert decide(3, 1) == FilterOutcome(skip=True, done=False)


class TestTerminatingFilterProducer:
    """Test the filter stage that can end a sequence early"""

    def test_index_counts_skipped_pulls(self):
        seen = []

        def decide(value, index):
            seen.append((value, index))
            return FilterOutcome(skip=value % 2 == 1, done=False)

        assert drain(TerminatingFilterProducer(source([10, 11, 12, 13]), decide)) == [10, 12]
        assert seen == [(10, 0), (11, 1), (12, 2), (13, 3)]

    def test_done_wins_over_skip(self):
        decide = lambda value, index: FilterOutcome(skip=False, done=value == 3)
        assert drain(TerminatingFilterProducer(source([1, 2, 3, 4]), decide)) == [1, 2]

        decide = lambda value, index: FilterOutcome(skip=True, done=index == 1)
        assert drain(TerminatingFilterProducer(source([1, 2, 3]), decide)) == []

    def test_stops_pulling_after_done(self):
        pulled = []

        def numbers():
            for n in range(100):
                pulled.append(n)
                yield n

        producer = TerminatingFilterProducer(IteratorProducer(numbers()), slice_filter(3))
        assert drain(producer) == [0, 1, 2]
        assert producer.produce_next() is EXHAUSTED
        assert pulled == [0, 1, 2, 3], "Only the element that triggered done is pulled extra"


class TestMappingProducer:
    """Test the position-aware mapping stage"""

    def test_maps_with_index(self):
        producer = MappingProducer(source(["a", "b", "c"]), lambda v, i: f"{i}:{v}")
        assert drain(producer) == ["0:a", "1:b", "2:c"]

    def test_transform_not_called_on_exhaustion(self):
        calls = []

        def transform(value, index):
            calls.append(value)
            return value

        producer = MappingProducer(source([1]), transform)
        assert drain(producer) == [1]
        assert producer.produce_next() is EXHAUSTED
        assert calls == [1]

    def test_transform_errors_propagate(self):
        producer = MappingProducer(source([1, 0]), lambda v, i: 1 / v)
        assert producer.produce_next().value == 1
        with pytest.raises(ZeroDivisionError):
            producer.produce_next()


class TestOtherProducers:
    """Test batch, single, concat and evolve producers"""

    def test_batch_producer(self):
        assert drain(BatchProducer(source(range(7)), 3)) == [(0, 1, 2), (3, 4, 5), (6,)]
        assert drain(BatchProducer(source([]), 3)) == []

    def test_single_producer(self):
        producer = SingleProducer(None)
        assert producer.produce_next().value is None
        assert producer.produce_next() is EXHAUSTED

    def test_concat_opens_parts_lazily(self):
        opened = []

        def part(items, name):
            def open_part():
                opened.append(name)
                return source(items)
            return open_part

        producer = ConcatProducer((part([1], "a"), part([], "b"), part([2, 3], "c")))
        assert producer.produce_next().value == 1
        assert opened == ["a"]
        assert drain(producer) == [2, 3]
        assert opened == ["a", "b", "c"]
        assert producer.produce_next() is EXHAUSTED

    def test_evolve_producer_applies_step_on_demand(self):
        steps = []

        def step(n):
            steps.append(n)
            return n * 2

        producer = EvolveProducer(step, 1)
        assert [producer.produce_next().value for _ in range(4)] == [1, 2, 4, 8]
        assert steps == [1, 2, 4]
