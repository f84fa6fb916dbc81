import math

from pytest import mark, raises

from xlsxwriter_reporter.errors import ConfigurationError
from xlsxwriter_reporter.streaming import (OpaqueIterable, PaginatedSource, ProgressInfo, SizedIterable,
                                           StreamingIterator, adapt_collection)


class FakeQuerySet(object):
    """Batched source in the manner of a Django queryset."""

    def __init__(self, records):
        self.records = records
        self.chunk_sizes = []
        self.plain_iterations = 0

    def count(self):
        return len(self.records)

    def __iter__(self):
        self.plain_iterations += 1
        return iter(self.records)

    def iterator(self, chunk_size=None):
        self.chunk_sizes.append(chunk_size)
        return iter(self.records)


class RejectingQuerySet(FakeQuerySet):
    def iterator(self, chunk_size=None):
        self.chunk_sizes.append(chunk_size)
        raise ValueError('Chunk size must be strictly positive.')


class LazilyRejectingQuerySet(FakeQuerySet):
    def iterator(self, chunk_size=None):
        self.chunk_sizes.append(chunk_size)
        raise TypeError(f'Unsupported chunk size {chunk_size}')
        yield


class FailingMidwayQuerySet(FakeQuerySet):
    def iterator(self, chunk_size=None):
        yield self.records[0]
        raise ValueError('Connection dropped')


class FakeQuery(object):
    """Batched source in the manner of an SQLAlchemy query."""

    def __init__(self, records):
        self.records = records
        self.batch_sizes = []

    def count(self):
        return len(self.records)

    def __iter__(self):
        return iter(self.records)

    def yield_per(self, count):
        self.batch_sizes.append(count)
        return iter(self.records)


class Manager(object):
    """Neither iterable nor sized, only loadable."""

    def __init__(self, records):
        self.records = records

    def all(self):
        return list(self.records)


class CountingAndSized(object):
    def __init__(self):
        self.records = [1, 2, 3]

    def count(self):
        return 30

    def __len__(self):
        return 3

    def __iter__(self):
        return iter(self.records)


class SizeAttribute(object):
    size = 7

    def __iter__(self):
        return iter(range(7))


class SizeMethod(object):
    def size(self):
        return 4

    def __iter__(self):
        return iter(range(4))


class TestProgressInfo:
    def test_percentage(self):
        assert ProgressInfo(1, 10).percentage == 10.0
        assert ProgressInfo(10, 10).percentage == 100.0
        assert ProgressInfo(2, 3).percentage == 66.67

    def test_zero_total_has_no_percentage(self):
        assert math.isnan(ProgressInfo(0, 0).percentage)


class TestAdapters:
    def test_detection(self):
        assert isinstance(adapt_collection([1, 2]), SizedIterable)
        assert isinstance(adapt_collection(x for x in [1, 2]), SizedIterable)
        assert isinstance(adapt_collection(FakeQuerySet([])), PaginatedSource)
        assert isinstance(adapt_collection(FakeQuery([])), PaginatedSource)
        assert isinstance(adapt_collection(Manager([])), OpaqueIterable)

    def test_adapters_pass_through(self):
        adapter = PaginatedSource([1, 2], fetch=lambda size: [1, 2])

        assert adapt_collection(adapter) is adapter

    def test_count_comes_first(self):
        assert adapt_collection(CountingAndSized()).size() == 30

    def test_size_attribute_and_method(self):
        assert adapt_collection(SizeAttribute()).size() == 7
        assert adapt_collection(SizeMethod()).size() == 4

    def test_list_count_needs_an_argument(self):
        assert adapt_collection(['a', 'b', 'c']).size() == 3

    def test_materialized_generator_is_reused(self):
        adapter = adapt_collection(x * 2 for x in range(5))

        assert adapter.size() == 5
        assert list(adapter.iterate()) == [0, 2, 4, 6, 8]

    def test_size_is_cached(self):
        calls = []

        class CountedQuerySet(FakeQuerySet):
            def count(self):
                calls.append(1)
                return super().count()

        adapter = adapt_collection(CountedQuerySet([1, 2, 3]))

        assert adapter.size() == adapter.size() == 3
        assert len(calls) == 1

    def test_opaque_collection_is_loaded(self):
        adapter = adapt_collection(Manager(['a', 'b']))

        assert adapter.size() == 2
        assert list(adapter.iterate()) == ['a', 'b']

    def test_unusable_collection(self):
        with raises(ConfigurationError, match='cannot be iterated or loaded'):
            adapt_collection(object()).size()


class TestStreamingIterator:
    @mark.parametrize('size, expected', [(4, False), (5, True), (6, True)])
    def test_threshold_boundary(self, size, expected):
        assert StreamingIterator(list(range(size)), threshold=5).should_stream() is expected

    def test_plain_iteration_below_threshold(self):
        queryset = FakeQuerySet(list(range(10)))

        assert list(StreamingIterator(queryset, threshold=100).stream()) == list(range(10))
        assert queryset.chunk_sizes == []

    def test_batched_iteration(self):
        records = list(range(2000))
        queryset = FakeQuerySet(records)
        iterator = StreamingIterator(queryset)

        assert iterator.should_stream()
        assert list(iterator.stream()) == records
        assert queryset.chunk_sizes == [1000]
        assert queryset.plain_iterations == 0

    def test_yield_per(self):
        query = FakeQuery(list(range(30)))

        assert list(StreamingIterator(query, threshold=10, batch_size=7).stream()) == list(range(30))
        assert query.batch_sizes == [7]

    def test_explicit_fetch(self):
        fetched = []

        def fetch(batch_size):
            fetched.append(batch_size)
            return ['a', 'b', 'c']

        source = PaginatedSource(['a', 'b', 'c'], fetch=fetch)

        assert list(StreamingIterator(source, threshold=1, batch_size=2).stream()) == ['a', 'b', 'c']
        assert fetched == [2]

    @mark.parametrize('source_class', [RejectingQuerySet, LazilyRejectingQuerySet])
    def test_rejected_batches_fall_back(self, source_class):
        records = list(range(2000))
        source = source_class(records)

        assert list(StreamingIterator(source).stream()) == records
        assert source.chunk_sizes == [1000]
        assert source.plain_iterations == 1

    def test_failure_after_first_record_propagates(self):
        source = FailingMidwayQuerySet(list(range(20)))

        with raises(ValueError, match='Connection dropped'):
            list(StreamingIterator(source, threshold=10).stream())

    def test_streaming_keeps_order(self):
        records = [5, 3, 3, 9, 1]

        streamed = list(StreamingIterator(FakeQuerySet(records), threshold=1).stream())
        plain = list(StreamingIterator(FakeQuerySet(records), threshold=100).stream())

        assert streamed == plain == records

    def test_progress(self):
        events = []
        iterator = StreamingIterator(list('abcdefghij'), progress_callback=events.append)
        visited = []

        iterator.for_each_with_progress(lambda record, progress: visited.append((record, progress)))

        assert [record for record, _ in visited] == list('abcdefghij')
        assert [progress for _, progress in visited] == events
        assert [progress.current for progress in events] == list(range(1, 11))
        assert {progress.total for progress in events} == {10}
        assert events[0].percentage == 10.0
        assert events[-1].percentage == 100.0

    def test_progress_over_batches(self):
        events = []
        iterator = StreamingIterator(FakeQuerySet(list(range(2000))), progress_callback=events.append)

        iterator.for_each_with_progress(lambda record, progress: None)

        assert [progress.current for progress in events] == list(range(1, 2001))

    def test_empty_collection(self, mocker):
        callback = mocker.Mock()
        visitor = mocker.Mock()
        queryset = FakeQuerySet([])
        iterator = StreamingIterator(queryset, threshold=1, progress_callback=callback)

        iterator.for_each_with_progress(visitor)
        iterator.for_each(visitor)

        callback.assert_not_called()
        visitor.assert_not_called()
        assert queryset.plain_iterations == 0

    def test_for_each(self):
        visited = []

        StreamingIterator(iter([1, 2, 3])).for_each(visited.append)

        assert visited == [1, 2, 3]
