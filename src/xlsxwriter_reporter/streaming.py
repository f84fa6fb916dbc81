"""Iteration over report collections of any size.

A collection is probed once and wrapped into one of three adapters:

* :class:`PaginatedSource` can fetch records in bounded batches (``yield_per(n)`` like an SQLAlchemy query,
  ``iterator(chunk_size=n)`` like a Django queryset, or an explicit `fetch` callable);
* :class:`SizedIterable` can only be iterated;
* :class:`OpaqueIterable` cannot be iterated and has to be materialized first.

:class:`StreamingIterator` then decides between batched and plain iteration by comparing the collection size
with the streaming threshold, and reports progress for every record."""
import logging
from typing import Any, Callable, Iterable, Iterator, List, Optional, Tuple

from attr import attrib, attrs

from .errors import ConfigurationError
from .utils import accepts_no_arguments

logger = logging.getLogger(__name__)

ProgressCallback = Callable[['ProgressInfo'], Any]


@attrs(auto_attribs=True, frozen=True)
class ProgressInfo(object):
    """Progress after `current` records out of `total`.

    Examples:
        >>> ProgressInfo(1, 10)
        ProgressInfo(current=1, total=10, percentage=10.0)
        >>> ProgressInfo(1, 3).percentage
        33.33
    """
    current: int
    total: int
    percentage: float = attrib()

    @percentage.default
    def _percentage(self):
        if self.total == 0:
            return float('nan')
        return round(self.current / self.total * 100, 2)


@attrs(auto_attribs=True)
class CollectionAdapter(object):
    """Base adapter: size resolution and plain iteration over `collection`, which is referenced, not copied."""
    collection: Any
    _size: Optional[int] = attrib(init=False, default=None, repr=False)
    _materialized: Optional[List[Any]] = attrib(init=False, default=None, repr=False)

    def size(self) -> int:
        """Number of records, computed once.

        Tried in order: a ``count()`` taking no arguments, a ``size`` attribute or method, ``len()``, and
        finally materializing the collection, which is then reused for iteration."""
        if self._size is None:
            self._size = self._compute_size()
        return self._size

    def _compute_size(self) -> int:
        collection = self.collection

        count = getattr(collection, 'count', None)
        if callable(count) and accepts_no_arguments(count):
            logger.debug('Sizing %s with count()', type(collection).__name__)
            return int(count())

        size = getattr(collection, 'size', None)
        if isinstance(size, int):
            logger.debug('Sizing %s with size', type(collection).__name__)
            return size
        if callable(size) and accepts_no_arguments(size):
            logger.debug('Sizing %s with size()', type(collection).__name__)
            return int(size())

        if hasattr(collection, '__len__'):
            logger.debug('Sizing %s with len()', type(collection).__name__)
            return len(collection)

        logger.debug('Sizing %s by materializing it', type(collection).__name__)
        return len(self.materialize())

    def materialize(self) -> List[Any]:
        """Load every record into a list, once."""
        if self._materialized is None:
            self._materialized = self._load()
        return self._materialized

    def _load(self) -> List[Any]:
        collection = self.collection
        if isinstance(collection, Iterable):
            return list(collection)
        for loader in ('all', 'to_list', 'tolist'):
            load = getattr(collection, loader, None)
            if callable(load) and accepts_no_arguments(load):
                return list(load())
        raise ConfigurationError(f'Collection of type {type(collection).__name__} cannot be iterated or loaded')

    def iterate(self) -> Iterator[Any]:
        if self._materialized is not None:
            return iter(self._materialized)
        return iter(self.collection)

    def iterate_batched(self, batch_size: int) -> Iterator[Any]:
        return self.iterate()


class SizedIterable(CollectionAdapter):
    """A collection that can only be iterated plainly."""


@attrs(auto_attribs=True)
class PaginatedSource(CollectionAdapter):
    """A collection that fetches records in batches of a given size, bounding peak memory.

    Attributes:
        fetch: Called with the batch size, returns an iterable of records. Defaults to the collection's own
            ``yield_per`` or ``iterator(chunk_size=...)``.
    """
    fetch: Optional[Callable[[int], Iterable[Any]]] = None

    def iterate_batched(self, batch_size: int) -> Iterator[Any]:
        if self.fetch is not None:
            return iter(self.fetch(batch_size))
        if callable(getattr(self.collection, 'yield_per', None)):
            return iter(self.collection.yield_per(batch_size))
        return iter(self.collection.iterator(chunk_size=batch_size))


class OpaqueIterable(CollectionAdapter):
    """A collection without an iteration protocol, materialized before iterating."""

    def iterate(self) -> Iterator[Any]:
        return iter(self.materialize())


def supports_batches(collection) -> bool:
    return callable(getattr(collection, 'yield_per', None)) or callable(getattr(collection, 'iterator', None))


def adapt_collection(collection) -> CollectionAdapter:
    """Probe `collection` once and wrap it in the matching adapter. Adapters are returned unchanged."""
    if isinstance(collection, CollectionAdapter):
        return collection
    if supports_batches(collection):
        return PaginatedSource(collection)
    if isinstance(collection, Iterable):
        return SizedIterable(collection)
    return OpaqueIterable(collection)


@attrs(auto_attribs=True)
class StreamingIterator(object):
    """Visits every record of a collection in its natural order.

    Collections of at least `threshold` records are iterated in batches of `batch_size` when they support
    it. If the batched interface rejects the batch parameters with a ``ValueError`` or ``TypeError`` before
    producing a record, plain iteration is used instead. Empty collections are never iterated.

    Attributes:
        collection: The records, wrapped with :func:`adapt_collection`
        threshold: Size at which batched iteration is used
        batch_size: Records per batch
        progress_callback: Receives every :class:`ProgressInfo` in addition to the visitor
    """
    collection: CollectionAdapter = attrib(converter=adapt_collection)
    threshold: int = 1000
    batch_size: int = 1000
    progress_callback: Optional[ProgressCallback] = None

    def size(self) -> int:
        return self.collection.size()

    def should_stream(self) -> bool:
        return self.size() >= self.threshold

    def stream(self) -> Iterator[Any]:
        if self.size() == 0:
            return
        if self.should_stream():
            logger.debug('Streaming %d records in batches of %d', self.size(), self.batch_size)
            yield from self._stream_batched()
        else:
            yield from self.collection.iterate()

    def _stream_batched(self) -> Iterator[Any]:
        try:
            records = self.collection.iterate_batched(self.batch_size)
            first = next(records)
        except StopIteration:
            return
        except (ValueError, TypeError) as e:
            logger.warning('Batched fetch rejected batch size %d, iterating plainly: %s', self.batch_size, e)
            yield from self.collection.iterate()
            return
        yield first
        yield from records

    def stream_with_progress(self) -> Iterator[Tuple[Any, ProgressInfo]]:
        total = self.size()
        for current, record in enumerate(self.stream(), start=1):
            progress = ProgressInfo(current, total)
            if self.progress_callback is not None:
                self.progress_callback(progress)
            yield record, progress

    def for_each(self, visitor: Callable[[Any], Any]):
        for record in self.stream():
            visitor(record)

    def for_each_with_progress(self, visitor: Callable[[Any, ProgressInfo], Any]):
        for record, progress in self.stream_with_progress():
            visitor(record, progress)
