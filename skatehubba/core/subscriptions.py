"""Snapshot subscriptions exposed as cancellable iterators.

Firestore invokes ``on_snapshot`` callbacks on a background thread. A
``Subscription`` converts each delivery into an immutable value (via a
``transform``) and hands it to the consumer through a thread-safe queue, so
callers iterate over snapshots instead of sharing mutable state with a
callback.
"""

from __future__ import annotations

import logging
import queue
import threading
from typing import TYPE_CHECKING, Any, Callable, Generic, Iterator, Optional, TypeVar

if TYPE_CHECKING:
    from google.cloud.firestore_v1.base_document import DocumentSnapshot

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CLOSED = object()


class Subscription(Generic[T]):
    """A live view over a document or query.

    Deliveries are full snapshots, not deltas, and may repeat. ``transform``
    receives the list of snapshots from the watch and returns the value to
    publish. With ``skip_none`` a ``None`` result publishes nothing for that
    delivery; without it ``None`` is published (e.g. the document was deleted).
    """

    def __init__(
        self,
        target: Any,
        transform: Callable[[list[DocumentSnapshot]], Optional[T]],
        skip_none: bool = True,
    ) -> None:
        self._transform = transform
        self._skip_none = skip_none
        self._queue: queue.Queue[Any] = queue.Queue()
        self._closed = threading.Event()
        self._watch = target.on_snapshot(self._on_snapshot)

    def _on_snapshot(self, snapshots: list[DocumentSnapshot], changes: Any, read_time: Any) -> None:
        if self._closed.is_set():
            return
        try:
            value = self._transform(list(snapshots))
        except Exception as e:
            logger.error(f"Subscription transform failed: {e}")
            self._queue.put(e)
            return
        if value is None and self._skip_none:
            return
        self._queue.put(value)

    @property
    def closed(self) -> bool:
        """Whether ``unsubscribe`` has been called."""
        return self._closed.is_set()

    def get(self, timeout: Optional[float] = None) -> T:
        """Block until the next value arrives.

        Raises:
            queue.Empty: if ``timeout`` elapses first.
            StopIteration: if the subscription was closed.
        """
        item = self._queue.get(timeout=timeout)
        if item is _CLOSED:
            self._queue.put(_CLOSED)
            raise StopIteration
        if isinstance(item, Exception):
            raise item
        return item

    def __iter__(self) -> Iterator[T]:
        return self

    def __next__(self) -> T:
        return self.get()

    def unsubscribe(self) -> None:
        """Stop the underlying watch and end iteration."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._watch.unsubscribe()
        self._queue.put(_CLOSED)

    def __enter__(self) -> Subscription[T]:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


def first_snapshot(snapshots: list[DocumentSnapshot]) -> Optional[DocumentSnapshot]:
    """Return the watched document's snapshot, or None when it is gone."""
    if not snapshots:
        return None
    snapshot = snapshots[0]
    return snapshot if snapshot.exists else None
