"""Work queue that turns store events into reconcile passes.

The dispatcher watches the store for InferenceService objects being created,
updated or deleted and runs the reconciler for each affected key. It provides
the guarantees the reconciler relies on:

- Passes for the same key never run concurrently. An event that arrives while
  a key is being reconciled marks it dirty, and the key is reconciled once
  more after the running pass finishes.
- Passes for different keys run concurrently, up to a configured limit.
- A pass that raises is retried with exponential backoff, and the key is
  dropped after too many consecutive failures.
"""

import asyncio
from collections.abc import Callable
import logging

from .config import DispatcherConfig
from .manifest import BaseManifest, NamedResource, INFERENCE_SERVICE_KIND
from .reconcile import Reconciler
from .store import Store, StoreEvent
from .task import TaskService

__all__ = [
    "Dispatcher",
]

_LOGGER = logging.getLogger(__name__)

WATCHED_EVENTS = (
    StoreEvent.OBJECT_ADDED,
    StoreEvent.OBJECT_UPDATED,
    StoreEvent.OBJECT_DELETED,
)


class Dispatcher:
    """Runs a reconciler for every changed object of a kind."""

    def __init__(
        self,
        store: Store,
        reconciler: Reconciler,
        task_service: TaskService,
        config: DispatcherConfig,
        kind: str = INFERENCE_SERVICE_KIND,
    ) -> None:
        """Initialize Dispatcher.

        Args:
            store: The store to watch for changes
            reconciler: The reconciler to run for each changed object
            task_service: Tracks reconcile passes and scheduled retries
            config: Concurrency and retry settings
            kind: The kind of object to reconcile
        """
        self._store = store
        self._reconciler = reconciler
        self._task_service = task_service
        self._config = config
        self._kind = kind
        self._semaphore = asyncio.Semaphore(config.max_concurrent_reconciles)
        self._queued: set[NamedResource] = set()
        self._processing: set[NamedResource] = set()
        self._dirty: set[NamedResource] = set()
        self._failures: dict[NamedResource, int] = {}
        self._requeues: dict[NamedResource, int] = {}
        self._remove_listeners: list[Callable[[], None]] = []

    def start(self) -> None:
        """Start watching the store, enqueueing all existing objects."""
        if self._remove_listeners:
            return
        _LOGGER.info("Watching for %s objects in the store", self._kind)
        for event in WATCHED_EVENTS:
            self._remove_listeners.append(
                self._store.add_listener(
                    event, self._on_event, flush=event == StoreEvent.OBJECT_ADDED
                )
            )

    async def close(self) -> None:
        """Stop watching the store and cancel pending passes and retries."""
        for remove in self._remove_listeners:
            remove()
        self._remove_listeners.clear()
        await self._task_service.cancel()
        self._queued.clear()
        self._dirty.clear()
        self._failures.clear()
        self._requeues.clear()

    async def block_till_idle(self) -> None:
        """Wait until no passes or retries are pending."""
        await self._task_service.block_till_done()

    def _on_event(self, resource_id: NamedResource, obj: BaseManifest) -> None:
        if resource_id.kind != self._kind:
            return
        self.enqueue(resource_id)

    def enqueue(self, resource_id: NamedResource, delay: float = 0.0) -> None:
        """Schedule a reconcile pass for the key after an optional delay."""
        if resource_id in self._processing:
            _LOGGER.debug("%s is being reconciled, marking dirty", resource_id)
            self._dirty.add(resource_id)
            return
        if resource_id in self._queued:
            return
        self._queued.add(resource_id)
        self._task_service.create_task(
            self._run(resource_id, delay), name=f"reconcile {resource_id}"
        )

    def _backoff(self, failures: int) -> float:
        return min(
            self._config.base_delay * 2 ** (failures - 1), self._config.max_delay
        )

    async def _run(self, resource_id: NamedResource, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        async with self._semaphore:
            self._queued.discard(resource_id)
            self._processing.add(resource_id)
            try:
                await self._process(resource_id)
            finally:
                self._processing.discard(resource_id)
        if resource_id in self._dirty:
            self._dirty.discard(resource_id)
            self.enqueue(resource_id)

    async def _process(self, resource_id: NamedResource) -> None:
        try:
            result = await self._reconciler.reconcile(resource_id)
        except Exception as err:
            failures = self._failures.get(resource_id, 0) + 1
            if failures > self._config.max_retries:
                _LOGGER.error(
                    "Dropping %s after %d failed attempts: %s",
                    resource_id,
                    failures,
                    err,
                )
                self._failures.pop(resource_id, None)
                return
            self._failures[resource_id] = failures
            delay = self._backoff(failures)
            _LOGGER.warning(
                "Reconcile of %s failed (attempt %d), retrying in %.3fs: %s",
                resource_id,
                failures,
                delay,
                err,
            )
            self._dirty.discard(resource_id)
            self._enqueue_retry(resource_id, delay)
            return

        self._failures.pop(resource_id, None)
        if result.requeue:
            requeues = self._requeues.get(resource_id, 0) + 1
            self._requeues[resource_id] = requeues
            delay = (
                result.requeue_after
                if result.requeue_after is not None
                else self._backoff(requeues)
            )
            _LOGGER.debug("Requeueing %s in %.3fs", resource_id, delay)
            self._dirty.discard(resource_id)
            self._enqueue_retry(resource_id, delay)
            return
        self._requeues.pop(resource_id, None)

    def _enqueue_retry(self, resource_id: NamedResource, delay: float) -> None:
        """Schedule a retry for a key that is currently being reconciled."""
        self._queued.add(resource_id)
        self._task_service.create_task(
            self._run(resource_id, delay), name=f"retry {resource_id}"
        )
