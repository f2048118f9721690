"""Module for in memory object store."""

import copy
from collections import defaultdict
from collections.abc import Callable
from typing import Any, TypeVar, DefaultDict

import logging

from isvc_controller.manifest import BaseManifest, NamedResource
from isvc_controller.exceptions import ConflictError, ObjectNotFoundError

from .store import Store, StoreEvent, SUPPORTS_STATUS


_LOGGER = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseManifest)


def _resource_id(obj: BaseManifest) -> NamedResource:
    if not hasattr(obj, "kind") or not hasattr(obj, "name"):
        raise ValueError("Object must have kind, namespace, and name attributes")
    return NamedResource(obj.kind, getattr(obj, "namespace", None), obj.name)


class InMemoryStore(Store):
    """In-memory implementation of the Store interface.

    Stores manifest objects keyed by NamedResource. Every write assigns a new
    monotonically increasing resource version, and every read returns a deep
    copy. Supports event listeners for object and status changes.
    """

    def __init__(self) -> None:
        """Initialize the InMemoryStore."""
        self._objects: dict[NamedResource, BaseManifest] = {}
        self._version = 0
        self._listeners: DefaultDict[StoreEvent, list[Callable[..., None]]] = (
            defaultdict(list)
        )

    def _next_version(self) -> int:
        self._version += 1
        return self._version

    def add_object(self, obj: T) -> T:
        """Create or replace an object in the store."""
        resource_id = _resource_id(obj)
        stored = copy.deepcopy(obj)
        event = StoreEvent.OBJECT_ADDED
        if (existing := self._objects.get(resource_id)) is not None:
            if not isinstance(stored, type(existing)):
                raise ValueError(
                    f"Object {resource_id.namespaced_name} is not of type {type(existing).__name__} (was {type(obj).__name__})"
                )
            # The resource version is assigned by the store, not compared
            stored.resource_version = existing.resource_version  # type: ignore[attr-defined]
            if resource_id.kind in SUPPORTS_STATUS:
                # Status is only written through update_status
                stored.status = copy.deepcopy(existing.status)  # type: ignore[attr-defined]
                generation = existing.generation  # type: ignore[attr-defined]
                if stored.spec != existing.spec:  # type: ignore[attr-defined]
                    generation += 1
                stored.generation = generation  # type: ignore[attr-defined]
            if stored == existing:
                _LOGGER.debug(
                    "Object %s already exists in store, skipping", resource_id
                )
                return copy.deepcopy(existing)
            _LOGGER.debug("Updating existing object %s in store", resource_id)
            event = StoreEvent.OBJECT_UPDATED
        else:
            _LOGGER.debug("Adding object %s to store", resource_id)

        stored.resource_version = self._next_version()  # type: ignore[attr-defined]
        self._objects[resource_id] = stored
        self._fire_event(event, resource_id, copy.deepcopy(stored))
        return copy.deepcopy(stored)

    def get_object(self, resource_id: NamedResource, cls: type[T]) -> T:
        """Retrieve a copy of an object by resource identity and type."""
        obj = self._objects.get(resource_id)
        if obj is None:
            raise ObjectNotFoundError(f"{resource_id} not found")
        if not isinstance(obj, cls):
            raise ValueError(
                f"Object {resource_id.namespaced_name} is not of type {cls.__name__} (was {obj.__class__.__name__})"
            )
        return copy.deepcopy(obj)

    def update_status(self, obj: T) -> None:
        """Write the status of the object to the store."""
        resource_id = _resource_id(obj)
        if resource_id.kind not in SUPPORTS_STATUS:
            raise ValueError(
                f"Resource kind {resource_id.kind} does not support status updates"
            )
        if (existing := self._objects.get(resource_id)) is None:
            raise ObjectNotFoundError(f"{resource_id} not found")
        expected = getattr(obj, "resource_version", None)
        actual = existing.resource_version  # type: ignore[attr-defined]
        if expected is not None and expected != actual:
            raise ConflictError(resource_id.namespaced_name, expected, actual)

        _LOGGER.debug("Updating status for resource %s", resource_id.namespaced_name)
        existing.status = copy.deepcopy(obj.status)  # type: ignore[attr-defined]
        existing.resource_version = self._next_version()  # type: ignore[attr-defined]
        obj.resource_version = existing.resource_version  # type: ignore[attr-defined]
        self._fire_event(
            StoreEvent.STATUS_UPDATED, resource_id, copy.deepcopy(existing)
        )

    def delete_object(self, resource_id: NamedResource) -> None:
        """Remove an object from the store."""
        if (obj := self._objects.pop(resource_id, None)) is None:
            raise ObjectNotFoundError(f"{resource_id} not found")
        _LOGGER.debug("Deleted object %s from store", resource_id)
        self._fire_event(StoreEvent.OBJECT_DELETED, resource_id, obj)

    def list_objects(self, kind: str | None = None) -> list[BaseManifest]:
        """List copies of all objects in the store, optionally filtered by kind."""
        return [
            copy.deepcopy(obj)
            for resource_id, obj in self._objects.items()
            if kind is None or resource_id.kind == kind
        ]

    def add_listener(
        self,
        event: StoreEvent,
        callback: Callable[[NamedResource, Any], None],
        flush: bool = False,
    ) -> Callable[[], None]:
        """Register a callback for a specific store event."""

        def remove() -> None:
            if callback in self._listeners[event]:
                self._listeners[event].remove(callback)

        self._listeners[event].append(callback)

        if flush and event in (StoreEvent.OBJECT_ADDED, StoreEvent.STATUS_UPDATED):
            _LOGGER.debug("Flushing objects for event type %s", event)
            for resource_id, obj in list(self._objects.items()):
                if (
                    event == StoreEvent.STATUS_UPDATED
                    and resource_id.kind not in SUPPORTS_STATUS
                ):
                    continue
                callback(resource_id, copy.deepcopy(obj))

        return remove

    def _fire_event(self, event: StoreEvent, *args: Any) -> None:
        for cb in list(self._listeners[event]):  # Iterate over a copy for safe removal
            try:
                cb(*args)
            except Exception:
                _LOGGER.exception("Store listener callback failed for event %s", event)
