"""Store module for holding desired-state objects and their status."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import Any, TypeVar

from isvc_controller.manifest import (
    BaseManifest,
    NamedResource,
    INFERENCE_SERVICE_KIND,
)

T = TypeVar("T", bound=BaseManifest)


SUPPORTS_STATUS: set[str] = set({INFERENCE_SERVICE_KIND})


class StoreEvent(str, Enum):
    """Enum for store events."""

    OBJECT_ADDED = "object_added"
    OBJECT_UPDATED = "object_updated"
    OBJECT_DELETED = "object_deleted"
    STATUS_UPDATED = "status_updated"


class Store(ABC):
    """Abstract base class for the resource store with listener support."""

    @abstractmethod
    def add_object(self, obj: T) -> T:
        """Create or replace an object in the store.

        Returns a copy of the stored object with its new resource version.
        """

    @abstractmethod
    def get_object(self, resource_id: NamedResource, cls: type[T]) -> T:
        """Retrieve a copy of an object by resource identity and type.

        Raises:
            ObjectNotFoundError: If no object exists for the resource.
            ValueError: If the object is not of the requested type.
        """

    @abstractmethod
    def update_status(self, obj: T) -> None:
        """Write the status of the object to the store.

        Only the status is written, any other changes to the object are ignored.
        The resource version of `obj` is updated to the newly stored version.

        Raises:
            ObjectNotFoundError: If the object no longer exists.
            ConflictError: If the object was modified since `obj` was read.
        """

    @abstractmethod
    def delete_object(self, resource_id: NamedResource) -> None:
        """Remove an object from the store.

        Raises:
            ObjectNotFoundError: If no object exists for the resource.
        """

    @abstractmethod
    def list_objects(self, kind: str | None = None) -> list[BaseManifest]:
        """List copies of all objects in the store, optionally filtered by kind."""

    @abstractmethod
    def add_listener(
        self,
        event: StoreEvent,
        callback: Callable[[NamedResource, Any], None],
        flush: bool = False,
    ) -> Callable[[], None]:
        """Register a callback for a specific store event.

        When `flush` is set the callback is invoked immediately for every
        object already in the store that the event applies to.

        Returns a callable that can be called to remove the listener.
        """
