"""Exceptions related to isvc-controller."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .manifest import ComponentKind

__all__ = [
    "ControllerException",
    "InputException",
    "ObjectNotFoundError",
    "ConflictError",
    "ReconcileError",
    "ComponentReconcileError",
    "IngressReconcileError",
    "StatusUpdateError",
    "ComponentException",
]


class ControllerException(Exception):
    """Generic base exception used for this library."""


class InputException(ControllerException):
    """Raised when the input manifests or configuration are not formatted as expected."""


class ObjectNotFoundError(ControllerException):
    """Raised when an object is not found in the store."""


class ConflictError(ControllerException):
    """Raised when a write is based on a stale resource version."""

    def __init__(self, resource_name: str, expected: int | None, actual: int) -> None:
        super().__init__(
            f"Operation cannot be fulfilled on {resource_name}: the object has been "
            f"modified (resourceVersion {expected}, current {actual})"
        )
        self.resource_name = resource_name
        self.expected = expected
        self.actual = actual


class ReconcileError(ControllerException):
    """Raised when a reconcile pass for a resource fails."""

    def __init__(self, resource_name: str, message: str) -> None:
        super().__init__(message)
        self.resource_name = resource_name


class ComponentReconcileError(ReconcileError):
    """Raised when one of the component reconcilers fails."""

    def __init__(
        self, resource_name: str, component: "ComponentKind", cause: Exception
    ) -> None:
        super().__init__(
            resource_name,
            f"fails to reconcile component {component.value} of "
            f"{resource_name}: {cause}",
        )
        self.component = component


class IngressReconcileError(ReconcileError):
    """Raised when the ingress reconciler fails."""

    def __init__(self, resource_name: str, cause: Exception) -> None:
        super().__init__(
            resource_name, f"fails to reconcile ingress of {resource_name}: {cause}"
        )


class StatusUpdateError(ReconcileError):
    """Raised when the status of a resource could not be written to the store."""

    def __init__(self, resource_name: str, cause: Exception) -> None:
        super().__init__(
            resource_name,
            f"fails to update InferenceService status of {resource_name}: {cause}",
        )


class ComponentException(ControllerException):
    """Raised by a component reconciler that cannot converge its resources."""
