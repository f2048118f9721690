"""Interface for the reconcilers of a single InferenceService component."""

from abc import ABC, abstractmethod
from collections.abc import Callable

from isvc_controller.manifest import ComponentKind, InferenceService

__all__ = [
    "Component",
    "ComponentFactory",
]


class Component(ABC):
    """Reconciler for one logical component of an InferenceService."""

    @abstractmethod
    async def reconcile(self, isvc: InferenceService) -> None:
        """Converge the resources owned by this component.

        The reconciler records what it observed by mutating `isvc.status` in
        place, for the status fields it owns. It must not keep a reference to
        `isvc` after returning.

        Raises:
            Exception: Any failure to converge, which fails the reconcile pass.
        """


ComponentFactory = Callable[[ComponentKind], Component]
"""Creates the reconciler for a component kind."""
