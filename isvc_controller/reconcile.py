"""Contract between reconcilers and the dispatcher that drives them."""

from dataclasses import dataclass
from typing import Protocol

from .manifest import NamedResource

__all__ = [
    "ReconcileResult",
    "Reconciler",
]


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a successful reconcile pass."""

    requeue: bool = False
    """Reconcile the object again even though the pass succeeded."""

    requeue_after: float | None = None
    """Delay in seconds before requeueing, or None for the default backoff."""


class Reconciler(Protocol):
    """Converges the object identified by a key.

    Failures are raised, and the caller decides whether and when to retry.
    """

    async def reconcile(self, resource_id: NamedResource) -> ReconcileResult:
        """Run one reconcile pass for the object."""
