"""
InferenceService Controller implementation.

This controller drives the serving resources of an InferenceService toward
its spec and reports what it observed back onto the status of the object.

Key Concepts:
    - Component: A reconciler for one logical part of the service (predictor,
      transformer, explainer) that converges its own child resources.
    - Ingress: The reconciler for the externally reachable route, run once all
      components have converged.
    - Store: The source of truth for the InferenceService and its status.
    - EventRecorder: The sink for user visible events about the object.

A reconcile pass works on one in-memory copy of the object. Every component
receives the same copy in turn, so status written by the predictor is visible
to the transformer and explainer that depend on it. At most one status write
is made per pass, and only when the pass succeeded.
"""

import logging

from isvc_controller.components import Component, ComponentFactory, ComponentKind
from isvc_controller.context import trace_context
from isvc_controller.events import (
    EventRecorder,
    EventType,
    REASON_INTERNAL_ERROR,
    REASON_NOT_READY,
    REASON_READY,
    REASON_UPDATE_FAILED,
)
from isvc_controller.exceptions import (
    ComponentReconcileError,
    IngressReconcileError,
    ObjectNotFoundError,
    StatusUpdateError,
)
from isvc_controller.ingress import IngressReconciler
from isvc_controller.manifest import InferenceService, NamedResource
from isvc_controller.reconcile import ReconcileResult
from isvc_controller.status import is_ready, semantic_equal
from isvc_controller.store import Store

_LOGGER = logging.getLogger(__name__)


class InferenceServiceController:
    """Controller for reconciling InferenceService resources."""

    def __init__(
        self,
        store: Store,
        recorder: EventRecorder,
        component_factory: ComponentFactory,
        ingress: IngressReconciler,
    ) -> None:
        """
        Initialize the controller.

        Args:
            store: The store holding InferenceService objects
            recorder: The sink for events about reconciled objects
            component_factory: Creates the reconciler for each component kind
            ingress: The reconciler for routing, run after all components
        """
        self._store = store
        self._recorder = recorder
        self._component_factory = component_factory
        self._ingress = ingress

    async def reconcile(self, resource_id: NamedResource) -> ReconcileResult:
        """
        Reconcile an InferenceService.

        This method performs the following steps:
        1. Fetches the object, treating a missing object as nothing to do.
        2. Runs the component reconcilers in order, stopping at the first failure.
        3. Runs the ingress reconciler.
        4. Writes the status if it changed and reports readiness transitions.

        Args:
            resource_id: The identifier for the InferenceService.

        Raises:
            ReconcileError: If a component, the ingress or the status write failed.
        """
        with trace_context(f"Reconcile {resource_id.namespaced_name}"):
            try:
                isvc = self._store.get_object(resource_id, InferenceService)
            except ObjectNotFoundError:
                # Deleted since the event was queued; owned resources are
                # garbage collected with the owner.
                _LOGGER.debug("InferenceService %s not found", resource_id)
                return ReconcileResult()

            _LOGGER.info(
                "Reconciling inference service %s (generation %d)",
                isvc.namespaced_name,
                isvc.generation,
            )
            for kind, component in self._components(isvc):
                try:
                    await component.reconcile(isvc)
                except Exception as err:
                    _LOGGER.error(
                        "Failed to reconcile %s of %s: %s",
                        kind,
                        isvc.namespaced_name,
                        err,
                    )
                    self._event(
                        isvc, EventType.WARNING, REASON_INTERNAL_ERROR, str(err)
                    )
                    raise ComponentReconcileError(
                        isvc.namespaced_name, kind, err
                    ) from err

            _LOGGER.info(
                "Reconciling ingress for inference service %s", isvc.namespaced_name
            )
            try:
                await self._ingress.reconcile(isvc)
            except Exception as err:
                _LOGGER.error(
                    "Failed to reconcile ingress of %s: %s", isvc.namespaced_name, err
                )
                self._event(isvc, EventType.WARNING, REASON_INTERNAL_ERROR, str(err))
                raise IngressReconcileError(isvc.namespaced_name, err) from err

            try:
                await self.update_status(isvc)
            except Exception as err:
                self._event(isvc, EventType.WARNING, REASON_INTERNAL_ERROR, str(err))
                raise

        return ReconcileResult()

    def _components(
        self, isvc: InferenceService
    ) -> list[tuple[ComponentKind, Component]]:
        """Return the component reconcilers for the object in the order they run.

        Transformer and explainer consume the endpoint published by the
        predictor, so the predictor always runs first.
        """
        kinds = [ComponentKind.PREDICTOR]
        if isvc.spec.transformer is not None:
            kinds.append(ComponentKind.TRANSFORMER)
        if isvc.spec.explainer is not None:
            kinds.append(ComponentKind.EXPLAINER)
        return [(kind, self._component_factory(kind)) for kind in kinds]

    async def update_status(self, desired: InferenceService) -> None:
        """Write the status of the object if it changed during the pass.

        The object is read again from the store and compared against the
        desired status, so that a status identical to the stored one is never
        written. No lock is held between that read and the write: a write by
        someone else in between is rejected by the store's resource version
        check, or for stores without one the last write wins.

        Raises:
            StatusUpdateError: If the store rejected the write.
        """
        existing = self._store.get_object(desired.resource_id, InferenceService)
        if semantic_equal(existing.status, desired.status):
            _LOGGER.debug("Status of %s is unchanged", desired.namespaced_name)
            return

        try:
            self._store.update_status(desired)
        except Exception as err:
            _LOGGER.error(
                "Failed to update InferenceService status %s: %s",
                desired.namespaced_name,
                err,
            )
            self._event(
                desired,
                EventType.WARNING,
                REASON_UPDATE_FAILED,
                f'Failed to update status for InferenceService "{desired.name}": {err}',
            )
            raise StatusUpdateError(desired.namespaced_name, err) from err

        was_ready = is_ready(existing.status)
        now_ready = is_ready(desired.status)
        if was_ready and not now_ready:
            self._event(
                desired,
                EventType.WARNING,
                REASON_NOT_READY,
                f"InferenceService [{desired.name}] is no longer Ready",
            )
        elif not was_ready and now_ready:
            self._event(
                desired,
                EventType.NORMAL,
                REASON_READY,
                f"InferenceService [{desired.name}] is Ready",
            )

    def _event(
        self,
        isvc: InferenceService,
        event_type: EventType,
        reason: str,
        message: str,
    ) -> None:
        """Record an event, never failing the pass if the recorder does."""
        try:
            self._recorder.event(isvc, event_type, reason, message)
        except Exception:
            _LOGGER.exception(
                "Failed to record %s event for %s", reason, isvc.namespaced_name
            )
