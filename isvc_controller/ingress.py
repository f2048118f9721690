"""Reconciliation of the externally reachable address of an InferenceService.

Ingress is reconciled after all components have converged. Traffic enters
through the transformer when one is requested and through the predictor
otherwise, so the top level url is only published once every requested
component reports ready.
"""

from abc import ABC, abstractmethod
import logging

from .config import IngressConfig
from .manifest import (
    ComponentKind,
    ConditionStatus,
    InferenceService,
    INGRESS_READY_CONDITION,
)
from .status import propagate_ready, set_condition

__all__ = [
    "IngressReconciler",
    "LocalIngressReconciler",
]

_LOGGER = logging.getLogger(__name__)

REASON_COMPONENT_NOT_READY = "ComponentNotReady"


class IngressReconciler(ABC):
    """Reconciler for the routing in front of an InferenceService."""

    @abstractmethod
    async def reconcile(self, isvc: InferenceService) -> None:
        """Converge routing for the InferenceService, updating its status in place.

        Raises:
            Exception: Any failure to converge, which fails the reconcile pass.
        """


class LocalIngressReconciler(IngressReconciler):
    """Publishes the top level url of an InferenceService from a template."""

    def __init__(self, config: IngressConfig) -> None:
        """Initialize LocalIngressReconciler."""
        self._config = config

    async def reconcile(self, isvc: InferenceService) -> None:
        """Publish the url once all requested components are ready."""
        status = isvc.status
        for component in ComponentKind:
            if isvc.spec.component_spec(component) is None:
                continue
            condition = status.get_condition(component.condition_type)
            if condition is None or condition.status != ConditionStatus.TRUE:
                _LOGGER.info(
                    "Ingress for %s waiting on %s", isvc.namespaced_name, component
                )
                status.url = None
                set_condition(
                    status,
                    INGRESS_READY_CONDITION,
                    ConditionStatus.FALSE,
                    REASON_COMPONENT_NOT_READY,
                    f"Component {component} is not ready",
                )
                propagate_ready(isvc)
                return

        status.url = self._config.url_template.format(
            name=isvc.name,
            namespace=isvc.namespace,
            domain=self._config.ingress_domain,
        )
        set_condition(status, INGRESS_READY_CONDITION, ConditionStatus.TRUE)
        propagate_ready(isvc)
