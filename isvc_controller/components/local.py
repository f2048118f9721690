"""Component reconciler that runs components as deployments in the store.

A LocalComponent stands in for the reconcilers that create serving workloads
in a real cluster. It writes one ComponentDeployment per component, assigns
it a new revision whenever the component spec changes, and reports the
component url and revision on the InferenceService status.

Transformer and explainer send traffic to the predictor, so they refuse to
converge until the predictor has published its url.
"""

import copy
import logging
from typing import Any

from isvc_controller.config import ControllerConfig
from isvc_controller.exceptions import ComponentException, ObjectNotFoundError
from isvc_controller.manifest import (
    ComponentDeployment,
    ComponentKind,
    ComponentStatus,
    ConditionStatus,
    InferenceService,
    NamedResource,
    COMPONENT_DEPLOYMENT_KIND,
)
from isvc_controller.status import set_condition
from isvc_controller.store import Store

from .component import Component, ComponentFactory

_LOGGER = logging.getLogger(__name__)


class LocalComponent(Component):
    """Reconciles one component of an InferenceService into the store."""

    def __init__(
        self, kind: ComponentKind, store: Store, config: ControllerConfig
    ) -> None:
        """Initialize LocalComponent."""
        self._kind = kind
        self._store = store
        self._config = config

    async def reconcile(self, isvc: InferenceService) -> None:
        """Converge the deployment for this component."""
        if (spec := isvc.spec.component_spec(self._kind)) is None:
            raise ComponentException(
                f"InferenceService {isvc.namespaced_name} does not request "
                f"a {self._kind}"
            )
        components = isvc.status.components or {}
        if self._kind != ComponentKind.PREDICTOR:
            predictor = components.get(ComponentKind.PREDICTOR.value)
            if predictor is None or not predictor.url:
                raise ComponentException(
                    f"Predictor of {isvc.namespaced_name} has not published "
                    "an endpoint"
                )

        deployment = self._reconcile_deployment(isvc, spec)
        _LOGGER.debug(
            "Component %s of %s at revision %s",
            self._kind,
            isvc.namespaced_name,
            deployment.revision_name,
        )
        components[self._kind.value] = ComponentStatus(
            url=deployment.url,
            latest_ready_revision=deployment.revision_name,
            latest_created_revision=deployment.revision_name,
        )
        isvc.status.components = components
        set_condition(isvc.status, self._kind.condition_type, ConditionStatus.TRUE)

    def _reconcile_deployment(
        self, isvc: InferenceService, spec: dict[str, Any]
    ) -> ComponentDeployment:
        name = f"{isvc.name}-{self._kind.value}"
        resource_id = NamedResource(COMPONENT_DEPLOYMENT_KIND, isvc.namespace, name)
        revision = 1
        try:
            existing = self._store.get_object(resource_id, ComponentDeployment)
        except ObjectNotFoundError:
            _LOGGER.info("Creating %s for %s", resource_id, isvc.namespaced_name)
        else:
            revision = existing.revision
            if existing.spec != spec:
                revision += 1
                _LOGGER.info("Updating %s to revision %d", resource_id, revision)
        url = self._config.components.url_template.format(
            name=isvc.name,
            namespace=isvc.namespace,
            component=self._kind.value,
            domain=self._config.ingress.ingress_domain,
        )
        return self._store.add_object(
            ComponentDeployment(
                name=name,
                namespace=isvc.namespace,
                owner=isvc.name,
                component=self._kind,
                spec=copy.deepcopy(spec),
                revision=revision,
                url=url,
            )
        )


def local_component_factory(
    store: Store, config: ControllerConfig
) -> ComponentFactory:
    """Return a factory creating LocalComponent reconcilers."""

    def factory(kind: ComponentKind) -> Component:
        return LocalComponent(kind, store, config)

    return factory
