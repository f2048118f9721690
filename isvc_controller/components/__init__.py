"""Component reconcilers module.

Each component of an InferenceService (predictor, transformer, explainer) is
converged by its own reconciler. This module provides the interface the
InferenceServiceController drives them through, and a local implementation
that materializes each component as a ComponentDeployment in the store.
"""

from isvc_controller.manifest import ComponentKind

from .component import Component, ComponentFactory
from .local import LocalComponent, local_component_factory

__all__ = [
    "Component",
    "ComponentFactory",
    "ComponentKind",
    "LocalComponent",
    "local_component_factory",
]
