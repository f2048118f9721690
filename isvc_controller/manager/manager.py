"""Manager for isvc-controller.

This module provides the composition root that constructs the controller and
its collaborators once, and registers the controller with the dispatcher that
drives it from store events.
"""

import logging
from pathlib import Path

from isvc_controller.components import ComponentFactory, local_component_factory
from isvc_controller.config import ControllerConfig
from isvc_controller.dispatcher import Dispatcher
from isvc_controller.events import EventRecorder, InMemoryEventRecorder
from isvc_controller.inferenceservice_controller import InferenceServiceController
from isvc_controller.ingress import IngressReconciler, LocalIngressReconciler
from isvc_controller.manifest import InferenceService, INFERENCE_SERVICE_KIND
from isvc_controller.status import is_ready
from isvc_controller.store import InMemoryStore, Store
from isvc_controller.task import TaskService, TaskServiceImpl

from .loader import ResourceLoader, LoadOptions

_LOGGER = logging.getLogger(__name__)


class Manager:
    """Manager for the lifecycle of the controller.

    The manager is responsible for:
    - Constructing the controller and its collaborators, using local
      implementations for any that are not provided
    - Registering the controller with the dispatcher
    - Loading manifests into the store and running until all work is done
    """

    def __init__(
        self,
        store: Store | None = None,
        config: ControllerConfig | None = None,
        recorder: EventRecorder | None = None,
        component_factory: ComponentFactory | None = None,
        ingress: IngressReconciler | None = None,
        task_service: TaskService | None = None,
    ) -> None:
        """Initialize the manager."""
        self.store = store or InMemoryStore()
        self.config = config or ControllerConfig()
        self.recorder = recorder or InMemoryEventRecorder()
        self.controller = InferenceServiceController(
            self.store,
            self.recorder,
            component_factory or local_component_factory(self.store, self.config),
            ingress or LocalIngressReconciler(self.config.ingress),
        )
        self.dispatcher = Dispatcher(
            self.store,
            self.controller,
            task_service or TaskServiceImpl(),
            self.config.dispatcher,
        )
        self._started = False

    async def start(self) -> None:
        """Start dispatching reconcile passes for objects in the store."""
        if self._started:
            return
        _LOGGER.info("Starting manager")
        self.dispatcher.start()
        self._started = True

    async def stop(self) -> None:
        """Stop dispatching and cancel any pending work."""
        if not self._started:
            return
        _LOGGER.info("Stopping manager")
        await self.dispatcher.close()
        self._started = False

    async def run_until_idle(self) -> None:
        """Run until no reconcile passes or retries are pending."""
        await self.start()
        await self.dispatcher.block_till_idle()
        _LOGGER.info("All work completed")

    async def bootstrap(self, path: Path) -> list[InferenceService]:
        """Load InferenceServices from a path and reconcile them until idle.

        Args:
            path: A manifest file or a directory of manifests.

        Returns:
            The InferenceServices in the store after reconciliation.
        """
        _LOGGER.info("Starting bootstrap from path: %s", path)
        loader = ResourceLoader()
        async for resource in loader.load(LoadOptions(path=path)):
            self.store.add_object(resource)
        try:
            await self.run_until_idle()
        finally:
            await self.stop()
        return self.inference_services()

    def inference_services(self) -> list[InferenceService]:
        """Return all InferenceServices in the store, ordered by key."""
        objects = [
            obj
            for obj in self.store.list_objects(INFERENCE_SERVICE_KIND)
            if isinstance(obj, InferenceService)
        ]
        return sorted(objects, key=lambda obj: obj.resource_id)

    def all_ready(self) -> bool:
        """Return True if every InferenceService in the store is ready."""
        return all(is_ready(isvc.status) for isvc in self.inference_services())
