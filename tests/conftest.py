"""Shared fixtures for isvc-controller tests."""

from collections.abc import Callable
import copy
from typing import Any

import pytest

from isvc_controller.events import InMemoryEventRecorder
from isvc_controller.manifest import (
    Condition,
    ConditionStatus,
    InferenceService,
    InferenceServiceSpec,
    InferenceServiceStatus,
    READY_CONDITION,
)
from isvc_controller.store import InMemoryStore

PREDICTOR_SPEC = {"sklearn": {"storageUri": "gs://kfserving-samples/models/sklearn/iris"}}
TRANSFORMER_SPEC = {"containers": [{"image": "kfserving/image-transformer:latest"}]}
EXPLAINER_SPEC = {"alibi": {"type": "AnchorImages"}}

IsvcFactory = Callable[..., InferenceService]


@pytest.fixture(name="store")
def mock_store() -> InMemoryStore:
    """Fixture for an empty store."""
    return InMemoryStore()


@pytest.fixture(name="recorder")
def mock_recorder() -> InMemoryEventRecorder:
    """Fixture for a recorder that keeps events in memory."""
    return InMemoryEventRecorder()


@pytest.fixture(name="isvc_factory")
def isvc_factory_fixture() -> IsvcFactory:
    """Fixture for creating InferenceService objects."""

    def make(
        name: str = "sklearn-iris",
        namespace: str = "default",
        transformer: bool = False,
        explainer: bool = False,
        ready: ConditionStatus | None = None,
        **kwargs: Any,
    ) -> InferenceService:
        status = InferenceServiceStatus()
        if ready is not None:
            status.conditions = [Condition(type=READY_CONDITION, status=ready)]
        return InferenceService(
            name=name,
            namespace=namespace,
            spec=InferenceServiceSpec(
                predictor=copy.deepcopy(PREDICTOR_SPEC),
                transformer=copy.deepcopy(TRANSFORMER_SPEC) if transformer else None,
                explainer=copy.deepcopy(EXPLAINER_SPEC) if explainer else None,
            ),
            status=status,
            **kwargs,
        )

    return make
