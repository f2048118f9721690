"""Tests for manifest library."""

from typing import Any

import pytest
import yaml

from isvc_controller.exceptions import InputException
from isvc_controller.manifest import (
    ComponentDeployment,
    ComponentKind,
    ComponentStatus,
    ConditionStatus,
    InferenceService,
    InferenceServiceStatus,
    NamedResource,
)

ISVC_DOC = """\
apiVersion: serving.kubeflow.org/v1beta1
kind: InferenceService
metadata:
  name: sklearn-iris
  namespace: models
  generation: 3
spec:
  predictor:
    sklearn:
      storageUri: gs://kfserving-samples/models/sklearn/iris
  transformer:
    containers:
    - image: kfserving/image-transformer:latest
status:
  url: http://sklearn-iris.models.example.com
  conditions:
  - type: Ready
    status: True
    lastTransitionTime: 2024-01-02T03:04:05Z
  - type: PredictorReady
    status: "False"
    reason: RevisionMissing
    message: Revision is not ready
  components:
    predictor:
      url: http://sklearn-iris-predictor.models.example.com
      latestReadyRevision: sklearn-iris-predictor-00001
"""


def _doc() -> dict[str, Any]:
    return yaml.safe_load(ISVC_DOC)


def test_parse_inference_service() -> None:
    """Test parsing an InferenceService doc."""
    isvc = InferenceService.parse_doc(_doc())
    assert isvc.name == "sklearn-iris"
    assert isvc.namespace == "models"
    assert isvc.generation == 3
    assert isvc.resource_version is None
    assert isvc.spec.predictor == {
        "sklearn": {"storageUri": "gs://kfserving-samples/models/sklearn/iris"}
    }
    assert isvc.spec.transformer is not None
    assert isvc.spec.explainer is None
    assert isvc.resource_id == NamedResource("InferenceService", "models", "sklearn-iris")
    assert isvc.namespaced_name == "models/sklearn-iris"


def test_parse_status() -> None:
    """Test parsing the status, including unquoted YAML values."""
    status = InferenceService.parse_doc(_doc()).status
    assert status.url == "http://sklearn-iris.models.example.com"

    ready = status.get_condition("Ready")
    assert ready is not None
    assert ready.status == ConditionStatus.TRUE
    assert ready.last_transition_time == "2024-01-02T03:04:05Z"

    predictor = status.get_condition("PredictorReady")
    assert predictor is not None
    assert predictor.status == ConditionStatus.FALSE
    assert predictor.reason == "RevisionMissing"

    assert status.get_condition("IngressReady") is None
    assert status.components == {
        "predictor": ComponentStatus(
            url="http://sklearn-iris-predictor.models.example.com",
            latest_ready_revision="sklearn-iris-predictor-00001",
        )
    }


def test_parse_default_namespace() -> None:
    """Test an InferenceService without a namespace is in the default namespace."""
    doc = _doc()
    del doc["metadata"]["namespace"]
    del doc["status"]
    isvc = InferenceService.parse_doc(doc)
    assert isvc.namespace == "default"
    assert isvc.status == InferenceServiceStatus()


@pytest.mark.parametrize(
    ("path", "value"),
    [
        (("apiVersion",), "apps/v1"),
        (("kind",), "Deployment"),
        (("metadata",), None),
        (("metadata", "name"), None),
        (("spec",), None),
        (("spec", "predictor"), None),
        (("spec", "predictor"), "sklearn"),
        (("status", "conditions"), [{"status": "True"}]),
        (("apiVersion",), 1),
        (("metadata",), "sklearn-iris"),
        (("spec",), ["predictor"]),
        (("spec", "transformer"), "custom"),
        (("metadata", "generation"), "latest"),
        (("status",), "Ready"),
    ],
    ids=[
        "api-version",
        "kind",
        "metadata",
        "name",
        "spec",
        "predictor",
        "predictor-not-mapping",
        "condition-type",
        "api-version-not-string",
        "metadata-not-mapping",
        "spec-not-mapping",
        "transformer-not-mapping",
        "generation-not-int",
        "status-not-mapping",
    ],
)
def test_parse_invalid(path: tuple[str, ...], value: Any) -> None:
    """Test parsing invalid InferenceService docs."""
    doc = _doc()
    parent = doc
    for key in path[:-1]:
        parent = parent[key]
    if value is None:
        del parent[path[-1]]
    else:
        parent[path[-1]] = value
    with pytest.raises(InputException):
        InferenceService.parse_doc(doc)


def test_to_doc() -> None:
    """Test serializing an InferenceService to a resource document."""
    isvc = InferenceService.parse_doc(_doc())
    isvc.resource_version = 12
    doc = isvc.to_doc()
    assert doc["apiVersion"] == "serving.kubeflow.org/v1beta1"
    assert doc["kind"] == "InferenceService"
    assert doc["metadata"] == {
        "name": "sklearn-iris",
        "namespace": "models",
        "generation": 3,
        "resourceVersion": "12",
    }
    assert "explainer" not in doc["spec"]
    assert doc["status"]["conditions"][1] == {
        "type": "PredictorReady",
        "status": "False",
        "reason": "RevisionMissing",
        "message": "Revision is not ready",
    }
    assert doc["status"]["components"]["predictor"] == {
        "url": "http://sklearn-iris-predictor.models.example.com",
        "latestReadyRevision": "sklearn-iris-predictor-00001",
    }

    # The document can be loaded again
    assert InferenceService.parse_doc(doc).status == isvc.status


def test_component_kind() -> None:
    """Test the condition types reported for each component."""
    assert [kind.condition_type for kind in ComponentKind] == [
        "PredictorReady",
        "TransformerReady",
        "ExplainerReady",
    ]


def test_component_spec() -> None:
    """Test looking up the spec of a component by kind."""
    spec = InferenceService.parse_doc(_doc()).spec
    assert spec.component_spec(ComponentKind.PREDICTOR) == spec.predictor
    assert spec.component_spec(ComponentKind.TRANSFORMER) == spec.transformer
    assert spec.component_spec(ComponentKind.EXPLAINER) is None


def test_component_deployment_revision_name() -> None:
    """Test the revision name of a component deployment."""
    deployment = ComponentDeployment(
        name="sklearn-iris-predictor",
        namespace="default",
        owner="sklearn-iris",
        component=ComponentKind.PREDICTOR,
        revision=12,
    )
    assert deployment.revision_name == "sklearn-iris-predictor-00012"


def test_named_resource() -> None:
    """Test the string form of a resource identity."""
    resource_id = NamedResource("InferenceService", "default", "sklearn-iris")
    assert str(resource_id) == "InferenceService/default/sklearn-iris"
    assert NamedResource("Kind", None, "name").namespaced_name == "name"
