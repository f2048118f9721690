"""Representation of InferenceService objects and the resources they own.

An InferenceService declares a serving topology made of a required predictor
and optional transformer and explainer components. The controller reads the
spec and writes observed state back onto the status, using the same field
names and casing as the Kubernetes API so that manifests can be loaded from
and written back to YAML.
"""

from dataclasses import dataclass, field
from enum import StrEnum
import datetime
import logging
from typing import Any, ClassVar

from mashumaro import DataClassDictMixin, field_options
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "NamedResource",
    "ComponentKind",
    "ConditionStatus",
    "Condition",
    "ComponentStatus",
    "InferenceServiceStatus",
    "InferenceServiceSpec",
    "InferenceService",
    "ComponentDeployment",
]

_LOGGER = logging.getLogger(__name__)


# Match a prefix of apiVersion so that v1alpha2 and v1beta1 objects are both accepted
SERVING_DOMAIN = "serving.kubeflow.org"
SERVING_API_VERSION = f"{SERVING_DOMAIN}/v1beta1"
INFERENCE_SERVICE_KIND = "InferenceService"
COMPONENT_DEPLOYMENT_KIND = "ComponentDeployment"
DEFAULT_NAMESPACE = "default"

READY_CONDITION = "Ready"
INGRESS_READY_CONDITION = "IngressReady"


def _check_version(doc: dict[str, Any], version: str) -> None:
    """Assert that the resource has the specified version."""
    if not (api_version := doc.get("apiVersion")):
        raise InputException(f"Invalid object missing apiVersion: {doc}")
    if not isinstance(api_version, str) or not api_version.startswith(version):
        raise InputException(f"Invalid object expected '{version}': {doc}")


def now_timestamp() -> str:
    """Return the current time in the format used for condition transitions."""
    return datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class BaseManifest(DataClassDictMixin):
    """Base class for all manifest objects."""

    class Config(BaseConfig):
        omit_none = True
        serialize_by_alias = True


@dataclass(frozen=True, order=True)
class NamedResource:
    """Identifier for a kubernetes resource."""

    kind: str
    namespace: str | None
    name: str

    @property
    def namespaced_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}/{self.name}"
        return self.name

    def __str__(self) -> str:
        """Return the kind and namespaced name concatenated as an id."""
        return f"{self.kind}/{self.namespaced_name}"


class ComponentKind(StrEnum):
    """The logical components that make up an InferenceService."""

    PREDICTOR = "predictor"
    TRANSFORMER = "transformer"
    EXPLAINER = "explainer"

    @property
    def condition_type(self) -> str:
        """The status condition that reports readiness of this component."""
        return f"{self.value.capitalize()}Ready"


class ConditionStatus(StrEnum):
    """Tri-state value of a status condition."""

    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


@dataclass
class Condition(BaseManifest):
    """An observation of one aspect of the state of a resource."""

    type: str
    """The type of the condition, e.g. Ready."""

    status: ConditionStatus = ConditionStatus.UNKNOWN
    """The tri-state value of the condition."""

    reason: str | None = None
    """A one-word CamelCase reason for the last transition."""

    message: str | None = None
    """A human readable message with details about the last transition."""

    last_transition_time: str | None = field(
        metadata=field_options(alias="lastTransitionTime"), default=None
    )
    """The time the condition last changed status."""

    @classmethod
    def __pre_deserialize__(cls, d: dict[Any, Any]) -> dict[Any, Any]:
        # Unquoted YAML values arrive as bool and datetime objects
        if isinstance(value := d.get("status"), bool):
            d = {**d, "status": str(value)}
        if isinstance(value := d.get("lastTransitionTime"), datetime.datetime):
            d = {**d, "lastTransitionTime": value.strftime("%Y-%m-%dT%H:%M:%SZ")}
        return d


@dataclass
class ComponentStatus(BaseManifest):
    """Observed state of a single component of an InferenceService."""

    url: str | None = None
    """The address the component is served at."""

    latest_ready_revision: str | None = field(
        metadata=field_options(alias="latestReadyRevision"), default=None
    )
    """The most recent revision that is ready to serve."""

    latest_created_revision: str | None = field(
        metadata=field_options(alias="latestCreatedRevision"), default=None
    )
    """The most recently created revision."""


@dataclass
class InferenceServiceStatus(BaseManifest):
    """Observed state of an InferenceService."""

    conditions: list[Condition] | None = None
    """The set of conditions, including the distinguished Ready condition."""

    url: str | None = None
    """The externally reachable address of the service."""

    components: dict[str, ComponentStatus] | None = None
    """Status of each component keyed by component name."""

    observed_generation: int | None = field(
        metadata=field_options(alias="observedGeneration"), default=None
    )
    """The generation of the spec that was last reconciled."""

    def get_condition(self, condition_type: str) -> Condition | None:
        """Return the condition of the given type if present."""
        for condition in self.conditions or ():
            if condition.type == condition_type:
                return condition
        return None


@dataclass
class InferenceServiceSpec(BaseManifest):
    """Desired state of an InferenceService.

    The contents of each component are opaque to the controller and are handed
    to the component reconcilers as is.
    """

    predictor: dict[str, Any]
    """The predictor serving the model, always required."""

    transformer: dict[str, Any] | None = None
    """An optional pre/post processing step in front of the predictor."""

    explainer: dict[str, Any] | None = None
    """An optional explainer for predictions."""

    def component_spec(self, component: ComponentKind) -> dict[str, Any] | None:
        """Return the spec for the component, or None if not requested."""
        return getattr(self, component.value)


@dataclass
class InferenceService(BaseManifest):
    """A representation of an InferenceService."""

    kind: ClassVar[str] = INFERENCE_SERVICE_KIND
    """The kind of the object."""

    name: str
    """The name of the InferenceService."""

    namespace: str
    """The namespace that owns the InferenceService."""

    spec: InferenceServiceSpec
    """The desired serving topology."""

    status: InferenceServiceStatus = field(default_factory=InferenceServiceStatus)
    """The last observed state."""

    generation: int = 1
    """A sequence number representing a specific generation of the spec."""

    resource_version: int | None = field(
        metadata=field_options(alias="resourceVersion"), default=None
    )
    """Version assigned by the store on every write."""

    @classmethod
    def parse_doc(cls, doc: dict[str, Any]) -> "InferenceService":
        """Parse an InferenceService from a kubernetes resource object."""
        _check_version(doc, SERVING_DOMAIN)
        if doc.get("kind") != INFERENCE_SERVICE_KIND:
            raise InputException(f"Invalid {cls} unexpected kind: {doc}")
        if not (metadata := doc.get("metadata")):
            raise InputException(f"Invalid {cls} missing metadata: {doc}")
        if not isinstance(metadata, dict):
            raise InputException(f"Invalid {cls} metadata is not a mapping: {doc}")
        if not (name := metadata.get("name")):
            raise InputException(f"Invalid {cls} missing metadata.name: {doc}")
        if not (spec := doc.get("spec")):
            raise InputException(f"Invalid {cls} missing spec: {doc}")
        if not isinstance(spec, dict):
            raise InputException(f"Invalid {cls} spec is not a mapping: {doc}")
        if not isinstance(spec.get("predictor"), dict):
            raise InputException(f"Invalid {cls} missing spec.predictor: {doc}")
        for component in (ComponentKind.TRANSFORMER, ComponentKind.EXPLAINER):
            if not isinstance(spec.get(component.value) or {}, dict):
                raise InputException(
                    f"Invalid {cls} spec.{component.value} is not a mapping: {doc}"
                )
        try:
            generation = int(metadata.get("generation", 1))
        except (TypeError, ValueError) as err:
            raise InputException(f"Invalid {cls} metadata.generation: {err}") from err
        if not isinstance(raw_status := doc.get("status") or {}, dict):
            raise InputException(f"Invalid {cls} status is not a mapping: {doc}")
        try:
            status = InferenceServiceStatus.from_dict(raw_status)
        except (MissingField, InvalidFieldValue, ValueError, TypeError) as err:
            raise InputException(f"Invalid {cls} status: {err}") from err
        return cls(
            name=name,
            namespace=metadata.get("namespace") or DEFAULT_NAMESPACE,
            spec=InferenceServiceSpec(
                predictor=spec["predictor"],
                transformer=spec.get("transformer"),
                explainer=spec.get("explainer"),
            ),
            status=status,
            generation=generation,
        )

    @property
    def namespaced_name(self) -> str:
        """Return the namespace and name concatenated as an id."""
        return f"{self.namespace}/{self.name}"

    @property
    def resource_id(self) -> NamedResource:
        """Return the store key for this object."""
        return NamedResource(INFERENCE_SERVICE_KIND, self.namespace, self.name)

    def to_doc(self) -> dict[str, Any]:
        """Return the object as a kubernetes resource document."""
        metadata: dict[str, Any] = {
            "name": self.name,
            "namespace": self.namespace,
            "generation": self.generation,
        }
        if self.resource_version is not None:
            metadata["resourceVersion"] = str(self.resource_version)
        return {
            "apiVersion": SERVING_API_VERSION,
            "kind": INFERENCE_SERVICE_KIND,
            "metadata": metadata,
            "spec": self.spec.to_dict(),
            "status": self.status.to_dict(),
        }


@dataclass
class ComponentDeployment(BaseManifest):
    """A child workload serving one component of an InferenceService."""

    kind: ClassVar[str] = COMPONENT_DEPLOYMENT_KIND
    """The kind of the object."""

    name: str
    """The name of the deployment, derived from the owner and component."""

    namespace: str
    """The namespace of the owning InferenceService."""

    owner: str
    """The name of the owning InferenceService."""

    component: ComponentKind
    """The component served by this deployment."""

    spec: dict[str, Any] = field(default_factory=dict)
    """The component spec copied from the owner."""

    revision: int = 1
    """Incremented every time the spec changes."""

    url: str | None = None
    """The address the component is served at."""

    resource_version: int | None = field(
        metadata=field_options(alias="resourceVersion"), default=None
    )
    """Version assigned by the store on every write."""

    @property
    def revision_name(self) -> str:
        """Name of the current revision."""
        return f"{self.name}-{self.revision:05d}"

