"""Configuration objects for isvc-controller.

Configuration is read from a YAML file, e.g.:

```yaml
ingress:
  ingressDomain: example.com
  urlTemplate: "http://{name}.{namespace}.{domain}"
dispatcher:
  maxConcurrentReconciles: 4
  maxRetries: 5
```

All keys are optional.
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path

import aiofiles
import yaml
from mashumaro import DataClassDictMixin, field_options
from mashumaro.codecs.yaml import yaml_decode
from mashumaro.config import BaseConfig
from mashumaro.exceptions import InvalidFieldValue, MissingField

from .exceptions import InputException

__all__ = [
    "IngressConfig",
    "ComponentConfig",
    "DispatcherConfig",
    "ControllerConfig",
    "parse_config",
    "load_config",
]

_LOGGER = logging.getLogger(__name__)


class _BaseConfig(BaseConfig):
    serialize_by_alias = True
    forbid_extra_keys = True


@dataclass
class IngressConfig(DataClassDictMixin):
    """Configuration for externally reachable routing."""

    ingress_domain: str = field(
        metadata=field_options(alias="ingressDomain"), default="example.com"
    )
    """The domain all service hostnames are created under."""

    url_template: str = field(
        metadata=field_options(alias="urlTemplate"),
        default="http://{name}.{namespace}.{domain}",
    )
    """Template for the top level url of an InferenceService."""

    Config = _BaseConfig


@dataclass
class ComponentConfig(DataClassDictMixin):
    """Configuration for the component reconcilers."""

    url_template: str = field(
        metadata=field_options(alias="urlTemplate"),
        default="http://{name}-{component}.{namespace}.{domain}",
    )
    """Template for the url of a single component."""

    Config = _BaseConfig


@dataclass
class DispatcherConfig(DataClassDictMixin):
    """Configuration for the work queue that drives reconciliation."""

    max_concurrent_reconciles: int = field(
        metadata=field_options(alias="maxConcurrentReconciles"), default=4
    )
    """Number of different objects that may be reconciled at the same time."""

    base_delay: float = field(metadata=field_options(alias="baseDelay"), default=0.005)
    """Delay in seconds before the first retry of a failed object."""

    max_delay: float = field(metadata=field_options(alias="maxDelay"), default=16.0)
    """Upper bound for the exponential retry delay."""

    max_retries: int = field(metadata=field_options(alias="maxRetries"), default=5)
    """Consecutive failures after which an object is dropped from the queue."""

    Config = _BaseConfig


@dataclass
class ControllerConfig(DataClassDictMixin):
    """Top level configuration."""

    ingress: IngressConfig = field(default_factory=IngressConfig)
    components: ComponentConfig = field(default_factory=ComponentConfig)
    dispatcher: DispatcherConfig = field(default_factory=DispatcherConfig)

    Config = _BaseConfig


def _validate(config: ControllerConfig) -> None:
    dispatcher = config.dispatcher
    numbers = {
        "maxConcurrentReconciles": dispatcher.max_concurrent_reconciles,
        "baseDelay": dispatcher.base_delay,
        "maxDelay": dispatcher.max_delay,
        "maxRetries": dispatcher.max_retries,
    }
    for key, value in numbers.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InputException(f"{key} must be a number, got {value!r}")
    if dispatcher.max_concurrent_reconciles < 1:
        raise InputException("maxConcurrentReconciles must be at least 1")
    if dispatcher.base_delay < 0 or dispatcher.max_delay < dispatcher.base_delay:
        raise InputException("Retry delays must satisfy 0 <= baseDelay <= maxDelay")
    if dispatcher.max_retries < 0:
        raise InputException("maxRetries must not be negative")
    url_keys = {"name": "name", "namespace": "namespace", "domain": "domain"}
    templates = (
        (config.ingress.url_template, url_keys),
        (config.components.url_template, {**url_keys, "component": "component"}),
    )
    for template, keys in templates:
        try:
            template.format(**keys)
        except (KeyError, IndexError, ValueError, AttributeError) as err:
            raise InputException(f"Invalid url template '{template}': {err}") from err


def parse_config(content: str) -> ControllerConfig:
    """Parse the configuration from a YAML string."""
    if not content.strip():
        return ControllerConfig()
    try:
        config = yaml_decode(content, ControllerConfig)
    except (
        MissingField,
        InvalidFieldValue,
        yaml.YAMLError,
        ValueError,
        TypeError,
    ) as err:
        raise InputException(f"Invalid configuration: {err}") from err
    _validate(config)
    return config


async def load_config(config_path: Path) -> ControllerConfig:
    """Read the configuration from a file."""
    _LOGGER.debug("Loading configuration from %s", config_path)
    try:
        async with aiofiles.open(str(config_path)) as config_file:
            content = await config_file.read()
    except OSError as err:
        raise InputException(
            f"Failed to read configuration {config_path}: {err}"
        ) from err
    return parse_config(content)
