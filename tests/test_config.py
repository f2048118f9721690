"""Tests for the configuration library."""

from pathlib import Path

import pytest

from isvc_controller.config import (
    ControllerConfig,
    DispatcherConfig,
    IngressConfig,
    load_config,
    parse_config,
)
from isvc_controller.exceptions import InputException


def test_defaults() -> None:
    """Test an empty configuration uses the defaults."""
    config = parse_config("")
    assert config == ControllerConfig()
    assert config.ingress.ingress_domain == "example.com"
    assert config.dispatcher.max_concurrent_reconciles == 4
    assert config.dispatcher.max_retries == 5


def test_parse_config() -> None:
    """Test parsing a configuration with camel case keys."""
    config = parse_config(
        """\
ingress:
  ingressDomain: models.internal
  urlTemplate: "https://{name}-{namespace}.{domain}"
components:
  urlTemplate: "https://{name}-{component}-{namespace}.{domain}"
dispatcher:
  maxConcurrentReconciles: 1
  baseDelay: 0.5
  maxDelay: 2
  maxRetries: 0
"""
    )
    assert config.ingress == IngressConfig(
        ingress_domain="models.internal",
        url_template="https://{name}-{namespace}.{domain}",
    )
    assert config.components.url_template == (
        "https://{name}-{component}-{namespace}.{domain}"
    )
    assert config.dispatcher == DispatcherConfig(
        max_concurrent_reconciles=1, base_delay=0.5, max_delay=2.0, max_retries=0
    )


@pytest.mark.parametrize(
    "content",
    [
        "ingress: [",
        "ingress:\n  domain: example.com\n",
        "dispatcher:\n  maxRetries: many\n",
        "dispatcher:\n  maxConcurrentReconciles: 0\n",
        "dispatcher:\n  baseDelay: 4\n  maxDelay: 1\n",
        "dispatcher:\n  maxRetries: -1\n",
        "ingress:\n  urlTemplate: 'http://{host}'\n",
        "ingress:\n  urlTemplate: 'http://{name}-{component}.{domain}'\n",
        "components:\n  urlTemplate: 'http://{name}-{revision}.{domain}'\n",
    ],
    ids=[
        "yaml",
        "unknown-key",
        "invalid-value",
        "concurrency",
        "delays",
        "retries",
        "template",
        "ingress-component-key",
        "component-template",
    ],
)
def test_invalid_config(content: str) -> None:
    """Test invalid configurations are rejected."""
    with pytest.raises(InputException):
        parse_config(content)


async def test_load_config(tmp_path: Path) -> None:
    """Test reading the configuration from a file."""
    config_file = tmp_path / "config.yaml"
    config_file.write_text("ingress:\n  ingressDomain: models.internal\n")
    config = await load_config(config_file)
    assert config.ingress.ingress_domain == "models.internal"


async def test_load_config_missing(tmp_path: Path) -> None:
    """Test reading a configuration file that does not exist."""
    with pytest.raises(InputException, match="Failed to read configuration"):
        await load_config(tmp_path / "missing.yaml")
