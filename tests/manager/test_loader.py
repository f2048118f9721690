"""Tests for the resource loader."""

from pathlib import Path

import pytest

from isvc_controller.exceptions import ControllerException, InputException
from isvc_controller.manager import LoadOptions, ResourceLoader
from isvc_controller.manifest import InferenceService

TESTDATA_DIR = Path(__file__).parent.parent / "testdata"


async def _load(options: LoadOptions) -> list[InferenceService]:
    return [resource async for resource in ResourceLoader().load(options)]


async def test_load_directory() -> None:
    """Test loading all manifests under a directory."""
    resources = await _load(LoadOptions(path=TESTDATA_DIR / "models"))
    assert [r.namespaced_name for r in resources] == [
        "default/sklearn-iris",
        "vision/flowers",
    ]
    flowers = resources[1]
    assert flowers.spec.transformer is not None
    assert flowers.spec.explainer == {"alibi": {"type": "AnchorImages"}}


async def test_load_not_recursive() -> None:
    """Test subdirectories are skipped when not loading recursively."""
    resources = await _load(
        LoadOptions(path=TESTDATA_DIR / "models", recursive=False)
    )
    assert [r.namespaced_name for r in resources] == ["default/sklearn-iris"]


async def test_load_file() -> None:
    """Test loading a single file, skipping other kinds of objects."""
    resources = await _load(
        LoadOptions(path=TESTDATA_DIR / "models" / "vision" / "flowers.yaml")
    )
    assert [r.namespaced_name for r in resources] == ["vision/flowers"]


async def test_load_invalid_object() -> None:
    """Test a malformed InferenceService is an error."""
    with pytest.raises(InputException, match="missing-predictor.yaml"):
        await _load(LoadOptions(path=TESTDATA_DIR / "invalid"))


async def test_load_invalid_yaml(tmp_path: Path) -> None:
    """Test a file that is not valid YAML is an error."""
    (tmp_path / "bad.yaml").write_text("kind: [")
    with pytest.raises(InputException, match="Invalid YAML"):
        await _load(LoadOptions(path=tmp_path))


async def test_load_missing_path(tmp_path: Path) -> None:
    """Test loading a path that does not exist."""
    with pytest.raises(ControllerException, match="Path does not exist"):
        await _load(LoadOptions(path=tmp_path / "missing"))
