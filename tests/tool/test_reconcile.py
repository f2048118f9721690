"""Tests for the isvc-controller `reconcile` command."""

from pathlib import Path

import pytest
import yaml
from syrupy.assertion import SnapshotAssertion

from isvc_controller.exceptions import ControllerException
from isvc_controller.tool.isvc_controller import main
from isvc_controller.tool.reconcile import ReconcileAction

TESTDATA_DIR = Path(__file__).parent.parent / "testdata"


async def test_reconcile_output_file(tmp_path: Path) -> None:
    """Test the reconciled objects and events are written to a file."""
    output_file = tmp_path / "output.yaml"
    await ReconcileAction().run(
        path=TESTDATA_DIR / "models",
        config=TESTDATA_DIR / "config.yaml",
        output_file=output_file,
    )

    docs = list(yaml.safe_load_all(output_file.read_text()))
    assert len(docs) == 3
    sklearn, flowers, events = docs

    assert sklearn["name"] == "sklearn-iris"
    assert sklearn["namespace"] == "default"
    assert sklearn["resourceVersion"]
    assert sklearn["status"]["url"] == "http://sklearn-iris.default.models.internal"
    assert {c["type"]: c["status"] for c in sklearn["status"]["conditions"]} == {
        "IngressReady": "True",
        "PredictorReady": "True",
        "Ready": "True",
    }
    assert (
        sklearn["status"]["components"]["predictor"]["latestReadyRevision"]
        == "sklearn-iris-predictor-00001"
    )

    assert flowers["name"] == "flowers"
    assert flowers["namespace"] == "vision"
    assert sorted(flowers["status"]["components"]) == [
        "explainer",
        "predictor",
        "transformer",
    ]

    assert sorted(
        (event["object"], event["type"], event["reason"]) for event in events["events"]
    ) == [
        ("InferenceService/default/sklearn-iris", "Normal", "InferenceServiceReady"),
        ("InferenceService/vision/flowers", "Normal", "InferenceServiceReady"),
    ]


async def test_reconcile_snapshot(tmp_path: Path, snapshot: SnapshotAssertion) -> None:
    """Test the full output of reconciling a single InferenceService."""
    output_file = tmp_path / "output.yaml"
    await ReconcileAction().run(
        path=TESTDATA_DIR / "models" / "sklearn-iris.yaml",
        config=TESTDATA_DIR / "config.yaml",
        output_file=output_file,
    )

    docs = list(yaml.safe_load_all(output_file.read_text()))
    for doc in docs:
        for condition in doc.get("status", {}).get("conditions", []):
            condition.pop("lastTransitionTime")
    assert docs == snapshot


async def test_reconcile_invalid_config(tmp_path: Path) -> None:
    """Test an invalid configuration file fails the command."""
    config = tmp_path / "config.yaml"
    config.write_text("dispatcher:\n  maxRetries: -1\n")
    with pytest.raises(ControllerException, match="maxRetries"):
        await ReconcileAction().run(path=TESTDATA_DIR / "models", config=config)


def test_main_stdout(capsys: pytest.CaptureFixture[str]) -> None:
    """Test the command line prints the output to stdout."""
    main(["reconcile", str(TESTDATA_DIR / "models" / "sklearn-iris.yaml")])

    docs = list(yaml.safe_load_all(capsys.readouterr().out))
    assert [doc.get("name") for doc in docs] == ["sklearn-iris", None]
    assert docs[1]["events"][0]["message"] == "InferenceService [sklearn-iris] is Ready"


def test_main_invalid_manifest(capsys: pytest.CaptureFixture[str]) -> None:
    """Test an invalid manifest exits with an error."""
    with pytest.raises(SystemExit) as exc:
        main(["reconcile", str(TESTDATA_DIR / "invalid")])
    assert exc.value.code == 1
    assert "isvc-controller error: " in capsys.readouterr().err


def test_main_missing_path(capsys: pytest.CaptureFixture[str]) -> None:
    """Test a path that does not exist exits with an error."""
    with pytest.raises(SystemExit) as exc:
        main(["reconcile", str(TESTDATA_DIR / "missing")])
    assert exc.value.code == 1
    assert "Path does not exist" in capsys.readouterr().err


def test_main_malformed_metadata(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    """Test a manifest with non-mapping metadata exits with an error."""
    manifest = tmp_path / "isvc.yaml"
    manifest.write_text(
        "apiVersion: serving.kubeflow.org/v1beta1\n"
        "kind: InferenceService\n"
        "metadata: sklearn-iris\n"
        "spec:\n"
        "  predictor: {}\n"
    )
    with pytest.raises(SystemExit) as exc:
        main(["reconcile", str(manifest)])
    assert exc.value.code == 1
    assert "isvc-controller error: " in capsys.readouterr().err
