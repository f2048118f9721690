"""Command line tool for reconciling InferenceService manifests."""

import logging
import pathlib
import sys
from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
from typing import Any, cast

import aiofiles
import yaml

from isvc_controller.config import ControllerConfig, load_config
from isvc_controller.events import Event, InMemoryEventRecorder
from isvc_controller.exceptions import ControllerException
from isvc_controller.manager import Manager
from isvc_controller.manifest import InferenceService
from isvc_controller.status import is_ready


_LOGGER = logging.getLogger(__name__)


def _object_doc(isvc: InferenceService) -> dict[str, Any]:
    return {
        "name": isvc.name,
        "namespace": isvc.namespace,
        "resourceVersion": str(isvc.resource_version),
        "status": isvc.status.to_dict(),
    }


def _event_doc(event: Event) -> dict[str, Any]:
    return {
        "object": str(event.resource_id),
        "type": event.type.value,
        "reason": event.reason,
        "message": event.message,
    }


class ReconcileAction:
    """isvc-controller reconcile action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "reconcile",
                help="Reconcile InferenceService manifests until idle",
                description=(
                    "Load InferenceService manifests from a file or directory, "
                    "reconcile them against a local store until no work remains "
                    "and print the resulting status and events."
                ),
            ),
        )
        args.add_argument(
            "path",
            help="Path to a manifest file or a directory of manifests",
            type=pathlib.Path,
        )
        args.add_argument(
            "--config",
            help="Optional path to a controller configuration file",
            type=pathlib.Path,
            default=None,
        )
        args.add_argument(
            "--output-file",
            help="Write the output to a file instead of stdout",
            type=pathlib.Path,
            default=None,
        )
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        path: pathlib.Path,
        config: pathlib.Path | None = None,
        output_file: pathlib.Path | None = None,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        controller_config = (
            await load_config(config) if config is not None else ControllerConfig()
        )
        recorder = InMemoryEventRecorder()
        manager = Manager(config=controller_config, recorder=recorder)
        objects = await manager.bootstrap(path)

        docs: list[dict[str, Any]] = [_object_doc(isvc) for isvc in objects]
        docs.append({"events": [_event_doc(event) for event in recorder.events]})
        content = yaml.dump_all(docs, sort_keys=False, explicit_start=True)
        if output_file is not None:
            async with aiofiles.open(str(output_file), mode="w") as out:
                await out.write(content)
        else:
            sys.stdout.write(content)

        not_ready = [
            isvc.namespaced_name for isvc in objects if not is_ready(isvc.status)
        ]
        if not_ready:
            raise ControllerException(
                f"InferenceServices not ready: {', '.join(not_ready)}"
            )
