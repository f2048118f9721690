"""Resource loader for populating the store from manifests on disk.

Key Characteristics:
- Reads YAML/JSON files, one or more documents per file
- Yields InferenceService objects; documents of any other kind are skipped
- A malformed InferenceService is an error rather than being skipped
- Stateless apart from remembering the files already read
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncGenerator
import asyncio

import yaml

from isvc_controller.manifest import (
    InferenceService,
    INFERENCE_SERVICE_KIND,
)
from isvc_controller.exceptions import ControllerException, InputException

__all__ = ["ResourceLoader", "LoadOptions"]

_LOGGER = logging.getLogger(__name__)

MANIFEST_SUFFIXES = (".yaml", ".yml", ".json")


@dataclass
class LoadOptions:
    """Options for configuring resource loading.

    Attributes:
        path: Filesystem path to load resources from. Can be a file or directory.
        recursive: If True and path is a directory, load resources from all
                  subdirectories as well.
    """

    path: Path
    recursive: bool = True

    def __post_init__(self) -> None:
        """Resolve the path after initialization."""
        self.path = Path(self.path).expanduser().resolve()


class ResourceLoader:
    """Loads InferenceService resources from the filesystem."""

    def __init__(self) -> None:
        """Initialize the resource loader."""
        self._processed_files: set[Path] = set()

    async def load(
        self, options: LoadOptions
    ) -> AsyncGenerator[InferenceService, None]:
        """Load resources from the given options.

        Args:
            options: Options for loading resources.

        Raises:
            ControllerException: If the path can't be read or holds invalid objects.
        """
        _LOGGER.info("Loading resources from %s", options.path)

        if not options.path.exists():
            raise ControllerException(f"Path does not exist: {options.path}")

        if options.path.is_file():
            async for resource in self._load_file(options.path):
                yield resource
        elif options.path.is_dir():
            async for resource in self._load_directory(options.path, options):
                yield resource
        else:
            raise ControllerException(
                f"Path is not a file or directory: {options.path}"
            )

        _LOGGER.info("Finished loading resources")

    async def _load_directory(
        self, path: Path, options: LoadOptions
    ) -> AsyncGenerator[InferenceService, None]:
        _LOGGER.debug("Loading directory: %s", path)

        for entry in sorted(path.iterdir()):
            if entry.is_file() and entry.suffix.lower() in MANIFEST_SUFFIXES:
                async for resource in self._load_file(entry):
                    yield resource
            elif options.recursive and entry.is_dir():
                async for resource in self._load_directory(entry, options):
                    yield resource

    async def _load_file(self, path: Path) -> AsyncGenerator[InferenceService, None]:
        if path in self._processed_files:
            _LOGGER.debug("Skipping already processed file: %s", path)
            return

        _LOGGER.debug("Processing file: %s", path)
        self._processed_files.add(path)

        try:
            content = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except OSError as e:
            raise ControllerException(f"Failed to read file {path}: {e}") from e

        try:
            docs = list(yaml.safe_load_all(content))
        except yaml.YAMLError as e:
            raise InputException(f"Invalid YAML in file {path}: {e}") from e

        for doc in docs:
            if not doc:
                continue
            if not isinstance(doc, dict) or doc.get("kind") != INFERENCE_SERVICE_KIND:
                _LOGGER.debug("Skipping document in %s of another kind", path)
                continue
            try:
                yield InferenceService.parse_doc(doc)
            except InputException as e:
                raise InputException(f"Error processing file {path}: {e}") from e
