"""Manager for isvc-controller.

This module provides the composition root that wires the store, the
InferenceServiceController and the dispatcher together, and the loader used
to populate the store from manifests on disk.
"""

from .manager import Manager
from .loader import ResourceLoader, LoadOptions

__all__ = [
    "Manager",
    "ResourceLoader",
    "LoadOptions",
]
