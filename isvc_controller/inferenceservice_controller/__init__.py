"""InferenceService Controller module.

This module provides the InferenceServiceController, which composes the
component and ingress reconcilers of an InferenceService and commits the
resulting status.
"""

from .controller import InferenceServiceController

__all__ = [
    "InferenceServiceController",
]
