"""
isvc-controller reconciles InferenceService objects: it drives the reconcilers
of each requested component, routes traffic once they are ready, and commits
the observed status back to the store.
"""

__all__ = [
    "manifest",
    "status",
    "store",
    "events",
    "exceptions",
    "inferenceservice_controller",
    "manager",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
