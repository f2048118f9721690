"""Utilities for context tracing.

Nested trace contexts are logged at debug level with their elapsed time, e.g.
`[Trace] < Reconcile default/sklearn-iris (0.01s)`. The trace stack is held
in a context variable so concurrent reconcile passes each see their own.
"""

import contextvars
from contextlib import contextmanager
import logging
from time import perf_counter
from typing import Generator


_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


trace: contextvars.ContextVar[tuple[str, ...]] = contextvars.ContextVar(
    "trace", default=()
)


@contextmanager
def trace_context(name: str) -> Generator[None, None, None]:
    stack = trace.get() + (name,)
    token = trace.set(stack)
    label = " > ".join(stack)
    t1 = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        trace.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, perf_counter() - t1)
