"""Task tracking module for isvc-controller.

This module provides a simple task tracking service that allows the
dispatcher to track and wait for reconcile passes and scheduled retries.
"""

from .service import TaskService, TaskServiceImpl

__all__ = ["TaskService", "TaskServiceImpl"]
