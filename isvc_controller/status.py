"""Helpers for reading and writing InferenceService status conditions.

The Ready condition summarizes the other conditions of an InferenceService:
it is True only once every condition it depends on is True, False as soon as
one of them is False, and Unknown otherwise. Which conditions it depends on
follows from the components requested in the spec.
"""

import logging

from .manifest import (
    ComponentKind,
    Condition,
    ConditionStatus,
    InferenceService,
    InferenceServiceStatus,
    INGRESS_READY_CONDITION,
    READY_CONDITION,
    now_timestamp,
)

__all__ = [
    "is_ready",
    "set_condition",
    "ready_dependencies",
    "propagate_ready",
    "semantic_equal",
]

_LOGGER = logging.getLogger(__name__)


def is_ready(status: InferenceServiceStatus) -> bool:
    """Return True if the Ready condition of the status is exactly True.

    A status without conditions, or without a Ready condition, is not ready.
    """
    return (
        bool(status.conditions)
        and (condition := status.get_condition(READY_CONDITION)) is not None
        and condition.status == ConditionStatus.TRUE
    )


def set_condition(
    status: InferenceServiceStatus,
    condition_type: str,
    value: ConditionStatus,
    reason: str | None = None,
    message: str | None = None,
) -> Condition:
    """Set a condition on the status, replacing any condition of the same type.

    The last transition time is only updated when the condition actually
    changes, so setting the same value twice leaves the status untouched.
    """
    existing = status.get_condition(condition_type)
    if (
        existing is not None
        and existing.status == value
        and existing.reason == reason
        and existing.message == message
    ):
        return existing
    condition = Condition(
        type=condition_type,
        status=value,
        reason=reason,
        message=message,
        last_transition_time=now_timestamp(),
    )
    conditions = [c for c in status.conditions or () if c.type != condition_type]
    conditions.append(condition)
    status.conditions = sorted(conditions, key=lambda c: c.type)
    return condition


def ready_dependencies(isvc: InferenceService) -> list[str]:
    """Return the condition types the Ready condition depends on."""
    dependencies = [ComponentKind.PREDICTOR.condition_type]
    for component in (ComponentKind.TRANSFORMER, ComponentKind.EXPLAINER):
        if isvc.spec.component_spec(component) is not None:
            dependencies.append(component.condition_type)
    dependencies.append(INGRESS_READY_CONDITION)
    return dependencies


def propagate_ready(isvc: InferenceService) -> Condition:
    """Recompute the Ready condition from the conditions it depends on."""
    status = isvc.status
    unknown: Condition | None = None
    for condition_type in ready_dependencies(isvc):
        condition = status.get_condition(condition_type)
        if condition is None or condition.status == ConditionStatus.UNKNOWN:
            if unknown is None:
                unknown = condition or Condition(type=condition_type)
            continue
        if condition.status == ConditionStatus.FALSE:
            return set_condition(
                status,
                READY_CONDITION,
                ConditionStatus.FALSE,
                condition.reason,
                condition.message,
            )
    if unknown is not None:
        _LOGGER.debug(
            "InferenceService %s waiting on %s", isvc.namespaced_name, unknown.type
        )
        return set_condition(
            status,
            READY_CONDITION,
            ConditionStatus.UNKNOWN,
            unknown.reason,
            unknown.message,
        )
    return set_condition(status, READY_CONDITION, ConditionStatus.TRUE)


def _normalized(status: InferenceServiceStatus) -> InferenceServiceStatus:
    return InferenceServiceStatus(
        conditions=sorted(status.conditions or (), key=lambda c: c.type),
        url=status.url,
        components=dict(status.components or {}),
        observed_generation=status.observed_generation,
    )


def semantic_equal(
    existing: InferenceServiceStatus, desired: InferenceServiceStatus
) -> bool:
    """Compare two status snapshots structurally.

    The order of conditions is not significant, and an absent condition set or
    component map is the same as an empty one.
    """
    return _normalized(existing) == _normalized(desired)
