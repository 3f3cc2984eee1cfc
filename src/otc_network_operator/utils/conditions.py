"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import COND_READY, COND_SYNCED, REASON_RECONCILE_ERROR, REASON_RECONCILE_SUCCESS
from ..managed.resource import Condition


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    Args:
        conditions: List of existing conditions
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        observed_generation: Generation when condition was observed

    Returns:
        Updated list of conditions
    """
    now = datetime.now(timezone.utc).isoformat()

    existing_idx = None
    for idx, cond in enumerate(conditions):
        if cond.get("type") == condition_type:
            existing_idx = idx
            break

    new_condition = {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now,
    }

    if observed_generation is not None:
        new_condition["observedGeneration"] = observed_generation

    if existing_idx is not None:
        existing = conditions[existing_idx]
        # Only update lastTransitionTime if status changed
        if existing.get("status") == status:
            new_condition["lastTransitionTime"] = existing.get("lastTransitionTime", now)
        conditions[existing_idx] = new_condition
    else:
        conditions.append(new_condition)

    return conditions


def set_ready_condition(
    conditions: list[dict[str, Any]],
    condition: Condition,
    message: str = "",
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Ready condition from a resource availability state."""
    status = "True" if condition is Condition.AVAILABLE else "False"
    return update_condition(
        conditions, COND_READY, status, condition.value, message, observed_generation
    )


def set_synced_condition(
    conditions: list[dict[str, Any]],
    synced: bool,
    message: str = "",
    observed_generation: int | None = None,
) -> list[dict[str, Any]]:
    """Set the Synced condition recording the outcome of the last cycle."""
    if synced:
        return update_condition(
            conditions, COND_SYNCED, "True", REASON_RECONCILE_SUCCESS, message, observed_generation
        )
    return update_condition(
        conditions, COND_SYNCED, "False", REASON_RECONCILE_ERROR, message, observed_generation
    )
