"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_CREATED,
    EVENT_REASON_DELETED,
    EVENT_REASON_LATE_INITIALIZED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_UPDATED,
)


def emit_event(
    body: Any,
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: Any) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: Any, message: str, reason: str = EVENT_REASON_RECONCILE_FAILED) -> None:
    """Emit reconcile failed event."""
    emit_event(body, reason, message, type_="Warning")


def emit_created(body: Any, kind: str, external_name: str) -> None:
    emit_event(body, EVENT_REASON_CREATED, f"Created {kind} {external_name}")


def emit_updated(body: Any, kind: str, external_name: str, fields: list[str]) -> None:
    changed = ", ".join(fields) if fields else "no fields"
    emit_event(body, EVENT_REASON_UPDATED, f"Updated {kind} {external_name} ({changed})")


def emit_deleted(body: Any, kind: str, external_name: str | None) -> None:
    emit_event(body, EVENT_REASON_DELETED, f"Deleted {kind} {external_name or '(never created)'}")


def emit_late_initialized(body: Any, fields: list[str]) -> None:
    emit_event(body, EVENT_REASON_LATE_INITIALIZED, f"Backfilled {', '.join(fields)} from provider")
