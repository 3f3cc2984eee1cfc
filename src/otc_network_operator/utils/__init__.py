"""Utility functions for the OTC Network Operator."""

from .conditions import (
    set_ready_condition,
    set_synced_condition,
    update_condition,
)
from .context import (
    get_context_dict,
    get_correlation_id,
    with_correlation_id,
)
from .events import emit_event
from .locks import ReaderWriterLock
from .secrets import get_secret_value

__all__ = [
    "update_condition",
    "set_ready_condition",
    "set_synced_condition",
    "emit_event",
    "get_secret_value",
    "ReaderWriterLock",
    "get_correlation_id",
    "with_correlation_id",
    "get_context_dict",
]
