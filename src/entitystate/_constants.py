"""Internal constants shared across the library."""

from __future__ import annotations

import time
from enum import StrEnum


class NotificationKind(StrEnum):
    """Tags carried in the ``type`` field of every notification."""

    FETCH_REQUEST = "FETCH_REQUEST"
    FETCH_SUCCESS = "FETCH_SUCCESS"
    FETCH_FAILURE = "FETCH_FAILURE"
    RESET_ENTITY = "RESET_ENTITY"
    DELETE_ENTITY = "DELETE_ENTITY"


# Kinds routed through the per-entity state machine.
ENTITY_KINDS: frozenset[str] = frozenset(
    kind.value
    for kind in (
        NotificationKind.FETCH_REQUEST,
        NotificationKind.FETCH_SUCCESS,
        NotificationKind.FETCH_FAILURE,
        NotificationKind.RESET_ENTITY,
    )
)

ENV_SILENT = "ENTITYSTATE_SILENT"
ENV_APPEND = "ENTITYSTATE_APPEND"


def now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)
