"""Per-entity fetch state machine.

The fetch status is encoded in the shape of :class:`EntitySlice` rather
than in a separate field:

* *idle*: not fetching, no data, no error
* *fetching*: ``is_fetching`` set
* *loaded*: not fetching, data present, no error
* *errored*: not fetching, error present, data cleared

:func:`reduce_entity` is pure: it never mutates the slice it is given and
returns a new slice for every transition.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from entitystate._constants import NotificationKind
from entitystate.state.notifications import coerce_notification


class EntityStatus(StrEnum):
    IDLE = "idle"
    FETCHING = "fetching"
    LOADED = "loaded"
    ERRORED = "errored"


class EntitySlice(BaseModel):
    """Fetch status, data, error and staleness timestamp of one entity."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    is_fetching: bool = False
    last_updated: int | None = None
    data: Any = None
    error: Any = None

    @property
    def status(self) -> EntityStatus:
        """Fetch status derived from the slice shape.

        A load that resolved to ``None`` leaves no data behind, so it reads as
        ``IDLE`` rather than ``LOADED``; ``last_updated`` still records it.
        """
        if self.is_fetching:
            return EntityStatus.FETCHING
        if self.error is not None:
            return EntityStatus.ERRORED
        if self.data is not None:
            return EntityStatus.LOADED
        return EntityStatus.IDLE


INITIAL_ENTITY_STATE = EntitySlice()


def _to_list(value: Any) -> list[Any]:
    """Coerce append payloads to a list; scalars become one-element lists."""
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def reduce_entity(state: EntitySlice | None, notification: Any) -> EntitySlice:
    """Apply one notification to an entity slice.

    ``DELETE_ENTITY`` and unknown kinds leave the slice unchanged; deletion
    is handled by the store reducer.
    """
    if state is None:
        state = INITIAL_ENTITY_STATE
    notification = coerce_notification(notification)
    if notification is None:
        return state
    kind = notification.type

    if kind == NotificationKind.FETCH_REQUEST:
        return state.model_copy(update={"is_fetching": True, "error": None})

    if kind == NotificationKind.FETCH_SUCCESS:
        if notification.append:
            prior = _to_list(state.data) if state.data is not None else []
            data = prior + _to_list(notification.data)
        else:
            data = notification.data
        return state.model_copy(
            update={
                "is_fetching": False,
                "last_updated": notification.last_updated,
                "data": data,
                "error": None,
            }
        )

    if kind == NotificationKind.FETCH_FAILURE:
        return state.model_copy(
            update={
                "is_fetching": False,
                "last_updated": notification.last_updated,
                "data": None,
                "error": notification.error,
            }
        )

    if kind == NotificationKind.RESET_ENTITY:
        return INITIAL_ENTITY_STATE.model_copy(update={"last_updated": notification.last_updated})

    return state
