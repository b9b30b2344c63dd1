"""Lifecycle notifications.

Every change to the store state is described by one of these immutable
records.  They are produced by :func:`entitystate.loader.load_entity` (or
directly by callers through the builders below) and consumed by
:func:`entitystate.state.store.reduce`.

The wire shape is a tagged record with fixed camelCase field names::

    {"type": "FETCH_SUCCESS", "entity": "orders", "data": [...],
     "lastUpdated": 1767225600000, "append": False}
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from entitystate._constants import NotificationKind, now_ms
from entitystate.exceptions import InvalidArgumentError

_logger = logging.getLogger(__name__)

_KNOWN_KINDS: frozenset[str] = frozenset(kind.value for kind in NotificationKind)


class _NotificationBase(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    entity: str


class FetchRequest(_NotificationBase):
    type: Literal["FETCH_REQUEST"] = "FETCH_REQUEST"


class FetchSuccess(_NotificationBase):
    type: Literal["FETCH_SUCCESS"] = "FETCH_SUCCESS"
    data: Any = None
    last_updated: int
    append: bool = False


class FetchFailure(_NotificationBase):
    type: Literal["FETCH_FAILURE"] = "FETCH_FAILURE"
    error: Any = None
    last_updated: int


class ResetEntity(_NotificationBase):
    type: Literal["RESET_ENTITY"] = "RESET_ENTITY"
    last_updated: int | None = None


class DeleteEntity(_NotificationBase):
    type: Literal["DELETE_ENTITY"] = "DELETE_ENTITY"


Notification = Annotated[
    FetchRequest | FetchSuccess | FetchFailure | ResetEntity | DeleteEntity,
    Field(discriminator="type"),
]

NOTIFICATION_TYPES: tuple[type[_NotificationBase], ...] = (
    FetchRequest,
    FetchSuccess,
    FetchFailure,
    ResetEntity,
    DeleteEntity,
)

_NOTIFICATION_ADAPTER: TypeAdapter[Notification] = TypeAdapter(Notification)


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------


def fetch_request(name: str) -> Callable[[], FetchRequest]:
    def build() -> FetchRequest:
        return FetchRequest(entity=name)

    return build


def fetch_success(name: str) -> Callable[..., FetchSuccess]:
    def build(data: Any, last_updated: int, append: bool = False) -> FetchSuccess:
        return FetchSuccess(entity=name, data=data, last_updated=last_updated, append=append)

    return build


def fetch_failure(name: str) -> Callable[..., FetchFailure]:
    def build(error: Any, last_updated: int) -> FetchFailure:
        return FetchFailure(entity=name, error=error, last_updated=last_updated)

    return build


def reset_entity(name: str) -> Callable[..., ResetEntity]:
    """Builder for ``RESET_ENTITY``; the timestamp defaults to now."""

    def build(last_updated: int | None = None) -> ResetEntity:
        return ResetEntity(
            entity=name,
            last_updated=last_updated if last_updated is not None else now_ms(),
        )

    return build


def delete_entity(name: str) -> Callable[[], DeleteEntity]:
    def build() -> DeleteEntity:
        return DeleteEntity(entity=name)

    return build


@dataclass(frozen=True)
class NotificationBuilders:
    """All notification builders with one entity name stamped in."""

    entity: str
    request: Callable[[], FetchRequest]
    success: Callable[..., FetchSuccess]
    failure: Callable[..., FetchFailure]
    reset: Callable[..., ResetEntity]
    delete: Callable[[], DeleteEntity]


def builders_for(name: str) -> NotificationBuilders:
    return NotificationBuilders(
        entity=name,
        request=fetch_request(name),
        success=fetch_success(name),
        failure=fetch_failure(name),
        reset=reset_entity(name),
        delete=delete_entity(name),
    )


# ---------------------------------------------------------------------------
# Wire codec
# ---------------------------------------------------------------------------


def notification_to_wire(notification: Notification) -> dict[str, Any]:
    """Dump a notification as its tagged wire record."""
    return notification.model_dump(by_alias=True)


def notification_from_wire(payload: Mapping[str, Any]) -> Notification:
    """Parse a tagged wire record into its typed notification.

    Raises :class:`InvalidArgumentError` for unknown tags or malformed
    records.
    """
    if not isinstance(payload, Mapping):
        raise InvalidArgumentError("notification must be a mapping", argument="notification")
    try:
        return _NOTIFICATION_ADAPTER.validate_python(dict(payload))
    except ValidationError as exc:
        raise InvalidArgumentError(
            f"invalid notification: {exc.error_count()} validation error(s)",
            argument="notification",
        ) from exc


def coerce_notification(notification: Any) -> Notification | None:
    """Return *notification* as a typed model, or ``None`` if it is not ours.

    Typed models pass through.  Tagged wire records with a known ``type``
    are parsed; a malformed one is logged and treated as foreign.
    """
    if isinstance(notification, NOTIFICATION_TYPES):
        return notification
    if not isinstance(notification, Mapping):
        return None
    kind = notification.get("type")
    if not isinstance(kind, str) or kind not in _KNOWN_KINDS:
        return None
    try:
        return notification_from_wire(notification)
    except InvalidArgumentError:
        _logger.warning("Ignoring malformed %s notification: %r", kind, notification)
        return None
