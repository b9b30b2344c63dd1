"""entitystate - Lifecycle notifications and reducers for asynchronous entity loads."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("entitystate")
except PackageNotFoundError:
    __version__ = "0+local"
from entitystate._constants import NotificationKind
from entitystate.config import DEFAULT_LOAD_OPTIONS, LoadOptions
from entitystate.exceptions import EntityStateError, InvalidArgumentError
from entitystate.loader import load_entity
from entitystate.state.entity import INITIAL_ENTITY_STATE, EntitySlice, EntityStatus, reduce_entity
from entitystate.state.notifications import (
    DeleteEntity,
    FetchFailure,
    FetchRequest,
    FetchSuccess,
    Notification,
    NotificationBuilders,
    ResetEntity,
    builders_for,
    delete_entity,
    fetch_failure,
    fetch_request,
    fetch_success,
    notification_from_wire,
    notification_to_wire,
    reset_entity,
)
from entitystate.state.store import EntityStore, reduce

__all__ = [
    "__version__",
    "DEFAULT_LOAD_OPTIONS",
    "INITIAL_ENTITY_STATE",
    "DeleteEntity",
    "EntitySlice",
    "EntityStateError",
    "EntityStatus",
    "EntityStore",
    "FetchFailure",
    "FetchRequest",
    "FetchSuccess",
    "InvalidArgumentError",
    "LoadOptions",
    "Notification",
    "NotificationBuilders",
    "NotificationKind",
    "ResetEntity",
    "builders_for",
    "delete_entity",
    "fetch_failure",
    "fetch_request",
    "fetch_success",
    "load_entity",
    "notification_from_wire",
    "notification_to_wire",
    "reduce",
    "reduce_entity",
    "reset_entity",
]
