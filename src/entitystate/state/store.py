"""Store reducer and in-memory entity store.

:func:`reduce` owns the mapping from entity name to :class:`EntitySlice`
and delegates per-entity transitions to
:func:`entitystate.state.entity.reduce_entity`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from entitystate._constants import ENTITY_KINDS, NotificationKind
from entitystate.config import DEFAULT_LOAD_OPTIONS, LoadOptions
from entitystate.loader import load_entity
from entitystate.state.entity import EntitySlice, reduce_entity
from entitystate.state.notifications import coerce_notification

_logger = logging.getLogger(__name__)

StoreState = dict[str, EntitySlice]
Listener = Callable[[StoreState, Any], None]


def reduce(state: StoreState | None, notification: Any) -> StoreState:
    """Fold one notification into the store state.

    Returns a new mapping whenever an entity is touched; untouched entries
    are carried over as the same objects.  Notifications this module does
    not know about return *state* unchanged.  Tagged wire records
    (``{"type": "FETCH_REQUEST", "entity": "orders"}``) are accepted as well
    as the typed models.
    """
    if state is None:
        state = {}
    notification = coerce_notification(notification)
    if notification is None:
        return state

    kind = notification.type
    name = notification.entity

    if kind == NotificationKind.DELETE_ENTITY:
        return {key: value for key, value in state.items() if key != name}

    if kind in ENTITY_KINDS:
        new_state = dict(state)
        new_state[name] = reduce_entity(state.get(name), notification)
        return new_state

    return state


class EntityStore:
    """In-memory holder for the store state.

    Plays the role of the owning store: every notification passed to
    :meth:`dispatch` is reduced and the state is replaced as a whole value.
    """

    def __init__(
        self,
        initial: Mapping[str, EntitySlice] | None = None,
        *,
        defaults: LoadOptions = DEFAULT_LOAD_OPTIONS,
    ) -> None:
        self._state: StoreState = dict(initial) if initial else {}
        self._defaults = defaults
        self._listeners: list[Listener] = []

    @property
    def state(self) -> StoreState:
        return dict(self._state)

    def get(self, name: str) -> EntitySlice | None:
        return self._state.get(name)

    def dispatch(self, notification: Any) -> StoreState:
        """Reduce *notification* into the state and notify subscribers."""
        new_state = reduce(self._state, notification)
        if new_state is not self._state:
            _logger.debug(
                "Reduced %s for entity %r",
                getattr(notification, "type", type(notification).__name__),
                getattr(notification, "entity", None),
            )
        self._state = new_state
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot, notification)
            except Exception:
                _logger.exception("Store listener %r failed", listener)
        return snapshot

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register *listener*; returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load(
        self,
        name: str,
        operation: Awaitable[Any],
        options: LoadOptions | Mapping[str, Any] | None = None,
    ) -> asyncio.Future[None]:
        """Run :func:`entitystate.loader.load_entity` against this store."""
        return load_entity(name, operation, options, defaults=self._defaults)(self.dispatch)
