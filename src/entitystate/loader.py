"""Dispatch sequencer for asynchronous entity loads.

:func:`load_entity` wraps a pending operation (coroutine, future or task)
and translates its lifecycle into notifications::

    store = EntityStore()
    await load_entity("orders", api.get_orders())(store.dispatch)

At least one notification is dispatched per call: ``FETCH_REQUEST``
(unless ``silent``), then exactly one of ``FETCH_SUCCESS`` or
``FETCH_FAILURE`` once the operation settles.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import ValidationError

from entitystate._constants import now_ms
from entitystate.config import DEFAULT_LOAD_OPTIONS, LoadOptions
from entitystate.exceptions import InvalidArgumentError
from entitystate.state.notifications import fetch_failure, fetch_request, fetch_success

_logger = logging.getLogger(__name__)

Dispatch = Callable[[Any], Any]


def _coerce_options(options: Any) -> LoadOptions:
    # ``None`` and ``False`` both mean "no options".
    if options is None or options is False:
        return LoadOptions()
    if isinstance(options, LoadOptions):
        return options
    if isinstance(options, Mapping):
        try:
            return LoadOptions.model_validate(dict(options))
        except ValidationError as exc:
            raise InvalidArgumentError(
                "options must be an object with boolean 'silent' and 'append' fields",
                argument="options",
            ) from exc
    raise InvalidArgumentError("options must be an object", argument="options")


async def _settle(
    name: str,
    operation: asyncio.Future[Any],
    dispatch: Dispatch,
    *,
    append: bool,
    clock: Callable[[], int],
) -> None:
    try:
        data = await asyncio.shield(operation)
    except asyncio.CancelledError as error:
        _logger.debug("Load of entity %r was cancelled", name)
        dispatch(fetch_failure(name)(error, clock()))
        raise
    except Exception as error:
        _logger.debug("Load of entity %r failed: %r", name, error)
        dispatch(fetch_failure(name)(error, clock()))
        return

    _logger.debug("Load of entity %r succeeded (append=%s)", name, append)
    dispatch(fetch_success(name)(data, clock(), append))


def load_entity(
    name: str | None = None,
    operation: Awaitable[Any] | None = None,
    options: LoadOptions | Mapping[str, Any] | None = None,
    *,
    defaults: LoadOptions = DEFAULT_LOAD_OPTIONS,
    clock: Callable[[], int] = now_ms,
) -> Callable[[Dispatch], asyncio.Future[None]]:
    """Build a loader that sequences the lifecycle of *operation*.

    Parameters
    ----------
    name
        Entity name the notifications are stamped with.
    operation
        Awaitable producing the entity's data.  A raised exception becomes the
        ``error`` of the ``FETCH_FAILURE`` notification, unchanged.
    options
        :class:`LoadOptions` or a mapping with ``silent`` / ``append``.
        ``None`` or ``False`` means no options.
    defaults
        Values used for options left unset.
    clock
        Returns the epoch-milliseconds timestamp stamped on terminal
        notifications; read once, when the operation settles.

    Returns
    -------
    Callable
        Takes the store's ``dispatch`` callable.  Calling it dispatches
        ``FETCH_REQUEST`` synchronously (unless silent) and returns a task
        that completes after the terminal notification has been dispatched.
        It must be called from within a running event loop.  Calling it more
        than once is allowed: each call dispatches its own notifications for
        the one shared result of *operation*.

    Raises
    ------
    InvalidArgumentError
        Synchronously, for an empty or non-string *name*, a non-awaitable
        *operation* or *options* that are not an object.

    Notes
    -----
    The operation is only awaited once the returned callable is invoked.  A
    coroutine passed to a loader that is never invoked is never awaited, and
    Python emits a "coroutine ... was never awaited" ``RuntimeWarning`` when
    it is garbage collected.
    """
    if not isinstance(name, str) or not name:
        raise InvalidArgumentError("name is required, and must be a non-empty string", argument="name")
    if operation is None or not inspect.isawaitable(operation):
        raise InvalidArgumentError("operation is required, and must be awaitable", argument="operation")
    entity: str = name
    pending: Awaitable[Any] = operation
    requested = _coerce_options(options)
    shared: asyncio.Future[Any] | None = None

    def run(dispatch: Dispatch) -> asyncio.Future[None]:
        nonlocal shared
        loop = asyncio.get_running_loop()
        resolved = requested.resolve(defaults)
        # Every call observes the same settlement of the operation.
        if shared is None:
            shared = asyncio.ensure_future(pending, loop=loop)

        if not resolved.silent:
            _logger.debug("Dispatching FETCH_REQUEST for entity %r", entity)
            dispatch(fetch_request(entity)())

        return loop.create_task(
            _settle(entity, shared, dispatch, append=bool(resolved.append), clock=clock),
            name=f"entitystate.load:{entity}",
        )

    return run
