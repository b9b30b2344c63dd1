from __future__ import annotations

import asyncio
import inspect
from datetime import datetime
from typing import Any

import pytest

from entitystate.config import LoadOptions
from entitystate.exceptions import InvalidArgumentError
from entitystate.loader import load_entity
from entitystate.state.notifications import FetchFailure, FetchRequest, FetchSuccess

ENTITY = "mockEntity"


class _Pending:
    """Minimal awaitable that is never awaited by the validation tests."""

    def __await__(self) -> Any:
        return iter(())


async def _resolve(value: Any) -> Any:
    return value


async def _reject(error: BaseException) -> Any:
    raise error


@pytest.mark.asyncio
async def test_success_dispatches_request_then_success() -> None:
    dispatched: list[Any] = []
    data = {"foo": "bar"}

    await load_entity(ENTITY, _resolve(data), None)(dispatched.append)

    assert len(dispatched) == 2
    assert dispatched[0] == FetchRequest(entity=ENTITY)

    success = dispatched[1]
    assert isinstance(success.last_updated, int)
    assert success == FetchSuccess(entity=ENTITY, data=data, last_updated=success.last_updated, append=False)


@pytest.mark.asyncio
async def test_failure_dispatches_request_then_failure_with_original_error() -> None:
    dispatched: list[Any] = []
    error = RuntimeError("foo")

    await load_entity(ENTITY, _reject(error), False)(dispatched.append)

    assert len(dispatched) == 2
    assert dispatched[0] == FetchRequest(entity=ENTITY)

    failure = dispatched[1]
    assert isinstance(failure, FetchFailure)
    assert failure.error is error
    assert isinstance(failure.last_updated, int)


@pytest.mark.asyncio
async def test_silent_skips_request() -> None:
    dispatched: list[Any] = []

    await load_entity(ENTITY, _resolve({"foo": "bar"}), {"silent": True})(dispatched.append)

    assert len(dispatched) == 1
    assert isinstance(dispatched[0], FetchSuccess)
    assert dispatched[0].append is False


@pytest.mark.asyncio
async def test_append_option_is_carried_on_success() -> None:
    dispatched: list[Any] = []

    await load_entity(ENTITY, _resolve(3), LoadOptions(append=True))(dispatched.append)

    assert dispatched[-1].append is True
    assert dispatched[-1].data == 3


@pytest.mark.asyncio
async def test_defaults_fill_unset_options() -> None:
    dispatched: list[Any] = []
    defaults = LoadOptions(silent=True, append=True)

    await load_entity(ENTITY, _resolve(1), {"append": False}, defaults=defaults)(dispatched.append)

    # silent came from the defaults, append from the explicit options
    assert len(dispatched) == 1
    assert dispatched[0].append is False


@pytest.mark.asyncio
async def test_request_is_dispatched_before_operation_settles() -> None:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[list[int]] = loop.create_future()
    dispatched: list[Any] = []

    task = load_entity(ENTITY, future)(dispatched.append)
    assert [n.type for n in dispatched] == ["FETCH_REQUEST"]

    await asyncio.sleep(0)
    assert len(dispatched) == 1

    future.set_result([1, 2])
    await task
    assert [n.type for n in dispatched] == ["FETCH_REQUEST", "FETCH_SUCCESS"]
    assert dispatched[1].data == [1, 2]


@pytest.mark.asyncio
async def test_timestamp_read_at_settlement() -> None:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()
    calls: list[int] = []

    def clock() -> int:
        calls.append(1)
        return 1_767_225_600_000

    dispatched: list[Any] = []
    task = load_entity(ENTITY, future, clock=clock)(dispatched.append)
    await asyncio.sleep(0)
    assert calls == []

    future.set_result("done")
    await task
    assert len(calls) == 1
    assert dispatched[-1].last_updated == 1_767_225_600_000


@pytest.mark.asyncio
async def test_dispatch_error_on_success_is_not_reported_as_failure() -> None:
    dispatched: list[Any] = []

    def dispatch(notification: Any) -> None:
        dispatched.append(notification)
        if isinstance(notification, FetchSuccess):
            raise KeyError("store exploded")

    with pytest.raises(KeyError):
        await load_entity(ENTITY, _resolve(1))(dispatch)

    assert [n.type for n in dispatched] == ["FETCH_REQUEST", "FETCH_SUCCESS"]


@pytest.mark.asyncio
async def test_cancelled_operation_dispatches_failure() -> None:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[Any] = loop.create_future()
    dispatched: list[Any] = []

    task = load_entity(ENTITY, future, {"silent": True})(dispatched.append)
    await asyncio.sleep(0)
    future.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(dispatched) == 1
    assert isinstance(dispatched[0], FetchFailure)
    assert isinstance(dispatched[0].error, asyncio.CancelledError)


@pytest.mark.asyncio
async def test_independent_loads_each_emit_one_terminal() -> None:
    loop = asyncio.get_running_loop()
    first: asyncio.Future[str] = loop.create_future()
    second: asyncio.Future[str] = loop.create_future()
    dispatched: list[Any] = []

    task_a = load_entity("a", first)(dispatched.append)
    task_b = load_entity("b", second)(dispatched.append)
    second.set_exception(ValueError("nope"))
    first.set_result("ok")
    await asyncio.gather(task_a, task_b)

    terminal = [(n.entity, n.type) for n in dispatched if n.type != "FETCH_REQUEST"]
    assert sorted(terminal) == [("a", "FETCH_SUCCESS"), ("b", "FETCH_FAILURE")]


@pytest.mark.parametrize("name", [None, 123, {}, datetime(2026, 1, 1), "", b"orders"])
def test_invalid_entity_name_raises(name: Any) -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        load_entity(name, _Pending())
    assert excinfo.value.argument == "name"
    assert "name is required" in str(excinfo.value)


def test_no_arguments_raises_invalid_name() -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        load_entity()
    assert excinfo.value.argument == "name"


@pytest.mark.parametrize("operation", [None, {}, "promise", 42, lambda: None])
def test_invalid_operation_raises(operation: Any) -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        load_entity(ENTITY, operation)
    assert excinfo.value.argument == "operation"
    assert "operation is required" in str(excinfo.value)


def test_missing_operation_raises() -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        load_entity(ENTITY)
    assert excinfo.value.argument == "operation"


@pytest.mark.parametrize("options", ["foo", 123, [], (), True, lambda: None])
def test_non_object_options_raise(options: Any) -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        load_entity(ENTITY, _Pending(), options)
    assert excinfo.value.argument == "options"
    assert str(excinfo.value) == "options must be an object"


@pytest.mark.parametrize("options", [{"colour": "red"}, {"silent": "yes"}, {"append": 1}])
def test_malformed_option_fields_raise(options: Any) -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        load_entity(ENTITY, _Pending(), options)
    assert excinfo.value.argument == "options"


@pytest.mark.parametrize("options", [{}, None, False, LoadOptions(), {"silent": None}])
def test_accepted_options_do_not_raise(options: Any) -> None:
    assert callable(load_entity(ENTITY, _Pending(), options))


def test_invalid_argument_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        load_entity("", _Pending())


@pytest.mark.asyncio
async def test_loader_invoked_twice_shares_one_coroutine_result() -> None:
    calls: list[int] = []

    async def fetch_orders() -> list[int]:
        calls.append(1)
        return [1]

    run = load_entity(ENTITY, fetch_orders())
    first: list[Any] = []
    second: list[Any] = []
    await asyncio.gather(run(first.append), run(second.append))

    assert calls == [1]
    for dispatched in (first, second):
        assert [n.type for n in dispatched] == ["FETCH_REQUEST", "FETCH_SUCCESS"]
        assert dispatched[1].data == [1]


@pytest.mark.asyncio
async def test_loader_invoked_twice_shares_rejection() -> None:
    error = ConnectionError("down")
    run = load_entity(ENTITY, _reject(error), {"silent": True})
    first: list[Any] = []
    second: list[Any] = []

    await run(first.append)
    await run(second.append)

    assert first[0].error is error
    assert second[0].error is error


@pytest.mark.asyncio
async def test_cancelling_one_load_leaves_other_loads_running() -> None:
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()
    run = load_entity(ENTITY, future, {"silent": True})
    cancelled: list[Any] = []
    completed: list[Any] = []

    first = run(cancelled.append)
    second = run(completed.append)
    await asyncio.sleep(0)
    first.cancel()
    with pytest.raises(asyncio.CancelledError):
        await first

    future.set_result("ok")
    await second
    assert isinstance(cancelled[0].error, asyncio.CancelledError)
    assert completed[0].data == "ok"


@pytest.mark.asyncio
async def test_operation_is_not_awaited_until_loader_is_invoked() -> None:
    coro = _resolve("late")
    run = load_entity(ENTITY, coro)
    assert inspect.getcoroutinestate(coro) == inspect.CORO_CREATED

    dispatched: list[Any] = []
    await run(dispatched.append)
    assert inspect.getcoroutinestate(coro) == inspect.CORO_CLOSED
    assert dispatched[-1].data == "late"
