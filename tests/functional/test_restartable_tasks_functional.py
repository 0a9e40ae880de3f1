"""Functional tests for restartable tasks and the event emitter."""

from __future__ import annotations

import asyncio

import pytest

from fieldengine.logic.events import EventEmitter
from fieldengine.logic.tasks import RestartableTask

pytestmark = pytest.mark.anyio


async def test_perform_cancels_previous_invocation():
    release = asyncio.Event()
    committed = []

    async def body(token, label):
        await release.wait()
        if token.is_current:
            committed.append(label)
        return label

    task = RestartableTask(body, name="demo")
    first = task.perform("first")
    await asyncio.sleep(0)
    second = task.perform("second")
    release.set()

    assert await second == "second"
    with pytest.raises(asyncio.CancelledError):
        await first
    # Assert: only the latest invocation committed
    assert committed == ["second"]
    assert task.generation == 2
    assert task.perform_count == 2
    assert task.is_running is False


async def test_stale_token_is_not_current_after_restart():
    tokens = []

    async def body(token):
        tokens.append(token)

    task = RestartableTask(body, name="demo")
    await task.perform()
    await task.perform()
    assert [t.is_current for t in tokens] == [False, True]



def test_perform_requires_running_loop():
    async def body(token):
        return None

    with pytest.raises(RuntimeError):
        RestartableTask(body, name="demo").perform()


def test_event_emitter_on_off_and_order():
    emitter = EventEmitter(owner="doc:field")
    calls = []

    def first():
        calls.append("first")

    def second(arg):
        calls.append(f"second:{arg}")

    emitter.on("ping", first)
    emitter.on("ping", first)
    emitter.on("ping", lambda *args: calls.append("third"))
    emitter.trigger("ping")
    assert calls == ["first", "third"]

    emitter.off("ping", first)
    emitter.on("pong", second)
    emitter.trigger("pong", 7)
    assert calls[-1] == "second:7"
    assert emitter.has("pong") and not emitter.has("missing")


def test_event_subscriber_errors_propagate():
    emitter = EventEmitter()

    def broken():
        raise ValueError("boom")

    emitter.on("ping", broken)
    with pytest.raises(ValueError):
        emitter.trigger("ping")
