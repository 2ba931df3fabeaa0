"""Run one stream session: chunks -> frames -> events -> state."""

from __future__ import annotations

from collections.abc import AsyncIterable, Callable, Iterable
from contextlib import aclosing
from datetime import datetime

from order_console.services.stream.dispatcher import dispatch_frame
from order_console.services.stream.frames import aiter_frames, iter_frames
from order_console.services.stream.models import ConsoleState
from order_console.services.stream.reducer import Clock, begin_session, reduce


def fold_stream(
    chunks: Iterable[bytes | str],
    state: ConsoleState | None = None,
    clock: Clock = datetime.now,
) -> ConsoleState:
    """Consume a synchronous chunk source as one session.

    Stops pulling chunks as soon as a ``done`` event has been reduced.
    """
    state = begin_session(state or ConsoleState())
    frames = iter_frames(chunks)
    try:
        for frame in frames:
            event = dispatch_frame(frame)
            if event is None:
                continue
            state = reduce(state, event, clock)
            if state.terminated:
                break
    finally:
        frames.close()
    return state


async def afold_stream(
    chunks: AsyncIterable[bytes | str],
    state: ConsoleState,
    clock: Clock = datetime.now,
    on_state: Callable[[ConsoleState], None] | None = None,
) -> ConsoleState:
    """Consume an async chunk source, reporting every intermediate state.

    `state` should already have its session flags reset (`begin_session`).
    """
    async with aclosing(aiter_frames(chunks)) as frames:
        async for frame in frames:
            event = dispatch_frame(frame)
            if event is None:
                continue
            state = reduce(state, event, clock)
            if on_state is not None:
                on_state(state)
            if state.terminated:
                break
    return state
