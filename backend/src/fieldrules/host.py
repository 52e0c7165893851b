"""Minimal in-process host.

A real UI binding supplies its own Host (see fieldrules.types.Host). This
one keeps an event table and treats one event-loop turn as an update cycle.
"""

import asyncio
from collections.abc import Callable
from typing import Any


class LocalHost:
    """Event table plus loop-turn ticks."""

    def __init__(self) -> None:
        self._listeners: dict[str, list[Callable[..., Any]]] = {}

    async def next_tick(self) -> None:
        await asyncio.sleep(0)

    def on(self, event: str, callback: Callable[..., Any]) -> None:
        self._listeners.setdefault(event, []).append(callback)

    def off(self, event: str, callback: Callable[..., Any] | None = None) -> None:
        if callback is None:
            self._listeners.pop(event, None)
            return
        listeners = self._listeners.get(event, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, [])):
            callback(*args)
