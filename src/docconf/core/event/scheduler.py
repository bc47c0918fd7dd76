"""
EventScheduler: tiered execution of EventBus listeners.

Execution Model
---------------
- CRITICAL / HIGH: one after another, awaited, each bounded by its tier timeout
- NORMAL: concurrent (asyncio.gather), awaited
- LOW: background tasks, tracked so `drain()` can wait for them

Cache invalidation listeners register at HIGH, so by the time `publish`
returns every interested cache has been cleared. Sync callbacks run in the
loop's default executor; clearing a Redis-backed cache is blocking I/O.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from logging import Logger
from typing import Any, Optional

from docconf.core.event.errors import handle_listener_error
from docconf.core.event.metrics import EventMetricsRecorder
from docconf.core.event.types import EventListener, EventPayload, ListenerPriority

_AWAITED_IN_ORDER = (ListenerPriority.CRITICAL, ListenerPriority.HIGH)


@dataclass(frozen=True)
class _Dispatch:
    """One publish: the event, its payload and where failures are reported."""

    event_name: str
    payload: EventPayload
    metrics: Optional[EventMetricsRecorder]
    logger: Logger

    def fail(self, listener: EventListener, exc: BaseException) -> None:
        handle_listener_error(
            logger=self.logger,
            event_name=self.event_name,
            listener=listener,
            exc=exc,
            metrics=self.metrics,
        )


class EventScheduler:
    """Executes listeners according to their priority tier."""

    def __init__(self) -> None:
        self._background_tasks: set[asyncio.Task[Any]] = set()

    async def execute(
        self,
        *,
        event_name: str,
        payload: EventPayload,
        listeners: list[EventListener],
        metrics: Optional[EventMetricsRecorder],
        logger: Logger,
        critical_timeout: Optional[float],
        high_timeout: Optional[float],
    ) -> list[Any]:
        """
        Run `listeners` (already sorted by priority) and return the results
        of the awaited tiers. LOW-tier results are not collected.
        """
        dispatch = _Dispatch(event_name, payload, metrics, logger)
        timeouts = {
            ListenerPriority.CRITICAL: critical_timeout,
            ListenerPriority.HIGH: high_timeout,
        }

        results: list[Any] = []
        concurrent: list[EventListener] = []
        background: list[EventListener] = []
        for listener in listeners:
            if listener.priority in _AWAITED_IN_ORDER:
                results.append(
                    await self._run_bounded(dispatch, listener, timeouts[listener.priority])
                )
            elif listener.priority is ListenerPriority.NORMAL:
                concurrent.append(listener)
            else:
                background.append(listener)

        if concurrent:
            results.extend(
                await asyncio.gather(*(self._run(dispatch, lst) for lst in concurrent))
            )
        for listener in background:
            self._spawn(dispatch, listener)
        return results

    def _spawn(self, dispatch: _Dispatch, listener: EventListener) -> None:
        task = asyncio.get_running_loop().create_task(
            self._run(dispatch, listener),
            name=f"eventbus-low-{dispatch.event_name}-{listener.identifier}",
        )
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _run_bounded(
        self, dispatch: _Dispatch, listener: EventListener, timeout: Optional[float]
    ) -> Any:
        if not timeout or timeout <= 0:
            return await self._run(dispatch, listener)

        try:
            return await asyncio.wait_for(self._run(dispatch, listener), timeout=timeout)
        except asyncio.TimeoutError as exc:
            dispatch.logger.error(
                "EventBus listener timeout",
                extra={
                    "event_name": dispatch.event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority.name,
                    "timeout_seconds": timeout,
                },
            )
            dispatch.fail(listener, exc)
            return None

    async def _run(self, dispatch: _Dispatch, listener: EventListener) -> Any:
        dispatch.logger.debug(
            "EventBus: executing listener",
            extra={
                "event_name": dispatch.event_name,
                "listener_id": listener.identifier,
                "priority": listener.priority.name,
            },
        )
        try:
            if inspect.iscoroutinefunction(listener.callback):
                return await listener.callback(dispatch.payload)
            return await asyncio.get_running_loop().run_in_executor(
                None, listener.callback, dispatch.payload
            )
        except Exception as exc:
            dispatch.fail(listener, exc)
            return None

    def get_background_task_count(self) -> int:
        return len(self._background_tasks)

    async def drain(self) -> None:
        """Wait for pending LOW-tier tasks (used on shutdown and in tests)."""
        if self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)
