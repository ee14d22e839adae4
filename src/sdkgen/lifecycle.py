"""Signal-aware supervision of the generator run.

A ``ServiceGroup`` owns exactly one service. While the service runs, the
configured signals request a graceful shutdown through a
``CancellationToken``; the service observes the token at its own checkpoints
and unwinds with ``GenerationCancelled``. A second signal escalates to
cancelling the service task at its next ``await``.
"""

from __future__ import annotations

import asyncio
import signal
import sys
import threading
from collections.abc import Sequence
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Protocol

from .errors import GenerationCancelled
from .observability import StructuredLogger


class LifecycleState(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    GRACEFULLY_CANCELLED = "gracefully_cancelled"


class SuccessTerminationBehavior(StrEnum):
    GRACEFULLY_SHUTDOWN_GROUP = "gracefully_shutdown_group"
    IGNORE = "ignore"


class CancellationToken:
    """Thread-safe shutdown request shared between the loop and worker threads."""

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self, checkpoint: str) -> None:
        if self._event.is_set():
            raise GenerationCancelled(checkpoint)


class Service(Protocol):
    async def run(self, cancellation: CancellationToken) -> None:
        """Run until done, checking ``cancellation`` at safe checkpoints."""


@dataclass(frozen=True, slots=True)
class ServiceConfig:
    service: Service
    success_termination: SuccessTerminationBehavior = (
        SuccessTerminationBehavior.GRACEFULLY_SHUTDOWN_GROUP
    )


class ServiceGroup:
    def __init__(
        self,
        config: ServiceConfig,
        *,
        cancellation_signals: Sequence[signal.Signals] = (signal.SIGINT,),
        logger: StructuredLogger | None = None,
    ) -> None:
        self._config = config
        self._signals = tuple(cancellation_signals)
        self._logger = logger or StructuredLogger()
        self._state = LifecycleState.IDLE
        self._token = CancellationToken()
        self._shutdown_requests = 0
        self._task: asyncio.Task[None] | None = None
        self._shutdown: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def cancellation(self) -> CancellationToken:
        return self._token

    def request_shutdown(self) -> None:
        """Ask the running service to stop; a repeated request cancels its task."""
        self._shutdown_requests += 1
        self._token.cancel()
        if self._shutdown is not None:
            self._shutdown.set()
        if self._shutdown_requests > 1 and self._task is not None and not self._task.done():
            self._log("shutdown_escalated", "Repeated shutdown request, cancelling service task.")
            self._task.cancel()

    async def run(self) -> LifecycleState:
        if self._state is not LifecycleState.IDLE:
            raise RuntimeError("A ServiceGroup can only be run once.")
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._shutdown = asyncio.Event()
        if self._token.is_cancelled:
            self._shutdown.set()
        previous = self._install_signal_handlers(loop)
        self._state = LifecycleState.RUNNING
        self._log("service_start", "Service group started.")
        try:
            self._task = asyncio.create_task(self._config.service.run(self._token))
            await self._supervise(self._task)
        finally:
            self._remove_signal_handlers(loop, previous)
            self._log("service_stop", "Service group stopped.", extra={"state": self._state.value})
        return self._state

    async def _supervise(self, task: asyncio.Task[None]) -> None:
        try:
            await task
        except GenerationCancelled as exc:
            self._state = LifecycleState.GRACEFULLY_CANCELLED
            self._log("service_cancelled", str(exc), extra={"checkpoint": exc.checkpoint})
            return
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if current is not None and current.cancelling():
                self._state = LifecycleState.FAILED
                raise
            self._state = LifecycleState.GRACEFULLY_CANCELLED
            self._log("service_cancelled", "Service task cancelled after escalation.")
            return
        except BaseException as exc:
            self._state = LifecycleState.FAILED
            self._log(
                "service_failed",
                "Service failed.",
                level="error",
                extra={"error": type(exc).__name__},
            )
            raise

        self._state = LifecycleState.COMPLETED
        if self._config.success_termination is SuccessTerminationBehavior.IGNORE:
            assert self._shutdown is not None
            await self._shutdown.wait()
        self._log("service_completed", "Service completed.")

    def _handle_signal(self, sig: signal.Signals) -> None:
        self._log("signal_received", f"Received {sig.name}, initiating graceful shutdown.")
        self.request_shutdown()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> dict[signal.Signals, Any]:
        previous: dict[signal.Signals, Any] = {}
        for sig in self._signals:
            if sys.platform != "win32":
                try:
                    loop.add_signal_handler(sig, self._handle_signal, sig)
                except (RuntimeError, ValueError) as exc:
                    self._log(
                        "signal_unavailable",
                        f"Cannot listen for {sig.name} outside the main thread.",
                        level="warning",
                        extra={"error": str(exc)},
                    )
                    continue
                previous[sig] = None
            else:
                # Windows handlers run outside the loop thread.
                def handler(signum: int, frame: object, *, _loop: asyncio.AbstractEventLoop = loop) -> None:
                    _loop.call_soon_threadsafe(self._handle_signal, signal.Signals(signum))

                previous[sig] = signal.signal(sig, handler)
        return previous

    def _remove_signal_handlers(
        self,
        loop: asyncio.AbstractEventLoop,
        previous: dict[signal.Signals, Any],
    ) -> None:
        for sig, handler in previous.items():
            if sys.platform != "win32":
                loop.remove_signal_handler(sig)
            else:
                signal.signal(sig, handler)

    def _log(
        self,
        operation: str,
        message: str,
        *,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        self._logger.log(
            operation=operation,
            phase="lifecycle",
            message=message,
            level=level,
            extra=extra,
        )


__all__ = [
    "CancellationToken",
    "LifecycleState",
    "Service",
    "ServiceConfig",
    "ServiceGroup",
    "SuccessTerminationBehavior",
]
