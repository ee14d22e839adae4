import asyncio
import signal
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import pytest

from sdkgen.errors import GeneratorExecutionError
from sdkgen.lifecycle import (
    CancellationToken,
    LifecycleState,
    ServiceConfig,
    ServiceGroup,
    SuccessTerminationBehavior,
)
from sdkgen.observability import StructuredLogger


@dataclass(slots=True)
class CallbackService:
    body: Callable[[CancellationToken], Awaitable[None]]

    async def run(self, cancellation: CancellationToken) -> None:
        await self.body(cancellation)


def test_successful_service_shuts_down_the_group() -> None:
    async def body(cancellation: CancellationToken) -> None:
        await asyncio.sleep(0)

    async def scenario() -> tuple[LifecycleState, int]:
        group = ServiceGroup(ServiceConfig(service=CallbackService(body)))
        state = await group.run()
        remaining = [task for task in asyncio.all_tasks() if task is not asyncio.current_task()]
        return state, len(remaining)

    state, remaining = asyncio.run(scenario())

    assert state is LifecycleState.COMPLETED
    assert remaining == 0


def test_shutdown_request_cancels_gracefully_at_checkpoint() -> None:
    checkpoints: list[int] = []

    async def body(cancellation: CancellationToken) -> None:
        for step in range(500):
            cancellation.raise_if_cancelled(f"step-{step}")
            checkpoints.append(step)
            await asyncio.sleep(0.01)

    async def scenario() -> ServiceGroup:
        group = ServiceGroup(ServiceConfig(service=CallbackService(body)))
        asyncio.get_running_loop().call_later(0.05, group.request_shutdown)
        await group.run()
        return group

    group = asyncio.run(scenario())

    assert group.state is LifecycleState.GRACEFULLY_CANCELLED
    assert 0 < len(checkpoints) < 500


@pytest.mark.skipif(sys.platform == "win32", reason="Loop signal handlers are POSIX-only.")
def test_interrupt_signal_results_in_graceful_cancellation() -> None:
    logger = StructuredLogger()

    async def body(cancellation: CancellationToken) -> None:
        signal.raise_signal(signal.SIGINT)
        for step in range(500):
            await asyncio.sleep(0.01)
            cancellation.raise_if_cancelled(f"tick-{step}")

    async def scenario() -> LifecycleState:
        group = ServiceGroup(ServiceConfig(service=CallbackService(body)), logger=logger)
        return await group.run()

    state = asyncio.run(scenario())

    assert state is LifecycleState.GRACEFULLY_CANCELLED
    assert logger.records_for_operation("signal_received")
    assert logger.records_for_operation("service_cancelled")


def test_work_finished_before_cancellation_is_observed_completes() -> None:
    holder: dict[str, ServiceGroup] = {}

    async def body(cancellation: CancellationToken) -> None:
        holder["group"].request_shutdown()
        await asyncio.sleep(0)

    async def scenario() -> LifecycleState:
        group = ServiceGroup(ServiceConfig(service=CallbackService(body)))
        holder["group"] = group
        return await group.run()

    assert asyncio.run(scenario()) is LifecycleState.COMPLETED


def test_repeated_shutdown_request_escalates_to_task_cancellation() -> None:
    async def body(cancellation: CancellationToken) -> None:
        # Ignores the token on purpose.
        await asyncio.sleep(30)

    async def scenario() -> LifecycleState:
        group = ServiceGroup(ServiceConfig(service=CallbackService(body)))
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, group.request_shutdown)
        loop.call_later(0.02, group.request_shutdown)
        return await asyncio.wait_for(group.run(), timeout=5)

    assert asyncio.run(scenario()) is LifecycleState.GRACEFULLY_CANCELLED


def test_service_errors_propagate_and_mark_group_failed() -> None:
    async def body(cancellation: CancellationToken) -> None:
        raise GeneratorExecutionError("download failed")

    group = ServiceGroup(ServiceConfig(service=CallbackService(body)))

    with pytest.raises(GeneratorExecutionError, match="download failed"):
        asyncio.run(group.run())

    assert group.state is LifecycleState.FAILED


def test_group_runs_only_once() -> None:
    async def body(cancellation: CancellationToken) -> None:
        return None

    group = ServiceGroup(ServiceConfig(service=CallbackService(body)))
    asyncio.run(group.run())

    with pytest.raises(RuntimeError, match="only be run once"):
        asyncio.run(group.run())


def test_ignore_success_termination_waits_for_shutdown() -> None:
    finished: list[bool] = []

    async def body(cancellation: CancellationToken) -> None:
        finished.append(True)

    async def scenario() -> tuple[LifecycleState, bool]:
        group = ServiceGroup(
            ServiceConfig(
                service=CallbackService(body),
                success_termination=SuccessTerminationBehavior.IGNORE,
            )
        )
        run_task = asyncio.create_task(group.run())
        await asyncio.sleep(0.05)
        still_running = not run_task.done()
        group.request_shutdown()
        return await run_task, still_running

    state, still_running = asyncio.run(scenario())

    assert finished == [True]
    assert still_running
    assert state is LifecycleState.COMPLETED


def test_cancellation_token_is_shared_with_worker_threads() -> None:
    token = CancellationToken()

    async def scenario() -> bool:
        token.cancel()
        return await asyncio.to_thread(lambda: token.is_cancelled)

    assert asyncio.run(scenario()) is True
