from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Generic, TypeVar

from loguru import logger
from tenacity import AsyncRetrying, retry_if_result, stop_after_attempt, wait_fixed

T = TypeVar("T")


class PollState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    FOUND = "found"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"
    FAILED = "failed"


class ConfirmationPoller(Generic[T]):
    """Bounded fixed-delay polling of a probe that returns None until it finds a result.

    Probe exceptions are not retried; they leave the poller FAILED. Cancelling
    the awaiting task stops polling at the next suspension point and leaves
    the poller CANCELLED.
    """

    def __init__(
        self,
        probe: Callable[[], Awaitable[T | None]],
        *,
        max_attempts: int = 10,
        delay_seconds: float = 5.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        label: str = "confirmation",
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._probe = probe
        self._max_attempts = max_attempts
        self._delay_seconds = delay_seconds
        self._sleep = sleep
        self._label = label
        self.state = PollState.IDLE
        self.attempt = 0

    async def _run_probe(self) -> T | None:
        self.attempt += 1
        return await self._probe()

    def _before_sleep(self, retry_state) -> None:
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.debug(
            f"{self._label}: not observed yet. Retrying in {wait:.0f}s "
            f"(attempt {retry_state.attempt_number}/{self._max_attempts})..."
        )

    async def run(self) -> T | None:
        self.state = PollState.POLLING
        self.attempt = 0
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=wait_fixed(self._delay_seconds),
            retry=retry_if_result(lambda result: result is None),
            sleep=self._sleep,
            before_sleep=self._before_sleep,
            retry_error_callback=lambda retry_state: None,
        )
        try:
            result = await retrying(self._run_probe)
        except asyncio.CancelledError:
            self.state = PollState.CANCELLED
            logger.info(f"{self._label}: polling cancelled after {self.attempt} attempt(s)")
            raise
        except Exception:
            self.state = PollState.FAILED
            raise

        if result is None:
            self.state = PollState.EXHAUSTED
            logger.info(f"{self._label}: not observed after {self.attempt} attempt(s)")
        else:
            self.state = PollState.FOUND
        return result
