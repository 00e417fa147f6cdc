"""Waits on a long-running generation operation.

Each tick sleeps for the configured interval, rotates the loading message and
queries the operation once. Failed queries are logged and retried on the next
tick; only ``max_consecutive_failures`` failures in a row abort the loop.
"""
import logging
import time
from enum import Enum
from typing import Callable, Optional, Sequence

from backend.services.errors import PollLimitExceededError, TransientPollError

logger = logging.getLogger(__name__)

LOADING_MESSAGES = (
    "Warming up the digital director's chair...",
    "Assembling the pixels...",
    "Choreographing the photons...",
    "Teaching the AI about cinematography...",
    "Rendering the digital dreamscape...",
    "This can take a few minutes, the magic is in the making!",
    "Polishing the final cut...",
    "Adding sound and fury...",
)
DOWNLOADING_MESSAGE = "Downloading your masterpiece..."


class PollState(str, Enum):
    IN_PROGRESS = "in_progress"
    DONE = "done"


class PollingLoop:
    def __init__(
        self,
        client,
        operation,
        on_message: Optional[Callable[[str], None]] = None,
        interval_seconds: float = 10.0,
        max_consecutive_failures: int = 0,
        messages: Sequence[str] = LOADING_MESSAGES,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if operation is None:
            raise ValueError("operation must not be None")
        self.client = client
        self.operation = operation
        self.on_message = on_message or (lambda message: None)
        self.interval_seconds = interval_seconds
        self.max_consecutive_failures = max_consecutive_failures
        self.messages = tuple(messages)
        self.sleep = sleep

        self.message_index = 0
        self.ticks = 0
        self.consecutive_failures = 0
        self.state = PollState.DONE if getattr(operation, "done", False) else PollState.IN_PROGRESS

    @property
    def current_message(self) -> str:
        return self.messages[self.message_index]

    def tick(self) -> PollState:
        if self.state is PollState.DONE:
            return self.state

        self.sleep(self.interval_seconds)
        self.ticks += 1
        self.message_index = (self.message_index + 1) % len(self.messages)
        self.on_message(self.current_message)

        try:
            operation = self.client.poll(self.operation)
        except TransientPollError as exc:
            self.consecutive_failures += 1
            logger.warning(
                "Polling failed (%d in a row), retrying: %s", self.consecutive_failures, exc
            )
            if self.max_consecutive_failures and self.consecutive_failures >= self.max_consecutive_failures:
                raise PollLimitExceededError(
                    f"Gave up polling after {self.consecutive_failures} consecutive failures: {exc}"
                ) from exc
            return self.state

        self.consecutive_failures = 0
        if operation is not None:
            self.operation = operation
        if getattr(self.operation, "done", False):
            self.state = PollState.DONE
        return self.state

    def run(self):
        while self.state is PollState.IN_PROGRESS:
            self.tick()
        logger.info("Operation finished after %d polls", self.ticks)
        return self.operation
