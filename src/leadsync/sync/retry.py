"""Retry combinator for sync step sequences."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from .errors import ErrorDisposition, classify_error


logger = logging.getLogger(__name__)


Step = Callable[[], Awaitable[object]]
ErrorCallback = Callable[[BaseException, int], None]
Classifier = Callable[[BaseException], ErrorDisposition]


class RetryableOperation:
    """Runs an ordered list of steps as one unit with fixed-delay retries.

    A failing step restarts the whole sequence from the first step, so every
    step must be idempotent. The classifier decides per error whether to
    abort immediately, retry the sequence, or skip the failed step and go on.
    """

    def __init__(self, max_retries: int = 3, retry_delay: float = 2.0,
                 classifier: Classifier = classify_error):
        """Initialize the combinator.

        Args:
            max_retries: Additional attempts after the first one
            retry_delay: Seconds to wait between attempts
            classifier: Maps an error to an :class:`ErrorDisposition`
        """
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.classifier = classifier
        self.attempts = 0

    async def execute(self, steps: Sequence[Step],
                      on_error: Optional[ErrorCallback] = None,
                      guard: Optional[Callable[[], None]] = None) -> None:
        """Run the steps, retrying the sequence on transient errors.

        Args:
            steps: Async callables run in order
            on_error: Called with ``(error, attempt_number)`` for every retried or
                skipped failure; aborting errors are not reported
            guard: Called before every step; raises to stop the pass
                (e.g. when the session is gone)

        Raises:
            The aborting error, or the last error once retries are exhausted
        """
        total_attempts = self.max_retries + 1
        self.attempts = 0

        for attempt in range(1, total_attempts + 1):
            self.attempts = attempt
            try:
                await self._run_sequence(steps, attempt, on_error, guard)
                return
            except Exception as e:
                if self.classifier(e) == ErrorDisposition.ABORT:
                    logger.info(f"Sync stopped without retry: {e}")
                    raise

                if on_error is not None:
                    on_error(e, attempt)

                if attempt >= total_attempts:
                    logger.error(f"All {total_attempts} attempts failed: {e}")
                    raise

                logger.warning(f"Attempt {attempt} failed, retrying in {self.retry_delay}s: {e}")
                if self.retry_delay > 0:
                    await asyncio.sleep(self.retry_delay)

    async def _run_sequence(self, steps: Sequence[Step], attempt: int,
                            on_error: Optional[ErrorCallback],
                            guard: Optional[Callable[[], None]]) -> None:
        for step in steps:
            if guard is not None:
                guard()
            try:
                await step()
            except Exception as e:
                if self.classifier(e) != ErrorDisposition.SKIP:
                    raise
                logger.warning(f"Skipping failed step {getattr(step, '__name__', step)}: {e}")
                if on_error is not None:
                    on_error(e, attempt)
