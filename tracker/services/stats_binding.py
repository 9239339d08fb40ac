"""
Per-student statistics binding.

Each roster row owns one binding. Mounting (or changing the handle) starts a
fetch task and moves the binding to PENDING; the task settles it to READY or
FAILED exactly once. An empty handle leaves the binding IDLE with no network
call. Every terminal transition is reported upward exactly once: READY
reports the solved count and composite score, FAILED and IDLE report a clear.

Fetch identity is tracked with a generation counter. Changing the handle or
closing the binding cancels the running task and bumps the generation, so a
late resolution can never write a stale result upward.
"""

import asyncio
from typing import Callable, Optional

from tracker.data_models.stats import FetchOutcome, FetchState, ScoreWeights, StatEntry
from tracker.utils.exceptions import StatsFetchError
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)

ResolutionCallback = Callable[[int, Optional[StatEntry]], None]


class PerStudentStatsBinding:
    """Drives one student's fetch and reports its terminal outcome."""

    def __init__(
        self,
        student_id: int,
        handle: str,
        fetcher,
        on_resolved: ResolutionCallback,
        score_weights: Optional[ScoreWeights] = None,
        gate: Optional[asyncio.Semaphore] = None
    ):
        """
        Args:
            student_id: Roster identity the outcome is reported under
            handle: LeetCode username, may be empty
            fetcher: Object with an async fetch(handle) -> StatSnapshot
            on_resolved: Called once per terminal transition
            score_weights: Weights for the composite score
            gate: Shared semaphore bounding concurrent fetches
        """
        self.student_id = student_id
        self.handle = (handle or "").strip()
        self.fetcher = fetcher
        self.on_resolved = on_resolved
        self.score_weights = score_weights or ScoreWeights()
        self.gate = gate

        self._outcome = FetchOutcome.idle()
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._mounted = False
        self._closed = False

    @property
    def outcome(self) -> FetchOutcome:
        return self._outcome

    @property
    def state(self) -> FetchState:
        return self._outcome.state

    @property
    def is_settled(self) -> bool:
        return self._outcome.is_terminal

    def mount(self):
        """Start the state machine for the current handle."""
        if self._closed:
            raise RuntimeError(f"Binding for student {self.student_id} is closed")
        if self._mounted:
            return
        self._mounted = True
        self._restart()

    def set_handle(self, handle: str):
        """Restart from PENDING (or IDLE) when the handle value changes."""
        handle = (handle or "").strip()
        if handle == self.handle:
            return
        self.handle = handle
        if self._mounted and not self._closed:
            self._restart()

    def refresh(self):
        """Fetch again for the same handle."""
        if self._mounted and not self._closed:
            self._restart()

    def close(self):
        """Tear down. Any in-flight resolution is discarded."""
        self._closed = True
        self._generation += 1
        self._cancel_task()

    async def wait(self) -> FetchOutcome:
        """Wait until the binding settles, following any restarts."""
        while True:
            task = self._task
            if task is None or task.done():
                return self._outcome
            try:
                await asyncio.shield(task)
            except asyncio.CancelledError:
                # The fetch was superseded; anything else is our own cancellation
                if not task.cancelled():
                    raise

    def _restart(self):
        self._generation += 1
        self._cancel_task()

        if not self.handle:
            self._settle(FetchOutcome.idle(), None)
            return

        self._outcome = FetchOutcome.pending()
        generation = self._generation
        self._task = asyncio.create_task(
            self._run(generation, self.handle),
            name=f"stats-fetch:{self.student_id}:{generation}"
        )

    def _cancel_task(self):
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self, generation: int, handle: str):
        try:
            if self.gate is not None:
                async with self.gate:
                    snapshot = await self.fetcher.fetch(handle)
            else:
                snapshot = await self.fetcher.fetch(handle)
        except asyncio.CancelledError:
            logger.debug(f"Fetch for student {self.student_id} ({handle}) cancelled")
            raise
        except StatsFetchError as e:
            outcome = FetchOutcome.failed(e.reason)
        except Exception as e:
            logger.error(f"Unexpected error fetching stats for {handle}: {e}", exc_info=True)
            outcome = FetchOutcome.failed("Unexpected error")
        else:
            outcome = FetchOutcome.ready(snapshot)

        if generation != self._generation:
            logger.debug(f"Discarding stale result for student {self.student_id} ({handle})")
            return

        if outcome.state is FetchState.READY:
            entry = StatEntry(
                solved=outcome.snapshot.total_solved,
                score=self.score_weights.score(outcome.snapshot)
            )
        else:
            entry = None
        self._settle(outcome, entry)

    def _settle(self, outcome: FetchOutcome, entry: Optional[StatEntry]):
        self._outcome = outcome
        try:
            self.on_resolved(self.student_id, entry)
        except Exception as e:
            logger.error(f"Resolution callback failed for student {self.student_id}: {e}", exc_info=True)
