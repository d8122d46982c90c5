"""
Bounded-concurrency job runner.

Runs a sequence of independent asynchronous jobs with at most
``max_concurrency`` of them in flight. Jobs start in submission order; as soon
as one finishes, successfully or not, the next queued job is started, and the
run resolves once every job has reached a terminal state.

A job is any zero-argument callable. Calling it usually returns an awaitable
(a coroutine from an ``async def`` function), but a plain return value is
accepted too, in which case the job completes synchronously. Exceptions raised
by a job never escape the run: they are recorded as failed outcomes.

Each run keeps its queue, active count and completion future in a private
``_Batch`` object, so one runner can serve overlapping runs. The batch is only
touched from the event loop thread (task done-callbacks run on the loop),
which makes pop/increment/decrement atomic with respect to each other.
"""

import asyncio
import inspect
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Deque, Iterator, List, Optional, Sequence, Set, Tuple, Union

from tagprune.utils.logging import get_logger

log = get_logger("runner")

Job = Callable[[], Union[Awaitable[Any], Any]]


@dataclass
class Outcome:
    """Terminal result of one job."""
    index: int
    """Position of the job in the submitted sequence."""
    ok: bool
    value: Any = None
    error: Optional[BaseException] = None


@dataclass
class BatchResult:
    """Outcomes of a run, in completion order."""
    outcomes: List[Outcome] = field(default_factory=list)
    peak_active: int = 0
    started_at: float = 0.0
    finished_at: float = 0.0

    def __len__(self) -> int:
        return len(self.outcomes)

    def __iter__(self) -> Iterator[Outcome]:
        return iter(self.outcomes)

    @property
    def succeeded(self) -> List[Outcome]:
        return [o for o in self.outcomes if o.ok]

    @property
    def failed(self) -> List[Outcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def duration_seconds(self) -> float:
        return self.finished_at - self.started_at

    def by_index(self) -> List[Outcome]:
        """Outcomes sorted back into submission order."""
        return sorted(self.outcomes, key=lambda o: o.index)


class _Batch:
    """
    State of a single run: the FIFO queue, the active count and the future
    that resolves when both are exhausted.
    """

    def __init__(self,
                 jobs: Sequence[Job],
                 limit: int,
                 on_outcome: Optional[Callable[[Outcome], None]],
                 ):
        self.loop = asyncio.get_running_loop()
        self.queue: Deque[Tuple[int, Job]] = deque(enumerate(jobs))
        self.limit = limit
        self.on_outcome = on_outcome
        self.active = 0
        self.result = BatchResult(started_at=time.time())
        self.done: asyncio.Future = self.loop.create_future()
        # Strong references so running tasks are not garbage collected
        self._tasks: Set[asyncio.Task] = set()

    def dispatch(self) -> None:
        """Start queued jobs until the ceiling is reached or the queue drains."""
        # Caller stopped waiting; let in-flight jobs finish but start no more
        if self.done.cancelled():
            return
        while self.active < self.limit and self.queue:
            self._start_next()
        self._check_done()

    def _start_next(self) -> None:
        index, job = self.queue.popleft()
        self.active += 1
        if self.active > self.result.peak_active:
            self.result.peak_active = self.active
        log.debug(f"Dispatching job {index} (active={self.active}, queued={len(self.queue)})")

        task = self.loop.create_task(_invoke(index, job))
        self._tasks.add(task)
        task.add_done_callback(lambda t, i=index: self._on_finished(i, t))

    def _on_finished(self, index: int, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        try:
            if task.cancelled():
                outcome = Outcome(index=index, ok=False, error=asyncio.CancelledError())
            else:
                outcome = task.result()
            self._record(outcome)
        finally:
            self.active -= 1
            self.dispatch()

    def _record(self, outcome: Outcome) -> None:
        if self.on_outcome is not None:
            try:
                self.on_outcome(outcome)
            except Exception as e:
                log.exception(f"Outcome handler failed for job {outcome.index}")
                outcome = Outcome(index=outcome.index, ok=False, value=outcome.value, error=e)
        self.result.outcomes.append(outcome)

    def _check_done(self) -> None:
        if self.active == 0 and not self.queue and not self.done.done():
            self.result.finished_at = time.time()
            self.done.set_result(self.result)


async def _invoke(index: int, job: Job) -> Outcome:
    """Call a job and capture its terminal state as an Outcome."""
    try:
        value = job()
        if inspect.isawaitable(value):
            value = await value
    except Exception as e:
        log.debug(f"Job {index} failed: {e!r}")
        return Outcome(index=index, ok=False, error=e)
    return Outcome(index=index, ok=True, value=value)


class BoundedTaskRunner:
    """
    Fixed-width fan-out/fan-in over a list of jobs.

    Usage:
        runner = BoundedTaskRunner(max_concurrency=5)
        result = await runner.run_all([lambda: fetch(u) for u in urls])
        for outcome in result.failed:
            ...
    """

    def __init__(self, max_concurrency: int):
        """
        :param max_concurrency: Maximum number of jobs in flight. Must be >= 1.
        :raises TypeError: If max_concurrency is not an int.
        :raises ValueError: If max_concurrency is below 1.
        """
        if isinstance(max_concurrency, bool) or not isinstance(max_concurrency, int):
            raise TypeError(f"max_concurrency must be an int, got {max_concurrency!r}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self.max_concurrency = max_concurrency

    async def run_all(self,
                      jobs: Sequence[Job],
                      on_outcome: Optional[Callable[[Outcome], None]] = None,
                      ) -> BatchResult:
        """
        Run every job and wait until all of them have finished.

        :param jobs: Zero-argument callables, started in this order.
        :param on_outcome: Optional hook called on the event loop as each
                          outcome is recorded. If it raises, the error is
                          logged and that job's outcome becomes a failure.
        :return: BatchResult with exactly len(jobs) outcomes.
        """
        jobs = list(jobs)
        log.info(f"Running {len(jobs)} jobs with concurrency {self.max_concurrency}")

        batch = _Batch(jobs, self.max_concurrency, on_outcome)
        batch.dispatch()
        result = await batch.done

        log.info(
            f"Batch complete: {len(result.succeeded)} succeeded, "
            f"{len(result.failed)} failed in {result.duration_seconds:.2f}s"
        )
        return result


def run_jobs(jobs: Sequence[Job],
             max_concurrency: int,
             on_outcome: Optional[Callable[[Outcome], None]] = None,
             ) -> BatchResult:
    """
    Synchronous submit-and-await.

    Drives a fresh event loop until every job has finished. Must not be
    called from inside a running loop; use BoundedTaskRunner.run_all there.
    """
    runner = BoundedTaskRunner(max_concurrency)
    return asyncio.run(runner.run_all(jobs, on_outcome=on_outcome))
