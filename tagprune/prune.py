"""
Concurrent remote tag deletion.

Each tag becomes one job for the bounded runner. A job deletes the tag from
the remote; if the remote reports the tag is already gone, the stale local
tag is deleted instead. Runner outcomes are folded into a PruneReport that
the CLI prints.
"""

import time
from enum import Enum
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from tagprune.git import GitClient, GitCommandError, is_tag_not_found
from tagprune.runner import BoundedTaskRunner, Job, Outcome
from tagprune.utils.logging import get_logger

log = get_logger("prune")


class TagStatus(str, Enum):
    DELETED = "deleted"
    # Remote tag was already gone; stale local tag removed
    LOCAL_ONLY = "local_only"
    # Gone on both sides
    MISSING = "missing"
    FAILED = "failed"


@dataclass
class TagResult:
    tag: str
    status: TagStatus
    error: Optional[str] = None


@dataclass
class PruneReport:
    """Aggregated results of a prune run."""
    total: int = 0
    results: List[TagResult] = field(default_factory=list)
    started_at: float = 0.0
    finished_at: float = 0.0

    def _with(self, status: TagStatus) -> List[TagResult]:
        return [r for r in self.results if r.status == status]

    @property
    def deleted(self) -> List[TagResult]:
        return self._with(TagStatus.DELETED)

    @property
    def local_only(self) -> List[TagResult]:
        return self._with(TagStatus.LOCAL_ONLY)

    @property
    def missing(self) -> List[TagResult]:
        return self._with(TagStatus.MISSING)

    @property
    def failed(self) -> List[TagResult]:
        return self._with(TagStatus.FAILED)

    @property
    def duration_seconds(self) -> float:
        return self.finished_at - self.started_at

    def summary(self) -> str:
        lines = [
            f"Deleted {len(self.deleted)}/{self.total} remote tags, {len(self.failed)} failed",
        ]
        if self.local_only:
            lines.append(f"  Stale local tags removed: {len(self.local_only)}")
        if self.missing:
            lines.append(f"  Already gone: {len(self.missing)}")
        lines.append(f"  Duration: {self.duration_seconds:.1f}s")
        return "\n".join(lines)


def make_delete_job(git: GitClient, tag: str) -> Job:
    """
    Build the job that removes one tag.

    The job returns a TagResult on success. Git errors other than "not
    found" propagate so the runner records the job as failed.
    """
    async def job() -> TagResult:
        try:
            await git.delete_remote_tag(tag)
            return TagResult(tag, TagStatus.DELETED)
        except GitCommandError as e:
            if not is_tag_not_found(e):
                raise
            log.debug(f"Remote tag {tag} already gone, deleting local tag")

        try:
            await git.delete_local_tag(tag)
        except GitCommandError as e:
            log.debug(f"Local tag {tag} not found either: {e.stderr}")
            return TagResult(tag, TagStatus.MISSING)
        return TagResult(tag, TagStatus.LOCAL_ONLY)

    return job


def _to_result(tag: str, outcome: Outcome) -> TagResult:
    if outcome.ok:
        return outcome.value
    error = outcome.error
    message = error.stderr if isinstance(error, GitCommandError) else str(error)
    return TagResult(tag, TagStatus.FAILED, error=message or repr(error))


async def prune_tags(git: GitClient,
                     tags: Sequence[str],
                     concurrency: int,
                     on_result: Optional[Callable[[TagResult, int, int], None]] = None,
                     ) -> PruneReport:
    """
    Delete tags from the remote with bounded concurrency.

    :param git: Client for the target repository.
    :param tags: Tags to delete.
    :param concurrency: Maximum simultaneous git push processes.
    :param on_result: Optional callback(result, done, total) invoked as each
                     tag finishes.
    :return: PruneReport with one TagResult per tag.
    """
    tags = list(tags)
    report = PruneReport(total=len(tags), started_at=time.time())

    done = 0

    def record(outcome: Outcome) -> None:
        nonlocal done
        done += 1
        result = _to_result(tags[outcome.index], outcome)
        if result.status == TagStatus.FAILED:
            log.warning(f"[{done}/{report.total}] Failed to delete {result.tag}: {result.error}")
        else:
            log.info(f"[{done}/{report.total}] {result.tag}: {result.status.value}")
        if on_result:
            on_result(result, done, report.total)

    runner = BoundedTaskRunner(concurrency)
    batch = await runner.run_all([make_delete_job(git, tag) for tag in tags], on_outcome=record)

    # Built from the runner's outcomes so a failing on_result hook shows up as a failure
    report.results = [_to_result(tags[o.index], o) for o in batch.outcomes]
    report.finished_at = time.time()
    return report
