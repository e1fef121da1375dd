"""Per-run outcome record and the summary/verdict derived from it.

Orchestrators fold each processed item into an immutable ``MigrationOutcome``.
Everything printed after the loop, and whether the run fails, is a function of
that record alone.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .exceptions import ErrorKind, MigrationIncompleteError

if TYPE_CHECKING:
    from .utils import MigrationLogger

_SEPARATOR = "=" * 60


class ItemStatus(Enum):
    SUCCEEDED = "succeeded"
    SKIPPED = "skipped"
    FAILED = "failed"


class RunVerdict(Enum):
    """Overall result of a run."""

    SUCCESS = "success"
    PARTIAL_FAILURE = "partial-failure"
    FAILURE = "failure"
    NOTHING_MIGRATED = "nothing-migrated"
    EMPTY = "empty"


@dataclass(frozen=True)
class ItemResult:
    """What happened to a single branch or pull request."""

    item: str
    status: ItemStatus
    detail: str = ""
    error_kind: ErrorKind | None = None


@dataclass(frozen=True)
class MigrationOutcome:
    """Immutable record of every item processed in a run."""

    results: tuple[ItemResult, ...] = ()

    def record(self, result: ItemResult) -> MigrationOutcome:
        return MigrationOutcome(self.results + (result,))

    def succeeded(self, item: str, detail: str = "") -> MigrationOutcome:
        return self.record(ItemResult(item, ItemStatus.SUCCEEDED, detail))

    def skipped(self, item: str, detail: str = "") -> MigrationOutcome:
        return self.record(ItemResult(item, ItemStatus.SKIPPED, detail))

    def failed(self, item: str, kind: ErrorKind, detail: str = "") -> MigrationOutcome:
        return self.record(ItemResult(item, ItemStatus.FAILED, detail, kind))

    def _count(self, status: ItemStatus) -> int:
        return sum(1 for r in self.results if r.status is status)

    @property
    def succeeded_count(self) -> int:
        return self._count(ItemStatus.SUCCEEDED)

    @property
    def skipped_count(self) -> int:
        return self._count(ItemStatus.SKIPPED)

    @property
    def failed_count(self) -> int:
        return self._count(ItemStatus.FAILED)

    def failures_of(self, kind: ErrorKind) -> int:
        return sum(1 for r in self.results if r.status is ItemStatus.FAILED and r.error_kind is kind)


def verdict(outcome: MigrationOutcome) -> RunVerdict:
    """Classify a finished run."""
    if outcome.failed_count:
        return RunVerdict.PARTIAL_FAILURE if outcome.succeeded_count else RunVerdict.FAILURE
    if outcome.succeeded_count:
        return RunVerdict.SUCCESS
    if outcome.skipped_count:
        return RunVerdict.NOTHING_MIGRATED
    return RunVerdict.EMPTY


def log_summary(outcome: MigrationOutcome, unit: str, log: MigrationLogger) -> None:
    """Emit the success/skip/failure counts of a run."""
    log.info(_SEPARATOR)
    log.info("Migration Summary:")
    log.success(f"  Successfully migrated: {outcome.succeeded_count} {unit}")
    if outcome.skipped_count:
        log.warning(f"  Skipped: {outcome.skipped_count} {unit}")
    if outcome.failed_count:
        log.error(f"  Failed: {outcome.failed_count} {unit}")
    log.info(_SEPARATOR)
    log.info("")


def finish_run(outcome: MigrationOutcome, what: str, log: MigrationLogger) -> None:
    """Report the run verdict, raising if any item failed.

    Args:
        outcome: Record of the finished run
        what: Human-readable name of the run, e.g. "Branch policy migration"
        log: Logger for the verdict message

    Raises:
        MigrationIncompleteError: If at least one item failed
    """
    result = verdict(outcome)

    if result is RunVerdict.SUCCESS:
        log.success(f"{what} completed successfully!")
    elif result is RunVerdict.NOTHING_MIGRATED:
        log.warning(f"Nothing was migrated. All {outcome.skipped_count} item(s) were skipped (see reasons above).")
    elif result is RunVerdict.PARTIAL_FAILURE:
        log.warning(f"{what} completed with errors. Some items were migrated successfully.")
        msg = f"Migration partially completed: {outcome.succeeded_count} succeeded, {outcome.failed_count} failed"
        raise MigrationIncompleteError(msg, outcome)
    elif result is RunVerdict.FAILURE:
        if outcome.failures_of(ErrorKind.PLAN_LIMITATION):
            msg = f"{what} failed due to GitHub plan limitations. See solutions above."
        else:
            msg = f"{what} failed - see errors above"
        raise MigrationIncompleteError(msg, outcome)
