"""Tests for the run outcome record and verdict."""

from __future__ import annotations

import logging

import pytest

from ado_to_github_migrator.exceptions import ErrorKind, MigrationIncompleteError
from ado_to_github_migrator.outcome import (
    ItemStatus,
    MigrationOutcome,
    RunVerdict,
    finish_run,
    log_summary,
    verdict,
)
from ado_to_github_migrator.utils import get_logger


@pytest.mark.unit
class TestMigrationOutcome:
    def test_folding_returns_new_records(self) -> None:
        empty = MigrationOutcome()
        one = empty.succeeded("main", "full")
        two = one.failed("dev", ErrorKind.PERMISSION_DENIED, "denied")

        assert empty.results == ()
        assert len(one.results) == 1
        assert [r.status for r in two.results] == [ItemStatus.SUCCEEDED, ItemStatus.FAILED]
        assert two.results[1].error_kind is ErrorKind.PERMISSION_DENIED

    def test_counts(self) -> None:
        outcome = (
            MigrationOutcome()
            .succeeded("a")
            .skipped("b")
            .failed("c", ErrorKind.PLAN_LIMITATION)
            .failed("d", ErrorKind.PLAN_LIMITATION)
            .failed("e", ErrorKind.NETWORK)
        )

        assert outcome.succeeded_count == 1
        assert outcome.skipped_count == 1
        assert outcome.failed_count == 3
        assert outcome.failures_of(ErrorKind.PLAN_LIMITATION) == 2
        assert outcome.failures_of(ErrorKind.NOT_FOUND) == 0


@pytest.mark.unit
class TestVerdict:
    @pytest.mark.parametrize(
        ("outcome", "expected"),
        [
            (MigrationOutcome(), RunVerdict.EMPTY),
            (MigrationOutcome().skipped("a"), RunVerdict.NOTHING_MIGRATED),
            (MigrationOutcome().succeeded("a").skipped("b"), RunVerdict.SUCCESS),
            (MigrationOutcome().succeeded("a").failed("b", ErrorKind.NETWORK), RunVerdict.PARTIAL_FAILURE),
            (MigrationOutcome().skipped("a").failed("b", ErrorKind.NETWORK), RunVerdict.FAILURE),
        ],
    )
    def test_verdict(self, outcome: MigrationOutcome, expected: RunVerdict) -> None:
        assert verdict(outcome) is expected


@pytest.mark.unit
class TestFinishRun:
    def setup_method(self) -> None:
        self.log = get_logger("test.outcome")

    def test_success_logs_completion(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO):
            finish_run(MigrationOutcome().succeeded("a"), "Branch policy migration", self.log)
        assert "Branch policy migration completed successfully!" in caplog.text

    def test_empty_run_does_not_raise(self) -> None:
        finish_run(MigrationOutcome(), "Branch policy migration", self.log)

    def test_partial_failure_raises_with_counts(self) -> None:
        outcome = MigrationOutcome().succeeded("a").failed("b", ErrorKind.NETWORK)

        with pytest.raises(MigrationIncompleteError, match="1 succeeded, 1 failed") as exc_info:
            finish_run(outcome, "Pull request migration", self.log)

        assert exc_info.value.outcome is outcome

    def test_total_failure_message(self) -> None:
        outcome = MigrationOutcome().failed("a", ErrorKind.PERMISSION_DENIED)

        with pytest.raises(MigrationIncompleteError, match="Pull request migration failed - see errors above"):
            finish_run(outcome, "Pull request migration", self.log)

    def test_total_failure_with_plan_limitation_mentions_plan(self) -> None:
        outcome = MigrationOutcome().failed("a", ErrorKind.PERMISSION_DENIED).failed("b", ErrorKind.PLAN_LIMITATION)

        with pytest.raises(MigrationIncompleteError, match="GitHub plan limitations"):
            finish_run(outcome, "Branch policy migration", self.log)


@pytest.mark.unit
class TestLogSummary:
    def test_only_nonzero_skip_and_failure_lines(self, caplog: pytest.LogCaptureFixture) -> None:
        log = get_logger("test.outcome")

        with caplog.at_level(logging.INFO):
            log_summary(MigrationOutcome().succeeded("a").succeeded("b"), "branch(es)", log)

        assert "Successfully migrated: 2 branch(es)" in caplog.text
        assert "Skipped" not in caplog.text
        assert "Failed" not in caplog.text

    def test_success_level_is_named(self, caplog: pytest.LogCaptureFixture) -> None:
        log = get_logger("test.outcome")

        with caplog.at_level(logging.INFO):
            log_summary(MigrationOutcome().skipped("a"), "PR(s)", log)

        levels = {record.message.strip(): record.levelname for record in caplog.records}
        assert levels["Successfully migrated: 0 PR(s)"] == "SUCCESS"
        assert levels["Skipped: 1 PR(s)"] == "WARNING"
