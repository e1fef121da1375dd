"""Recreate Azure DevOps pull requests on GitHub.

GitHub's repository migration carries active and completed pull requests but drops
abandoned ones. This module recreates the selected pull requests after the
repository itself has been migrated, keeping the original author, dates and
discussion as text, and closes the ones that were no longer open in ADO.

Recreated pull requests carry no link back to their source that could be queried,
so running the migration twice over the same selection creates duplicates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .exceptions import ErrorKind, MissingBranchesError, PlatformError
from .models import PullRequestStatus
from .outcome import MigrationOutcome, finish_run, log_summary
from .pull_request_builder import (
    build_pr_body,
    build_pr_title,
    format_comment,
    get_branch_name,
    should_close_pr,
    should_migrate_pr,
)
from .utils import get_logger

if TYPE_CHECKING:
    from .models import PullRequest, SourceRepository, TargetRepository
    from .protocols import SourcePlatform, TargetPlatform
    from .utils import MigrationLogger

DEFAULT_ADO_BASE_URL: Final[str] = "https://dev.azure.com"


@dataclass(frozen=True)
class PullRequestMigrationOptions:
    """Which pull requests to migrate and how."""

    include_abandoned: bool = True
    include_completed: bool = False
    include_active: bool = False
    skip_comments: bool = False
    labels: tuple[str, ...] = ()
    source_base_url: str = DEFAULT_ADO_BASE_URL


class PullRequestMigrator:
    """Recreates selected ADO pull requests in a GitHub repository."""

    _source: SourcePlatform
    _target: TargetPlatform
    _log: MigrationLogger

    def __init__(self, source: SourcePlatform, target: TargetPlatform, *, log: MigrationLogger | None = None) -> None:
        self._source = source
        self._target = target
        self._log = log or get_logger(__name__)

    def migrate(
        self,
        source: SourceRepository,
        target: TargetRepository,
        options: PullRequestMigrationOptions | None = None,
    ) -> MigrationOutcome:
        """Recreate the pull requests of ``source`` selected by ``options`` on ``target``.

        Raises:
            SourceApiError: If the repository or its pull requests cannot be read
            MigrationIncompleteError: After the summary, if any pull request failed
        """
        options = options or PullRequestMigrationOptions()
        log = self._log
        log.info("Migrating Pull Requests from Azure DevOps to GitHub...")
        log.info(f"Source: {source}")
        log.info(f"Target: {target}")
        log.info("")

        repo_id = self._source.get_repo_id(source.org, source.project, source.name)
        log.info(f"Found Azure DevOps repository (ID: {repo_id})")

        log.info("Fetching pull requests from Azure DevOps...")
        all_prs = self._source.get_pull_requests(source.org, source.project, repo_id, "all")

        selected = [
            pr
            for pr in all_prs
            if should_migrate_pr(
                pr,
                include_abandoned=options.include_abandoned,
                include_completed=options.include_completed,
                include_active=options.include_active,
            )
        ]

        if not selected:
            log.warning("No pull requests match the specified criteria")
            log.info(f"Total PRs found: {len(all_prs)}")
            for status in (PullRequestStatus.ABANDONED, PullRequestStatus.COMPLETED, PullRequestStatus.ACTIVE):
                count = sum(1 for pr in all_prs if pr.status.lower() == status)
                log.info(f"  - {status.capitalize()}: {count}")
            return MigrationOutcome()

        log.success(f"Found {len(selected)} pull request(s) to migrate")
        log.info("")

        source_org_url = f"{options.source_base_url.rstrip('/')}/{source.org}/{source.project}"

        outcome = MigrationOutcome()
        for pr in selected:
            outcome = self._migrate_pull_request(pr, repo_id, source, target, options, source_org_url, outcome)
            log.info("")

        log_summary(outcome, "PR(s)", log)
        log.info("Note: Migrated PRs have new timestamps and PR numbers in GitHub.")
        log.info("Original metadata is preserved in the PR description.")
        log.info("")

        finish_run(outcome, "Pull request migration", log)
        return outcome

    def _migrate_pull_request(
        self,
        pr: PullRequest,
        repo_id: str,
        source: SourceRepository,
        target: TargetRepository,
        options: PullRequestMigrationOptions,
        source_org_url: str,
        outcome: MigrationOutcome,
    ) -> MigrationOutcome:
        """Process a single pull request and fold its result into ``outcome``."""
        log = self._log
        item = f"PR #{pr.id}"
        log.info(f"Processing PR #{pr.id}: {pr.title}")
        log.info(f"  Status: {pr.status}")

        try:
            source_branch = get_branch_name(pr.source_ref_name)
            target_branch = get_branch_name(pr.target_ref_name)
            log.verbose(f"  Source: {source_branch} -> Target: {target_branch}")

            if not source_branch or not target_branch:
                log.warning("  Invalid branch names - skipping")
                return outcome.skipped(item, "invalid branch names")

            try:
                number = self._target.create_pull_request(
                    target.owner,
                    target.name,
                    build_pr_title(pr),
                    build_pr_body(pr, source_org_url),
                    source_branch,
                    target_branch,
                )
            except MissingBranchesError as e:
                log.warning("  Branches don't exist in GitHub - skipping")
                log.verbose(f"     {e}")
                return outcome.skipped(item, "branches missing on GitHub")

            log.success(f"  Created GitHub PR #{number}")

            if options.labels:
                self._target.add_labels(target.owner, target.name, number, options.labels)
                log.info(f"  Added label(s): {', '.join(options.labels)}")

            if not options.skip_comments:
                self._migrate_comments(pr, repo_id, source, target, number)

            if should_close_pr(pr):
                self._target.close_pull_request(target.owner, target.name, number)
                log.info(f"  Closed PR (was {pr.status} in ADO)")
        except PlatformError as e:
            self._report_failure(e.kind, e)
            return outcome.failed(item, e.kind, str(e))
        except Exception as e:
            log.error(f"  Unexpected error: {e}")
            log.verbose(f"     {type(e).__name__}", exc_info=True)
            return outcome.failed(item, ErrorKind.UNEXPECTED, str(e))

        return outcome.succeeded(item, f"GitHub PR #{number}")

    def _migrate_comments(
        self,
        pr: PullRequest,
        repo_id: str,
        source: SourceRepository,
        target: TargetRepository,
        number: int,
    ) -> None:
        """Copy every non-empty comment; a failure here only produces a warning."""
        try:
            threads = self._source.get_pull_request_threads(source.org, source.project, repo_id, pr.id)
            comment_count = 0
            for thread in threads:
                for comment in thread.comments:
                    if not comment.content or not comment.content.strip():
                        continue
                    self._target.create_pull_request_comment(target.owner, target.name, number, format_comment(comment))
                    comment_count += 1
        except Exception as e:
            self._log.warning(f"  Failed to migrate comments: {e}")
            self._log.verbose("     Comment migration error", exc_info=True)
            return

        if comment_count:
            self._log.info(f"  Migrated {comment_count} comment(s)")

    def _report_failure(self, kind: ErrorKind, error: Exception) -> None:
        log = self._log
        match kind:
            case ErrorKind.PERMISSION_DENIED:
                log.error("  Permission Denied")
                log.error("     Ensure your GitHub PAT has 'repo' scope and write access")
                log.verbose(f"     {error}")
            case ErrorKind.PLAN_LIMITATION:
                log.error(f"  GitHub plan limitation: {error}")
            case ErrorKind.NOT_FOUND:
                log.error(f"  Repository or pull request not found: {error}")
            case ErrorKind.INVALID_CONFIGURATION:
                log.error(f"  GitHub rejected the request: {error}")
            case ErrorKind.RATE_LIMITED:
                log.error("  Rate limit exceeded")
                log.error("     GitHub API rate limit reached. Please wait and try again later.")
                log.verbose(f"     {error}")
            case ErrorKind.NETWORK:
                log.error(f"  Network error: {error}")
            case _:
                log.error(f"  Unexpected error: {error}")
                log.verbose(f"     {type(error).__name__}", exc_info=error)
