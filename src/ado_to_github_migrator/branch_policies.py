"""Migrate Azure DevOps branch policies to GitHub branch protection.

For every branch named by an enabled policy, the migrator checks that the branch
exists on GitHub, builds a full-fidelity protection descriptor and applies it. When
GitHub rejects the descriptor as invalid (typically because the plan lacks some of
the requested features), a basic descriptor is applied once instead.

Branches are processed one at a time. A failure on one branch is classified,
reported and counted; the remaining branches are still attempted, and the run only
fails after the summary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import ErrorKind, PlatformError, TargetApiError
from .outcome import MigrationOutcome, finish_run, log_summary
from .policy_transformer import BranchPolicyTransformer, Fidelity
from .utils import get_logger

if TYPE_CHECKING:
    from .models import BranchPolicy, BranchProtection, SourceRepository, TargetRepository
    from .protocols import SourcePlatform, TargetPlatform
    from .utils import MigrationLogger


class BranchPolicyMigrator:
    """Applies translated ADO branch policies to a GitHub repository."""

    _source: SourcePlatform
    _target: TargetPlatform
    _transformer: BranchPolicyTransformer
    _log: MigrationLogger

    def __init__(
        self,
        source: SourcePlatform,
        target: TargetPlatform,
        transformer: BranchPolicyTransformer | None = None,
        *,
        log: MigrationLogger | None = None,
    ) -> None:
        self._source = source
        self._target = target
        self._log = log or get_logger(__name__)
        self._transformer = transformer or BranchPolicyTransformer(log=self._log)

    def migrate(self, source: SourceRepository, target: TargetRepository) -> MigrationOutcome:
        """Migrate the branch policies of ``source`` onto ``target``.

        Returns:
            The outcome of every processed branch

        Raises:
            SourceApiError: If the repository or its policies cannot be read
            MigrationIncompleteError: After the summary, if any branch failed
        """
        log = self._log
        log.info("Migrating Branch Policies from Azure DevOps to GitHub...")
        log.info(f"Source: {source}")
        log.info(f"Target: {target}")
        log.info("")

        repo_id = self._source.get_repo_id(source.org, source.project, source.name)
        log.info(f"Found Azure DevOps repository (ID: {repo_id})")

        log.info("Fetching branch policies from Azure DevOps...")
        policies = self._source.get_branch_policies(source.org, source.project, repo_id)
        if not policies:
            log.warning("No branch policies found in Azure DevOps repository")
            log.info("Migration completed - nothing to migrate")
            return MigrationOutcome()

        log.success(f"Found {len(policies)} branch policy configuration(s) in Azure DevOps")

        branches = self._transformer.get_protected_branches(policies)
        if not branches:
            log.warning("No specific branches with policies found (only wildcard patterns detected)")
            log.info("Please configure GitHub repository rulesets manually for pattern-based protection")
            return MigrationOutcome()

        log.info(f"Found {len(branches)} branch(es) with protection policies:")
        for branch in branches:
            log.info(f"  - {branch}")
        log.info("")

        outcome = MigrationOutcome()
        for branch in branches:
            outcome = self._migrate_branch(branch, policies, target, outcome)
            log.info("")

        log_summary(outcome, "branch(es)", log)
        log.info("Note: Some Azure DevOps policies cannot be directly mapped to GitHub:")
        log.info("  - Work item linking - No GitHub equivalent")
        log.info("  - Merge strategies - Configure in GitHub repository settings")
        log.info("  - Wildcard branch patterns - Use GitHub repository rulesets")
        log.info("")

        finish_run(outcome, "Branch policy migration", log)
        return outcome

    def _migrate_branch(
        self,
        branch: str,
        policies: list[BranchPolicy],
        target: TargetRepository,
        outcome: MigrationOutcome,
    ) -> MigrationOutcome:
        """Process a single branch and fold its result into ``outcome``."""
        log = self._log
        log.info(f"Processing branch: {branch}")

        try:
            try:
                self._target.get_branch(target.owner, target.name, branch)
            except TargetApiError as e:
                if e.kind is not ErrorKind.NOT_FOUND:
                    raise
                log.warning(f"  Branch '{branch}' does not exist in GitHub repository - skipping")
                log.verbose(f"     Error details: {e}")
                return outcome.skipped(branch, "branch missing on GitHub")

            branch_policies = self._transformer.get_policies_for_branch(policies, branch)
            protection = self._transformer.transform_policies(branch_policies, branch, Fidelity.FULL)
            if protection is None:
                log.warning(f"  No protection rules generated for branch '{branch}' - skipping")
                return outcome.skipped(branch, "no protection rules")

            self._warn_if_already_protected(target, branch)

            fidelity = self._apply_with_fallback(target, branch, branch_policies, protection)
        except PlatformError as e:
            first_plan_limitation = not outcome.failures_of(ErrorKind.PLAN_LIMITATION)
            self._report_failure(branch, e.kind, e, target, first_plan_limitation=first_plan_limitation)
            return outcome.failed(branch, e.kind, str(e))
        except Exception as e:
            log.error(f"  Unexpected error migrating branch '{branch}'")
            log.error(f"     {e}")
            log.verbose(f"     Exception type: {type(e).__name__}", exc_info=True)
            return outcome.failed(branch, ErrorKind.UNEXPECTED, str(e))

        return outcome.succeeded(branch, fidelity.value)

    def _warn_if_already_protected(self, target: TargetRepository, branch: str) -> None:
        try:
            existing = self._target.get_branch_protection(target.owner, target.name, branch)
        except TargetApiError as e:
            self._log.verbose(f"  Unable to check existing protection: {e}")
            return
        if existing is not None:
            self._log.warning(f"  Branch protection already exists for '{branch}' - will be updated")

    def _apply_with_fallback(
        self,
        target: TargetRepository,
        branch: str,
        branch_policies: list[BranchPolicy],
        protection: BranchProtection,
    ) -> Fidelity:
        """Apply ``protection``; retry once with basic fidelity if GitHub rejects it as invalid.

        Returns:
            The fidelity that was applied

        Raises:
            TargetApiError: The original error when no basic descriptor exists,
                or the error of the basic attempt
        """
        fidelity = Fidelity.FULL
        while True:
            try:
                self._target.update_branch_protection(target.owner, target.name, branch, protection)
            except TargetApiError as e:
                if e.kind is not ErrorKind.INVALID_CONFIGURATION or fidelity is Fidelity.BASIC:
                    raise
                self._log.warning("  Advanced protection features not available - applying basic protection")
                self._log.verbose(f"     Error: {e}")
                basic = self._transformer.transform_policies(branch_policies, branch, Fidelity.BASIC)
                if basic is None:
                    raise
                fidelity, protection = Fidelity.BASIC, basic
                continue

            if fidelity is Fidelity.BASIC:
                self._log.success(f"  Basic branch protection applied to '{branch}' (GitHub Free)")
            else:
                self._log.success(f"  Branch protection applied to '{branch}'")
            return fidelity

    def _report_failure(
        self,
        branch: str,
        kind: ErrorKind,
        error: Exception,
        target: TargetRepository,
        *,
        first_plan_limitation: bool,
    ) -> None:
        log = self._log
        match kind:
            case ErrorKind.PLAN_LIMITATION if first_plan_limitation:
                log.error("  GitHub Plan Limitation Detected")
                log.error("     Branch protection requires GitHub Pro/Team/Enterprise for private repositories.")
                log.error("")
                log.error("     Solutions:")
                log.error("     1. Make the repository public (Settings -> Danger Zone -> Change visibility)")
                log.error("     2. Upgrade to GitHub Team or Enterprise Cloud")
                log.error("")
                log.error("     See: https://docs.github.com/get-started/learning-about-github/githubs-plans")
            case ErrorKind.PLAN_LIMITATION:
                log.error(f"  Branch '{branch}' - same plan limitation")
            case ErrorKind.PERMISSION_DENIED:
                log.error("  Permission Denied")
                log.error("     Your GitHub PAT lacks permission to set branch protection.")
                log.error("     Ensure your PAT has:")
                log.error("     - 'repo' scope (full control of private repositories)")
                log.error(f"     - Admin access to the {target.full_name} repository")
                log.verbose(f"     Error details: {error}")
            case ErrorKind.NOT_FOUND:
                log.error("  Branch or repository not found")
                log.error(f"     {error}")
            case ErrorKind.INVALID_CONFIGURATION:
                log.error("  Invalid branch protection configuration")
                log.error(f"     {error}")
                log.verbose("     This may indicate an unsupported combination of protection settings.")
            case ErrorKind.RATE_LIMITED:
                log.error("  Rate limit exceeded")
                log.error("     GitHub API rate limit reached. Please wait and try again later.")
                log.verbose(f"     Error details: {error}")
            case ErrorKind.NETWORK:
                log.error("  Network or HTTP error")
                log.error(f"     Failed to communicate with the API: {error}")
                log.verbose(f"     Full error: {error!r}")
            case _:
                log.error(f"  Unexpected error migrating branch '{branch}'")
                log.error(f"     {error}")
                log.verbose(f"     Exception type: {type(error).__name__}", exc_info=error)
