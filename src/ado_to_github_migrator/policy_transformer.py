"""Translate Azure DevOps branch policies into GitHub branch protection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Final

from .models import (
    BranchProtection,
    PolicyKind,
    RequiredPullRequestReviews,
    RequiredStatusChecks,
    strip_refs_heads,
)
from .utils import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .models import BranchPolicy
    from .utils import MigrationLogger

_WILDCARD: Final[str] = "*"


class Fidelity(Enum):
    """Output profile of a protection descriptor.

    BASIC leaves out everything GitHub only accepts on paid plans for private
    repositories, and forces a single required approval.
    """

    FULL = "full"
    BASIC = "basic"


@dataclass(frozen=True)
class ReviewCountLimits:
    """Bounds for GitHub's required approving review count."""

    minimum: int = 1
    maximum: int = 6
    default: int = 1

    def clamp(self, count: int) -> int:
        return max(self.minimum, min(self.maximum, count))


class BranchPolicyTransformer:
    """Builds GitHub branch protection descriptors from ADO branch policies."""

    _log: MigrationLogger
    _limits: ReviewCountLimits

    def __init__(self, *, limits: ReviewCountLimits | None = None, log: MigrationLogger | None = None) -> None:
        self._limits = limits or ReviewCountLimits()
        self._log = log or get_logger(__name__)

    def transform_policies(
        self,
        policies: Iterable[BranchPolicy],
        branch_name: str,
        fidelity: Fidelity = Fidelity.FULL,
    ) -> BranchProtection | None:
        """Transform the policies of one branch into a protection descriptor.

        Args:
            policies: Policies scoped to ``branch_name``; disabled ones are ignored
            branch_name: Branch the policies apply to, used in log messages
            fidelity: FULL for every mappable setting, BASIC for free-plan compatible output

        Returns:
            The descriptor, or None when there is nothing to apply
        """
        policies = list(policies)
        if not policies:
            self._log.warning(f"No branch policies found for branch '{branch_name}' in Azure DevOps")
            return None

        enabled = [p for p in policies if p.enabled]
        if not enabled:
            self._log.warning(f"No enabled branch policies found for branch '{branch_name}' in Azure DevOps")
            return None

        basic = fidelity is Fidelity.BASIC
        status_checks: list[str] = []
        has_reviewer_policy = False
        min_reviewers = 0
        dismiss_stale_reviews = False
        require_last_push_approval = False
        require_conversation_resolution = False

        for policy in enabled:
            settings = policy.settings
            match policy.kind:
                case PolicyKind.MINIMUM_REVIEWERS:
                    has_reviewer_policy = True
                    approvers = settings.minimum_approver_count
                    min_reviewers = max(min_reviewers, approvers if approvers is not None else self._limits.default)
                    if not basic:
                        dismiss_stale_reviews = dismiss_stale_reviews or bool(settings.reset_on_source_push)
                        require_last_push_approval = require_last_push_approval or bool(
                            settings.block_last_pusher_vote
                        )
                    self._log.info(f"  Minimum reviewer policy: {min_reviewers} approver(s) required")
                    if dismiss_stale_reviews:
                        self._log.info("  Dismiss stale reviews on new push")
                    if require_last_push_approval:
                        self._log.info("  Require approval from someone other than the last pusher")

                case PolicyKind.BUILD_VALIDATION:
                    build_name = settings.display_name or f"Build-{policy.id}"
                    if build_name not in status_checks:
                        status_checks.append(build_name)
                    self._log.info(f"  Build validation policy: '{build_name}' must pass")

                case PolicyKind.COMMENT_REQUIREMENTS:
                    require_conversation_resolution = True
                    if basic:
                        self._log.info("  Comment resolution (not available in basic protection)")
                    else:
                        self._log.info("  Comment resolution required")

                case PolicyKind.WORK_ITEM_LINKING:
                    self._log.warning("  Work item linking policy cannot be migrated (no GitHub equivalent)")

                case PolicyKind.MERGE_STRATEGY:
                    self._log.warning(
                        "  Merge strategy policy cannot be fully migrated (configure in repository settings)"
                    )

                case _:
                    self._log.warning(
                        f"  Unknown policy type '{policy.type_display_name}' (ID: {policy.type_id})"
                    )

        if basic and not has_reviewer_policy and not status_checks:
            self._log.warning("  No basic protection rules to apply (GitHub Free has limited features)")
            return None

        required_status_checks = RequiredStatusChecks(contexts=status_checks, strict=True) if status_checks else None

        reviews: RequiredPullRequestReviews | None = None
        if has_reviewer_policy:
            if basic:
                reviews = RequiredPullRequestReviews(required_approving_review_count=1)
            else:
                reviews = RequiredPullRequestReviews(
                    required_approving_review_count=self._limits.clamp(min_reviewers),
                    dismiss_stale_reviews=dismiss_stale_reviews,
                    require_last_push_approval=require_last_push_approval,
                )

        if basic:
            return BranchProtection(
                required_status_checks=required_status_checks,
                required_pull_request_reviews=reviews,
            )

        return BranchProtection(
            required_status_checks=required_status_checks,
            required_pull_request_reviews=reviews,
            required_linear_history=False,
            allow_force_pushes=False,
            allow_deletions=False,
            required_conversation_resolution=require_conversation_resolution,
        )

    def get_protected_branches(self, policies: Iterable[BranchPolicy]) -> list[str]:
        """Return the distinct branch names that enabled policies are scoped to.

        Wildcard scopes are left out: GitHub needs rulesets for pattern matching.
        """
        branches: dict[str, None] = {}

        for policy in policies:
            if not policy.enabled:
                continue
            for scope in policy.settings.scope:
                if not scope.ref_name:
                    continue
                branch_name = strip_refs_heads(scope.ref_name)
                if _WILDCARD in branch_name:
                    self._log.warning(
                        f"  Wildcard branch pattern '{branch_name}' will be skipped "
                        "(configure rulesets in GitHub for pattern matching)"
                    )
                    continue
                branches[branch_name] = None

        return list(branches)

    def get_policies_for_branch(self, policies: Iterable[BranchPolicy], branch_name: str) -> list[BranchPolicy]:
        """Return the enabled policies whose scope names ``branch_name`` (case-insensitive)."""
        candidates = {f"refs/heads/{branch_name}".lower(), branch_name.lower()}
        return [
            policy
            for policy in policies
            if policy.enabled
            and any(scope.ref_name is not None and scope.ref_name.lower() in candidates for scope in policy.settings.scope)
        ]
