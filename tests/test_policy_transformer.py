"""Tests for branch policy transformation."""

from __future__ import annotations

import logging

import pytest

from ado_to_github_migrator.models import PolicyKind
from ado_to_github_migrator.policy_transformer import BranchPolicyTransformer, Fidelity, ReviewCountLimits


@pytest.mark.unit
class TestTransformPolicies:
    def setup_method(self) -> None:
        self.transformer = BranchPolicyTransformer()

    def test_empty_policy_list_returns_none(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert self.transformer.transform_policies([], "main") is None
        assert "No branch policies found for branch 'main'" in caplog.text

    def test_only_disabled_policies_returns_none(self, make_policy) -> None:
        policies = [make_policy(enabled=False, minimumApproverCount=2), make_policy(PolicyKind.BUILD_VALIDATION, enabled=False)]
        assert self.transformer.transform_policies(policies, "main") is None
        assert self.transformer.transform_policies(policies, "main", Fidelity.BASIC) is None

    def test_reviewers_and_build_full_fidelity(self, make_policy) -> None:
        policies = [
            make_policy(minimumApproverCount=3),
            make_policy(PolicyKind.BUILD_VALIDATION, displayName="CI"),
        ]

        protection = self.transformer.transform_policies(policies, "main", Fidelity.FULL)

        assert protection is not None
        assert protection.required_pull_request_reviews is not None
        assert protection.required_pull_request_reviews.required_approving_review_count == 3
        assert protection.required_status_checks is not None
        assert protection.required_status_checks.contexts == ["CI"]
        assert protection.required_status_checks.strict is True
        assert protection.required_linear_history is False
        assert protection.allow_force_pushes is False
        assert protection.allow_deletions is False

    def test_reviewers_and_build_basic_fidelity(self, make_policy) -> None:
        policies = [
            make_policy(minimumApproverCount=3, resetOnSourcePush=True, blockLastPusherVote=True),
            make_policy(PolicyKind.BUILD_VALIDATION, displayName="CI"),
        ]

        protection = self.transformer.transform_policies(policies, "main", Fidelity.BASIC)

        assert protection is not None
        reviews = protection.required_pull_request_reviews
        assert reviews is not None
        assert reviews.required_approving_review_count == 1
        assert reviews.dismiss_stale_reviews is None
        assert reviews.require_last_push_approval is None
        assert protection.required_linear_history is None
        assert protection.allow_force_pushes is None
        assert protection.allow_deletions is None
        assert protection.required_conversation_resolution is None
        assert protection.required_status_checks is not None

    @pytest.mark.parametrize(
        ("counts", "expected"),
        [([2], 2), ([2, 5], 5), ([5, 3], 5), ([4, 9], 6), ([0], 1)],
    )
    def test_full_fidelity_review_count_is_clamped_maximum(self, make_policy, counts, expected) -> None:
        policies = [make_policy(minimumApproverCount=c) for c in counts]

        protection = self.transformer.transform_policies(policies, "main")

        assert protection is not None
        assert protection.required_pull_request_reviews is not None
        assert protection.required_pull_request_reviews.required_approving_review_count == expected

    def test_missing_approver_count_defaults_to_one(self, make_policy) -> None:
        protection = self.transformer.transform_policies([make_policy()], "main")

        assert protection is not None
        assert protection.required_pull_request_reviews is not None
        assert protection.required_pull_request_reviews.required_approving_review_count == 1

    def test_custom_review_count_limits(self, make_policy) -> None:
        transformer = BranchPolicyTransformer(limits=ReviewCountLimits(minimum=2, maximum=4, default=3))

        protection = transformer.transform_policies([make_policy(), make_policy(minimumApproverCount=10)], "main")

        assert protection is not None
        assert protection.required_pull_request_reviews is not None
        assert protection.required_pull_request_reviews.required_approving_review_count == 4

    def test_advanced_review_flags_are_or_ed_across_policies(self, make_policy) -> None:
        policies = [
            make_policy(minimumApproverCount=1, resetOnSourcePush=True),
            make_policy(minimumApproverCount=1, blockLastPusherVote=True),
            make_policy(minimumApproverCount=1, resetOnSourcePush=False),
        ]

        protection = self.transformer.transform_policies(policies, "main")

        assert protection is not None
        reviews = protection.required_pull_request_reviews
        assert reviews is not None
        assert reviews.dismiss_stale_reviews is True
        assert reviews.require_last_push_approval is True
        assert reviews.require_code_owner_reviews is False

    def test_build_without_display_name_uses_generated_context(self, make_policy) -> None:
        policy = make_policy(PolicyKind.BUILD_VALIDATION)

        protection = self.transformer.transform_policies([policy], "main")

        assert protection is not None
        assert protection.required_status_checks is not None
        assert protection.required_status_checks.contexts == [f"Build-{policy.id}"]

    def test_duplicate_build_contexts_are_collapsed(self, make_policy) -> None:
        policies = [
            make_policy(PolicyKind.BUILD_VALIDATION, displayName="CI"),
            make_policy(PolicyKind.BUILD_VALIDATION, displayName="Lint"),
            make_policy(PolicyKind.BUILD_VALIDATION, displayName="CI"),
        ]

        protection = self.transformer.transform_policies(policies, "main")

        assert protection is not None
        assert protection.required_status_checks is not None
        assert protection.required_status_checks.contexts == ["CI", "Lint"]

    def test_comment_requirements_full_and_basic(self, make_policy) -> None:
        policies = [make_policy(PolicyKind.COMMENT_REQUIREMENTS), make_policy(minimumApproverCount=2)]

        full = self.transformer.transform_policies(policies, "main")
        basic = self.transformer.transform_policies(policies, "main", Fidelity.BASIC)

        assert full is not None
        assert full.required_conversation_resolution is True
        assert basic is not None
        assert basic.required_conversation_resolution is None

    def test_status_checks_absent_without_build_policy(self, make_policy) -> None:
        protection = self.transformer.transform_policies([make_policy(minimumApproverCount=2)], "main")

        assert protection is not None
        assert protection.required_status_checks is None

    def test_reviews_absent_without_reviewer_policy(self, make_policy) -> None:
        protection = self.transformer.transform_policies(
            [make_policy(PolicyKind.BUILD_VALIDATION, displayName="CI")], "main"
        )

        assert protection is not None
        assert protection.required_pull_request_reviews is None

    @pytest.mark.parametrize(
        ("kind", "message"),
        [
            (PolicyKind.WORK_ITEM_LINKING, "Work item linking policy cannot be migrated"),
            (PolicyKind.MERGE_STRATEGY, "Merge strategy policy cannot be fully migrated"),
        ],
    )
    def test_unsupported_kinds_warn_without_effect(self, make_policy, caplog, kind, message) -> None:
        with caplog.at_level(logging.WARNING):
            protection = self.transformer.transform_policies([make_policy(kind)], "main")

        assert message in caplog.text
        # Full fidelity still returns a descriptor, only with the fixed fields
        assert protection is not None
        assert protection.required_status_checks is None
        assert protection.required_pull_request_reviews is None
        assert protection.required_conversation_resolution is False

    def test_unknown_kind_warns_with_type_identity(self, make_policy, caplog) -> None:
        policy = make_policy(type_id="11111111-2222-3333-4444-555555555555", type_display_name="Custom thing")

        with caplog.at_level(logging.WARNING):
            self.transformer.transform_policies([policy], "main")

        assert policy.kind is PolicyKind.UNKNOWN
        assert "Unknown policy type 'Custom thing' (ID: 11111111-2222-3333-4444-555555555555)" in caplog.text

    def test_basic_without_reviews_or_checks_returns_none(self, make_policy, caplog) -> None:
        policies = [make_policy(PolicyKind.COMMENT_REQUIREMENTS), make_policy(PolicyKind.WORK_ITEM_LINKING)]

        with caplog.at_level(logging.WARNING):
            assert self.transformer.transform_policies(policies, "main", Fidelity.BASIC) is None
        assert "No basic protection rules to apply" in caplog.text


@pytest.mark.unit
class TestGetProtectedBranches:
    def setup_method(self) -> None:
        self.transformer = BranchPolicyTransformer()

    def test_strips_refs_heads_prefix(self, make_policy) -> None:
        policies = [make_policy(refs=("refs/heads/main", "refs/heads/release/1.0"))]
        assert self.transformer.get_protected_branches(policies) == ["main", "release/1.0"]

    def test_bare_names_are_kept(self, make_policy) -> None:
        assert self.transformer.get_protected_branches([make_policy(refs=("develop",))]) == ["develop"]

    def test_wildcards_are_excluded_with_warning(self, make_policy, caplog) -> None:
        policies = [make_policy(refs=("refs/heads/release/*", "feature/*", "refs/heads/main"))]

        with caplog.at_level(logging.WARNING):
            branches = self.transformer.get_protected_branches(policies)

        assert branches == ["main"]
        assert "Wildcard branch pattern 'release/*' will be skipped" in caplog.text

    def test_deduplicates_across_policies(self, make_policy) -> None:
        policies = [
            make_policy(refs=("refs/heads/main",)),
            make_policy(PolicyKind.BUILD_VALIDATION, refs=("refs/heads/main", "main")),
        ]
        assert self.transformer.get_protected_branches(policies) == ["main"]

    def test_disabled_and_unscoped_policies_are_ignored(self, make_policy) -> None:
        policies = [make_policy(enabled=False, refs=("refs/heads/old",)), make_policy(refs=())]
        assert self.transformer.get_protected_branches(policies) == []


@pytest.mark.unit
class TestGetPoliciesForBranch:
    def setup_method(self) -> None:
        self.transformer = BranchPolicyTransformer()

    def test_matches_full_ref_and_bare_name_case_insensitively(self, make_policy) -> None:
        full_ref = make_policy(refs=("refs/heads/Main",))
        bare = make_policy(refs=("MAIN",))
        other = make_policy(refs=("refs/heads/develop",))
        disabled = make_policy(enabled=False, refs=("refs/heads/main",))

        result = self.transformer.get_policies_for_branch([full_ref, bare, other, disabled], "main")

        assert result == [full_ref, bare]

    def test_does_not_match_prefix_of_other_branch(self, make_policy) -> None:
        policy = make_policy(refs=("refs/heads/main-old",))
        assert self.transformer.get_policies_for_branch([policy], "main") == []
