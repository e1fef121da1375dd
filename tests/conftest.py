"""
Pytest configuration and fixtures.

Factories build source records the way the Azure DevOps REST API returns them,
so tests exercise the same ``from_api`` parsing the real client uses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import Mock

import pytest

from ado_to_github_migrator.models import BranchPolicy, PolicyKind, PullRequest, SourceRepository, TargetRepository

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture
def make_policy() -> Callable[..., BranchPolicy]:
    """Factory for branch policies scoped to ``refs/heads/main`` by default."""
    counter = iter(range(1, 10_000))

    def _make(
        kind: PolicyKind = PolicyKind.MINIMUM_REVIEWERS,
        *,
        enabled: bool = True,
        refs: tuple[str, ...] = ("refs/heads/main",),
        type_id: str | None = None,
        type_display_name: str = "",
        **settings: Any,
    ) -> BranchPolicy:
        data: dict[str, Any] = {
            "id": next(counter),
            "isEnabled": enabled,
            "type": {"id": type_id or kind.value, "displayName": type_display_name},
            "settings": {
                **settings,
                "scope": [{"refName": ref, "matchKind": "Exact", "repositoryId": "repo-id"} for ref in refs],
            },
        }
        return BranchPolicy.from_api(data)

    return _make


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    """Factory for pull requests as returned by the ADO pull requests endpoint."""

    def _make(pr_id: int = 1, status: str = "abandoned", **overrides: Any) -> PullRequest:
        data: dict[str, Any] = {
            "pullRequestId": pr_id,
            "title": f"PR {pr_id}",
            "description": "Some description",
            "status": status,
            "createdBy": {"displayName": "Jane Doe", "uniqueName": "jane@example.com", "id": "u1"},
            "creationDate": "2024-01-15T10:30:45.1234567Z",
            "closedDate": "2024-01-16T08:00:00Z" if status != "active" else None,
            "sourceRefName": "refs/heads/feature/x",
            "targetRefName": "refs/heads/main",
            "url": f"https://dev.azure.com/org/project/_apis/git/repositories/rid/pullRequests/{pr_id}",
            "repository": {"id": "rid", "name": "repo"},
        }
        data.update(overrides)
        return PullRequest.from_api(data)

    return _make


@pytest.fixture
def source_repo() -> SourceRepository:
    return SourceRepository("org", "project", "repo")


@pytest.fixture
def target_repo() -> TargetRepository:
    return TargetRepository("gh-org", "gh-repo")


@pytest.fixture
def source_platform() -> Mock:
    source = Mock()
    source.get_repo_id.return_value = "rid"
    source.get_branch_policies.return_value = []
    source.get_pull_requests.return_value = []
    source.get_pull_request_threads.return_value = []
    return source


@pytest.fixture
def target_platform() -> Mock:
    target = Mock()
    target.get_branch_protection.return_value = None
    target.create_pull_request.return_value = 101
    return target
