"""Protocols defining the contracts for the source and target platforms.

The orchestrators in ``branch_policies`` and ``pull_requests`` only talk to these
protocols, so they can be driven by the real clients (``ado_utils``,
``github_utils``) or by test doubles.

Implementations convert every failure into a ``PlatformError`` subclass carrying an
``ErrorKind``; the orchestrators never inspect error text.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .models import BranchPolicy, BranchProtection, CommentThread, PullRequest


class SourcePlatform(Protocol):
    """Read access to an Azure DevOps repository.

    Raises:
        SourceApiError: From every method, on API or transport failure
    """

    def get_repo_id(self, org: str, project: str, repo: str) -> str:
        """Resolve a repository name to its ADO repository id."""
        ...

    def get_branch_policies(self, org: str, project: str, repo_id: str) -> list[BranchPolicy]:
        """Return every branch policy configured for the repository, enabled or not."""
        ...

    def get_pull_requests(self, org: str, project: str, repo_id: str, status: str = "all") -> list[PullRequest]:
        """Return the repository's pull requests with the given status filter."""
        ...

    def get_pull_request_threads(self, org: str, project: str, repo_id: str, pr_id: int) -> list[CommentThread]:
        """Return the discussion threads of a pull request."""
        ...


class TargetPlatform(Protocol):
    """Write access to a GitHub repository.

    Raises:
        TargetApiError: From every method, on API or transport failure
    """

    def get_branch(self, owner: str, repo: str, branch: str) -> object:
        """Return the branch; raises TargetApiError (NOT_FOUND) if it does not exist."""
        ...

    def get_branch_protection(self, owner: str, repo: str, branch: str) -> object | None:
        """Return the current protection of the branch, or None if unprotected."""
        ...

    def update_branch_protection(self, owner: str, repo: str, branch: str, protection: BranchProtection) -> None:
        """Create or replace the protection of a branch."""
        ...

    def create_pull_request(self, owner: str, repo: str, title: str, body: str, head: str, base: str) -> int:
        """Open a pull request and return its number.

        Raises:
            MissingBranchesError: If ``head`` or ``base`` does not exist
        """
        ...

    def add_labels(self, owner: str, repo: str, number: int, labels: Sequence[str]) -> None:
        """Attach labels to a pull request."""
        ...

    def create_pull_request_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        """Post a conversation comment on a pull request."""
        ...

    def close_pull_request(self, owner: str, repo: str, number: int) -> None:
        """Close a pull request without merging."""
        ...
