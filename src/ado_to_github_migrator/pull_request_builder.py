"""Build GitHub pull request text from Azure DevOps pull request data."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import PullRequestStatus, strip_refs_heads

if TYPE_CHECKING:
    import datetime as dt

    from .models import Comment, PullRequest

_UNKNOWN = "Unknown"


def format_timestamp(value: dt.datetime | None, *, with_seconds: bool = True) -> str:
    """Format a timestamp as UTC, e.g. "2024-01-15 10:30:45 UTC" or "2024-01-15 10:30".

    Returns "unknown" when the value is missing.
    """
    if value is None:
        return "unknown"
    if with_seconds:
        return value.strftime("%Y-%m-%d %H:%M:%S") + " UTC"
    return value.strftime("%Y-%m-%d %H:%M")


def should_migrate_pr(
    pr: PullRequest,
    *,
    include_abandoned: bool,
    include_completed: bool,
    include_active: bool,
) -> bool:
    """Decide from its status whether a pull request is selected. Unknown statuses never are."""
    selection = {
        PullRequestStatus.ABANDONED: include_abandoned,
        PullRequestStatus.COMPLETED: include_completed,
        PullRequestStatus.ACTIVE: include_active,
    }
    return selection.get(pr.status.lower(), False)


def should_close_pr(pr: PullRequest) -> bool:
    """Abandoned and completed pull requests are closed after recreation."""
    return pr.status.lower() in (PullRequestStatus.ABANDONED, PullRequestStatus.COMPLETED)


def get_branch_name(ref_name: str | None) -> str | None:
    """Extract the branch name from an ADO ref such as ``refs/heads/main``."""
    if not ref_name:
        return None
    return strip_refs_heads(ref_name)


def build_pr_title(pr: PullRequest) -> str:
    return f"[ADO #{pr.id}] {pr.title}"


def build_pr_link(pr: PullRequest, source_org_url: str) -> str:
    """Web URL of the original pull request, falling back to its API URL."""
    if pr.repository_name:
        return f"{source_org_url.rstrip('/')}/_git/{pr.repository_name}/pullrequest/{pr.id}"
    return pr.url


def build_pr_body(pr: PullRequest, source_org_url: str) -> str:
    """Build the GitHub pull request body with a migration header.

    Args:
        pr: Azure DevOps pull request
        source_org_url: Base URL of the ADO project, e.g. "https://dev.azure.com/org/project"

    Returns:
        Complete pull request body for GitHub
    """
    author = pr.created_by
    display_name = (author.display_name if author else None) or _UNKNOWN
    unique_name = (author.unique_name if author else None) or _UNKNOWN

    body = "---\n"
    body += "**Migrated from Azure DevOps**\n"
    body += f"- **Original PR**: [#{pr.id}]({build_pr_link(pr, source_org_url)})\n"
    body += f"- **Created by**: {display_name} ({unique_name})\n"
    body += f"- **Created on**: {format_timestamp(pr.creation_date)}\n"
    if pr.closed_date is not None:
        body += f"- **Closed on**: {format_timestamp(pr.closed_date)}\n"
    body += f"- **Status**: {pr.status}\n"
    body += "---\n\n"

    if pr.description and pr.description.strip():
        body += "## Original Description\n\n"
        body += f"{pr.description}\n"
    else:
        body += "*No description provided in original PR*\n"
    return body


def format_comment(comment: Comment) -> str:
    """Format an ADO comment with its original author and date."""
    author = (comment.author.display_name if comment.author else None) or _UNKNOWN
    published = format_timestamp(comment.published_date, with_seconds=False)
    return f"**Comment by {author}** _{published}_\n\n{comment.content or '*No content*'}\n"
