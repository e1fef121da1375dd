from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Final, TypeVar

import requests
from github import Auth, Github, GithubException, RateLimitExceededException

from .exceptions import ErrorKind, MissingBranchesError, TargetApiError, kind_for_status
from .utils import get_token as _resolve_token

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from github.Branch import Branch
    from github.BranchProtection import BranchProtection as GithubBranchProtection
    from github.Repository import Repository

    from .models import BranchProtection

T = TypeVar("T")

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

TOKEN_ENV_VAR: Final[str] = "GH_PAT"  # noqa: S105
DEFAULT_API_URL: Final[str] = "https://api.github.com"

# Fragments of the 403 messages GitHub returns when the plan lacks branch protection
_PLAN_LIMITATION_MARKERS: Final[tuple[str, ...]] = ("github pro", "make this repository public", "upgrade to")


def get_token(cli_value: str | None = None) -> str:
    """Get the GitHub token from the command line or the GH_PAT environment variable."""
    return _resolve_token(cli_value, TOKEN_ENV_VAR, "GitHub")


def get_client(token: str, api_url: str | None = None) -> Github:
    """Get a GitHub client using the token."""
    return Github(auth=Auth.Token(token), base_url=(api_url or DEFAULT_API_URL).rstrip("/"))


def _exception_message(exc: GithubException) -> str:
    if isinstance(exc.data, dict) and exc.data.get("message"):
        return str(exc.data["message"])
    return str(exc.message or exc)


def classify_exception(exc: GithubException) -> ErrorKind:
    """Determine the error kind of a failed GitHub API call."""
    if isinstance(exc, RateLimitExceededException) or exc.status == 429:
        return ErrorKind.RATE_LIMITED

    if exc.status == 403:
        message = _exception_message(exc).lower()
        if any(marker in message for marker in _PLAN_LIMITATION_MARKERS):
            return ErrorKind.PLAN_LIMITATION
        if "rate limit" in message:
            return ErrorKind.RATE_LIMITED

    return kind_for_status(exc.status)


def _is_missing_branch_error(exc: GithubException) -> bool:
    """Check if a GithubException is a 422 complaining about the head or base branch."""
    if exc.status != 422 or not isinstance(exc.data, dict):
        return False
    errors: object = exc.data.get("errors")
    if not isinstance(errors, list):
        return False
    return any(isinstance(e, dict) and e.get("field") in ("head", "base") for e in errors)


class GitHubClient:
    """Writes branch protection and pull requests to GitHub repositories."""

    _client: Github
    _repos: dict[str, Repository]

    def __init__(self, client: Github) -> None:
        self._client = client
        self._repos = {}

    def _call(self, action: str, func: Callable[[], T]) -> T:
        """Run a PyGithub call, converting its failures into TargetApiError."""
        try:
            return func()
        except GithubException as e:
            msg = f"Failed to {action}: {e.status} {_exception_message(e)}"
            raise TargetApiError(msg, classify_exception(e), e.status) from e
        except requests.RequestException as e:
            msg = f"Failed to {action}: {e}"
            raise TargetApiError(msg, ErrorKind.NETWORK) from e

    def _repo(self, owner: str, repo: str) -> Repository:
        full_name = f"{owner}/{repo}"
        if full_name not in self._repos:
            self._repos[full_name] = self._call(
                f"get repository {full_name}", lambda: self._client.get_repo(full_name)
            )
        return self._repos[full_name]

    def get_branch(self, owner: str, repo: str, branch: str) -> Branch:
        github_repo = self._repo(owner, repo)
        return self._call(f"get branch '{branch}'", lambda: github_repo.get_branch(branch))

    def get_branch_protection(self, owner: str, repo: str, branch: str) -> GithubBranchProtection | None:
        github_branch = self.get_branch(owner, repo, branch)
        try:
            return self._call(f"get protection of '{branch}'", github_branch.get_protection)
        except TargetApiError as e:
            # 404 "Branch not protected"
            if e.kind is ErrorKind.NOT_FOUND:
                return None
            raise

    def update_branch_protection(self, owner: str, repo: str, branch: str, protection: BranchProtection) -> None:
        github_branch = self.get_branch(owner, repo, branch)
        kwargs: dict[str, Any] = protection.to_protection_kwargs()
        logger.debug(f"Applying protection to {owner}/{repo}@{branch}: {kwargs}")
        self._call(f"set protection of '{branch}'", lambda: github_branch.edit_protection(**kwargs))

    def create_pull_request(self, owner: str, repo: str, title: str, body: str, head: str, base: str) -> int:
        github_repo = self._repo(owner, repo)
        try:
            pull = github_repo.create_pull(title=title, body=body, head=head, base=base)
        except GithubException as e:
            if _is_missing_branch_error(e):
                msg = f"Failed to create pull request {head} -> {base}: branches may not exist in {owner}/{repo}"
                raise MissingBranchesError(msg, ErrorKind.NOT_FOUND, e.status) from e
            msg = f"Failed to create pull request {head} -> {base}: {e.status} {_exception_message(e)}"
            raise TargetApiError(msg, classify_exception(e), e.status) from e
        except requests.RequestException as e:
            msg = f"Failed to create pull request {head} -> {base}: {e}"
            raise TargetApiError(msg, ErrorKind.NETWORK) from e
        return pull.number

    def add_labels(self, owner: str, repo: str, number: int, labels: Sequence[str]) -> None:
        github_repo = self._repo(owner, repo)
        issue = self._call(f"get pull request #{number}", lambda: github_repo.get_issue(number))
        self._call(f"add labels to #{number}", lambda: issue.add_to_labels(*labels))

    def create_pull_request_comment(self, owner: str, repo: str, number: int, body: str) -> None:
        github_repo = self._repo(owner, repo)
        issue = self._call(f"get pull request #{number}", lambda: github_repo.get_issue(number))
        self._call(f"comment on #{number}", lambda: issue.create_comment(body))

    def close_pull_request(self, owner: str, repo: str, number: int) -> None:
        github_repo = self._repo(owner, repo)
        pull = self._call(f"get pull request #{number}", lambda: github_repo.get_pull(number))
        self._call(f"close #{number}", lambda: pull.edit(state="closed"))
