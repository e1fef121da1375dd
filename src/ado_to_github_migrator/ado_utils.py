"""Azure DevOps REST API access."""

from __future__ import annotations

import logging
from typing import Any, Final
from urllib.parse import quote

import requests

from .exceptions import ErrorKind, SourceApiError, kind_for_status
from .models import BranchPolicy, CommentThread, PullRequest
from .utils import get_token as _resolve_token

# Module-wide logger
logger: logging.Logger = logging.getLogger(__name__)

TOKEN_ENV_VAR: Final[str] = "ADO_PAT"  # noqa: S105
DEFAULT_BASE_URL: Final[str] = "https://dev.azure.com"
API_VERSION: Final[str] = "7.1"
_PAGE_SIZE: Final[int] = 100
_CONTINUATION_HEADER: Final[str] = "x-ms-continuationtoken"


def get_token(cli_value: str | None = None) -> str:
    """Get the ADO token from the command line or the ADO_PAT environment variable."""
    return _resolve_token(cli_value, TOKEN_ENV_VAR, "Azure DevOps")


class AzureDevOpsClient:
    """Read-only Azure DevOps client for repositories, branch policies and pull requests."""

    base_url: str
    session: requests.Session

    def __init__(self, token: str, base_url: str | None = None, *, session: requests.Session | None = None) -> None:
        self.base_url = (base_url or DEFAULT_BASE_URL).rstrip("/")
        self.session = session or requests.Session()
        # ADO accepts a PAT as the password of basic auth with an empty user name
        self.session.auth = ("", token)
        self.session.headers.update({"Accept": "application/json"})

    def _url(self, org: str, project: str, path: str) -> str:
        return f"{self.base_url}/{quote(org)}/{quote(project)}/_apis/{path}"

    def _get(self, url: str, params: dict[str, Any] | None = None) -> requests.Response:
        query: dict[str, Any] = {"api-version": API_VERSION} | (params or {})
        logger.debug(f"GET {url} {query}")
        try:
            response = self.session.get(url, params=query)
        except requests.RequestException as e:
            msg = f"Failed to reach Azure DevOps: {e}"
            raise SourceApiError(msg, ErrorKind.NETWORK) from e

        # An invalid PAT gets a 203 with the HTML sign-in page instead of a 401
        if response.status_code == 203:
            msg = "Azure DevOps rejected the credentials (sign-in page returned). Check the ADO PAT."
            raise SourceApiError(msg, ErrorKind.PERMISSION_DENIED, response.status_code)

        if not response.ok:
            msg = f"Azure DevOps API request failed ({response.status_code}): {_error_message(response)}"
            raise SourceApiError(msg, kind_for_status(response.status_code), response.status_code)
        return response

    def get_repo_id(self, org: str, project: str, repo: str) -> str:
        url = self._url(org, project, f"git/repositories/{quote(repo)}")
        data: dict[str, Any] = self._get(url).json()
        return str(data["id"])

    def get_branch_policies(self, org: str, project: str, repo_id: str) -> list[BranchPolicy]:
        """Return all policy configurations of the repository, following continuation tokens."""
        url = self._url(org, project, "git/policy/configurations")
        params: dict[str, Any] = {"repositoryId": repo_id}
        policies: list[BranchPolicy] = []

        while True:
            response = self._get(url, params)
            policies.extend(BranchPolicy.from_api(item) for item in response.json().get("value", []))
            continuation = response.headers.get(_CONTINUATION_HEADER)
            if not continuation:
                break
            params = {"repositoryId": repo_id, "continuationToken": continuation}

        logger.debug(f"Fetched {len(policies)} policy configuration(s) for repository {repo_id}")
        return policies

    def get_pull_requests(self, org: str, project: str, repo_id: str, status: str = "all") -> list[PullRequest]:
        """Return the repository's pull requests, paging with $top/$skip."""
        url = self._url(org, project, f"git/repositories/{repo_id}/pullrequests")
        pull_requests: list[PullRequest] = []
        skip = 0

        while True:
            params = {"searchCriteria.status": status, "$top": _PAGE_SIZE, "$skip": skip}
            page: list[dict[str, Any]] = self._get(url, params).json().get("value", [])
            pull_requests.extend(PullRequest.from_api(item) for item in page)
            if len(page) < _PAGE_SIZE:
                break
            skip += _PAGE_SIZE

        logger.debug(f"Fetched {len(pull_requests)} pull request(s) for repository {repo_id}")
        return pull_requests

    def get_pull_request_threads(self, org: str, project: str, repo_id: str, pr_id: int) -> list[CommentThread]:
        url = self._url(org, project, f"git/repositories/{repo_id}/pullRequests/{pr_id}/threads")
        return [CommentThread.from_api(item) for item in self._get(url).json().get("value", [])]


def _error_message(response: requests.Response) -> str:
    """Extract the message of an ADO error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return response.text or response.reason
