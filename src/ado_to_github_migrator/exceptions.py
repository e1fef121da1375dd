"""
Custom exception classes for the Azure DevOps to GitHub migration tool.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .outcome import MigrationOutcome


class ErrorKind(Enum):
    """Semantic classification of a failed platform call."""

    PLAN_LIMITATION = "plan-limitation"
    PERMISSION_DENIED = "permission-denied"
    NOT_FOUND = "not-found"
    INVALID_CONFIGURATION = "invalid-configuration"
    RATE_LIMITED = "rate-limited"
    NETWORK = "network"
    UNEXPECTED = "unexpected"


def kind_for_status(status: int | None) -> ErrorKind:
    """Map an HTTP status code to an error kind."""
    if status in (401, 403):
        return ErrorKind.PERMISSION_DENIED
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status in (400, 422):
        return ErrorKind.INVALID_CONFIGURATION
    if status == 429:
        return ErrorKind.RATE_LIMITED
    return ErrorKind.UNEXPECTED


class MigrationError(Exception):
    """Base exception for migration errors."""


class PlatformError(MigrationError):
    """Raised when a call to Azure DevOps or GitHub fails."""

    kind: ErrorKind
    status: int | None

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNEXPECTED, status: int | None = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.status = status


class SourceApiError(PlatformError):
    """Raised when the Azure DevOps REST API call fails."""


class TargetApiError(PlatformError):
    """Raised when the GitHub API call fails."""


class MissingBranchesError(TargetApiError):
    """Raised when a pull request cannot be created because its branches are absent on GitHub."""


class MigrationIncompleteError(MigrationError):
    """Raised after the run summary when at least one item failed."""

    outcome: MigrationOutcome

    def __init__(self, message: str, outcome: MigrationOutcome) -> None:
        super().__init__(message)
        self.outcome = outcome
