"""
Azure DevOps to GitHub Migration Tool

Completes a repository migration from Azure DevOps to GitHub: translates branch
policies into GitHub branch protection and recreates pull requests (abandoned ones
by default) that the server-side migration does not carry over.
"""

from __future__ import annotations

from .branch_policies import BranchPolicyMigrator
from .cli import main
from .exceptions import ErrorKind, MigrationError, MigrationIncompleteError
from .outcome import MigrationOutcome
from .policy_transformer import BranchPolicyTransformer, Fidelity
from .pull_requests import PullRequestMigrationOptions, PullRequestMigrator
from .utils import setup_logging

# Package version
__version__ = "0.1.0"

__all__ = [
    "BranchPolicyMigrator",
    "BranchPolicyTransformer",
    "ErrorKind",
    "Fidelity",
    "MigrationError",
    "MigrationIncompleteError",
    "MigrationOutcome",
    "PullRequestMigrationOptions",
    "PullRequestMigrator",
    "main",
    "setup_logging",
]
