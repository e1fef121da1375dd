"""
Command-line interface for the Azure DevOps to GitHub migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import TYPE_CHECKING

from . import ado_utils as adu
from . import github_utils as ghu
from .branch_policies import BranchPolicyMigrator
from .exceptions import MigrationError
from .models import SourceRepository, TargetRepository
from .pull_requests import PullRequestMigrationOptions, PullRequestMigrator
from .utils import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

BRANCH_POLICIES_COMMAND = "migrate-branch-policies"
PULL_REQUESTS_COMMAND = "migrate-pull-requests"


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    _ = parser.add_argument("--ado-org", required=True, help="The Azure DevOps organization name")
    _ = parser.add_argument("--ado-team-project", required=True, help="The Azure DevOps team project name")
    _ = parser.add_argument("--ado-repo", required=True, help="The Azure DevOps repository name")
    _ = parser.add_argument("--github-org", required=True, help="The GitHub organization name")
    _ = parser.add_argument("--github-repo", required=True, help="The GitHub repository name")
    _ = parser.add_argument(
        "--ado-pat", help=f"Personal access token for Azure DevOps. Overrides {adu.TOKEN_ENV_VAR} environment variable."
    )
    _ = parser.add_argument(
        "--github-pat", help=f"Personal access token for GitHub. Overrides {ghu.TOKEN_ENV_VAR} environment variable."
    )
    _ = parser.add_argument(
        "--target-api-url",
        help=f"The URL of the target API, if not migrating to github.com. Defaults to {ghu.DEFAULT_API_URL}",
    )
    _ = parser.add_argument(
        "--ado-server-url",
        help=f"The URL of the Azure DevOps Server, if not using Azure DevOps Services. Defaults to {adu.DEFAULT_BASE_URL}",
    )
    _ = parser.add_argument("--verbose", "-v", action="store_true", help="Display more information to the console")


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Complete an Azure DevOps to GitHub repository migration: branch policies and pull requests"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    policies = subparsers.add_parser(
        BRANCH_POLICIES_COMMAND,
        help="Migrate Azure DevOps branch policies to GitHub branch protection rules",
        description=(
            "Transforms ADO branch policies (reviewer requirements, build validation, etc.) "
            "to equivalent GitHub branch protection."
        ),
    )
    _add_common_arguments(policies)

    pulls = subparsers.add_parser(
        PULL_REQUESTS_COMMAND,
        help="Recreate Azure DevOps pull requests (abandoned by default) on GitHub",
        description=(
            "GitHub's migration API migrates active and completed PRs but excludes abandoned PRs. "
            "This command recreates them after the repository migration. "
            "PRs get new numbers and timestamps; re-running it creates duplicates."
        ),
    )
    _add_common_arguments(pulls)
    _ = pulls.add_argument(
        "--include-abandoned",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Include abandoned (closed without merging) pull requests (default: on)",
    )
    _ = pulls.add_argument(
        "--include-completed", action="store_true", help="Include completed (merged) pull requests"
    )
    _ = pulls.add_argument("--include-active", action="store_true", help="Include active (open) pull requests")
    _ = pulls.add_argument("--skip-comments", action="store_true", help="Skip migrating PR comment threads")
    _ = pulls.add_argument(
        "--label",
        action="append",
        dest="labels",
        default=[],
        help="Label to add to migrated pull requests. Can be specified multiple times.",
    )

    return parser.parse_args(argv)


def _run(args: argparse.Namespace) -> None:
    source = SourceRepository(args.ado_org, args.ado_team_project, args.ado_repo)
    target = TargetRepository(args.github_org, args.github_repo)

    ado_client = adu.AzureDevOpsClient(adu.get_token(args.ado_pat), args.ado_server_url)
    github_client = ghu.GitHubClient(ghu.get_client(ghu.get_token(args.github_pat), args.target_api_url))

    if args.command == BRANCH_POLICIES_COMMAND:
        _ = BranchPolicyMigrator(ado_client, github_client, log=get_logger("ado_to_github_migrator")).migrate(
            source, target
        )
        return

    options = PullRequestMigrationOptions(
        include_abandoned=args.include_abandoned,
        include_completed=args.include_completed,
        include_active=args.include_active,
        skip_comments=args.skip_comments,
        labels=tuple(args.labels),
        source_base_url=args.ado_server_url or adu.DEFAULT_BASE_URL,
    )
    _ = PullRequestMigrator(ado_client, github_client, log=get_logger("ado_to_github_migrator")).migrate(
        source, target, options
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbose: bool = getattr(args, "verbose", False)
    setup_logging(verbose=verbose)
    logger = logging.getLogger(__name__)

    try:
        _run(args)
    except KeyboardInterrupt:
        logger.warning("Migration interrupted")
        sys.exit(130)
    except MigrationError as e:
        logger.error(str(e))
        sys.exit(1)
    except Exception:
        logger.exception("Migration failed")
        sys.exit(1)

    sys.exit(0)
