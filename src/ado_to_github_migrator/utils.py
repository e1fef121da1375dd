"""
Utility functions for the Azure DevOps to GitHub migration tool.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Final

from .exceptions import MigrationError

# Between INFO and WARNING, so it shows whenever INFO does
SUCCESS: Final[int] = 25
logging.addLevelName(SUCCESS, "SUCCESS")


class MigrationLogger(logging.LoggerAdapter):
    """Leveled logging surface handed to every migration component.

    Adds ``success`` (a dedicated level between INFO and WARNING) and ``verbose``
    (DEBUG) on top of the standard ``info``/``warning``/``error`` methods.
    """

    def success(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.log(SUCCESS, msg, *args, **kwargs)

    def verbose(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self.debug(msg, *args, **kwargs)


def get_logger(name: str) -> MigrationLogger:
    """Return a MigrationLogger wrapping the named stdlib logger."""
    return MigrationLogger(logging.getLogger(name), {})


def setup_logging(*, verbose: bool = False) -> None:
    """Configure logging for the migration process."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(), logging.FileHandler("migration.log", mode="a")],
    )
    # Transport chatter only with --verbose
    for noisy in ("urllib3", "github"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if verbose else logging.WARNING)


def get_token(cli_value: str | None, env_var: str, platform: str) -> str:
    """Resolve a personal access token. The command-line value wins over the environment."""
    if cli_value:
        return cli_value

    token: str | None = os.environ.get(env_var)
    if token:
        return token

    msg = f"No {platform} token specified. Set the {env_var} environment variable or pass it on the command line."
    raise MigrationError(msg)
