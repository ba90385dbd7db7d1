"""Checks and actions using the GitHub command-line tool."""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

log = logging.getLogger(__name__)


class CliError(RuntimeError):
    """Raised when a command-line tool is missing or a command fails."""


@dataclass
class SubLabel:
    """A subscription's id and display name."""

    id: str = ""
    name: str = ""


def _run(*args: str) -> tuple[bool, str]:
    """Run a command, returning success and its combined output."""
    try:
        proc = subprocess.run(
            list(args), stdout=subprocess.PIPE, stderr=subprocess.STDOUT, text=True, check=False
        )
    except OSError as err:
        return False, str(err)
    return proc.returncode == 0, proc.stdout or ""


def _run_interactive(*args: str) -> None:
    """Run a command attached to the terminal; raise CliError on failure."""
    try:
        proc = subprocess.run(list(args), check=False)
    except OSError as err:
        raise CliError(str(err)) from err
    if proc.returncode != 0:
        raise CliError(f"{' '.join(args)} exited with status {proc.returncode}")


def ensure_gh_cli() -> None:
    """Make sure the GitHub CLI is installed and the user is logged in."""
    ensure_gh_cli_installed()
    ensure_gh_cli_logged_in()


def ensure_gh_cli_installed() -> None:
    """Raise CliError if the GitHub CLI cannot be run."""
    log.debug("Checking that github cli is installed...")
    ok, _ = _run("gh")
    if not ok:
        raise CliError(
            "The github cli is required to complete this process. "
            "Find installation instructions at this link: https://github.com/cli/cli#installation"
        )
    log.debug("Github cli found!")


def ensure_gh_cli_logged_in() -> None:
    """Log the user in to GitHub if they are not already."""
    ensure_gh_cli_installed()
    if not is_logged_in_to_gh():
        try:
            log_in_to_gh()
        except CliError as err:
            raise CliError("unable to log in to github") from err


def is_logged_in_to_gh() -> bool:
    """Return whether the GitHub CLI reports a logged-in user."""
    log.debug("Checking that user is logged in to github...")
    ok, out = _run("gh", "auth", "status")
    if not ok:
        print(out, end="")
        return False
    log.debug("User is logged in!")
    return True


def log_in_to_gh() -> None:
    """Run the interactive GitHub login."""
    log.debug("Logging user in to github...")
    _run_interactive("gh", "auth", "login")


def is_valid_gh_repo(repo: str) -> None:
    """Raise CliError if ``repo`` cannot be viewed on GitHub."""
    ok, _ = _run("gh", "repo", "view", repo)
    if not ok:
        raise CliError("Github repo not found")