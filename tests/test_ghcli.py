import subprocess
from unittest import mock

import pytest

from draftkit import ghcli


def _done(returncode=0, out=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=out)


@mock.patch("draftkit.ghcli.subprocess.run")
def test_has_gh_cli(run):
    run.return_value = _done()
    ghcli.ensure_gh_cli_installed()
    assert run.call_args_list[0][0][0] == ["gh"]
    assert ghcli.is_logged_in_to_gh() is True
    assert run.call_args[0][0] == ["gh", "auth", "status"]


@mock.patch("draftkit.ghcli.subprocess.run", side_effect=FileNotFoundError("gh"))
def test_missing_gh_cli_raises(run):
    with pytest.raises(ghcli.CliError, match="github cli is required"):
        ghcli.ensure_gh_cli_installed()


@mock.patch("draftkit.ghcli.subprocess.run")
def test_is_logged_in(run):
    run.return_value = _done(0)
    assert ghcli.is_logged_in_to_gh() is True
    run.return_value = _done(1, "not logged in")
    assert ghcli.is_logged_in_to_gh() is False


@mock.patch("draftkit.ghcli.subprocess.run")
def test_invalid_repo_raises(run):
    run.return_value = _done(1)
    with pytest.raises(ghcli.CliError, match="Github repo not found"):
        ghcli.is_valid_gh_repo("owner/repo")
    assert run.call_args[0][0] == ["gh", "repo", "view", "owner/repo"]


@mock.patch("draftkit.ghcli.subprocess.run")
def test_failed_login_raises(run):
    def fake(args, **kwargs):
        if args[1:] == ["auth", "status"]:
            return _done(1, "")
        if args[1:] == ["auth", "login"]:
            return _done(1)
        return _done(0)

    run.side_effect = fake
    with pytest.raises(ghcli.CliError, match="unable to log in to github"):
        ghcli.ensure_gh_cli_logged_in()


def test_sub_label_fields():
    label = ghcli.SubLabel(id="sub-1", name="Dev")
    assert (label.id, label.name) == ("sub-1", "Dev")