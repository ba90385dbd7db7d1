"""Checks and queries using the Azure command-line tool."""

from __future__ import annotations

import json
import logging
from typing import Any

from packaging.version import InvalidVersion, Version

from draftkit.ghcli import CliError, SubLabel, _run, _run_interactive
from draftkit.prompts import PromptError, select

log = logging.getLogger(__name__)

MINIMUM_AZ_VERSION = Version("2.37")


def ensure_az_cli() -> None:
    """Make sure the Azure CLI is installed and the user is logged in."""
    ensure_az_cli_installed()
    ensure_az_cli_logged_in()


def get_az_cli_version() -> str:
    """Return the installed Azure CLI version."""
    ok, out = _run("az", "version", "-o", "json")
    if not ok:
        raise CliError("unable to obtain az cli version")
    try:
        data = json.loads(out)
    except ValueError as err:
        raise CliError("unable to unmarshal az cli version output to map") from err
    if not isinstance(data, dict):
        raise CliError("unable to unmarshal az cli version output to map")
    return str(data.get("azure-cli"))


def _get_az_upgrade() -> str:
    try:
        return select(
            "Your Azure CLI version must be at least 2.37.0 - would you like us to update it for you?",
            ["yes", "no"],
        )
    except PromptError as err:
        return str(err)


def _upgrade_az_cli() -> None:
    ok, out = _run("az", "upgrade", "-y")
    if not ok:
        raise CliError(f"unable to upgrade az cli version; {out}")
    log.info("Azure CLI upgrade was successful!")


def ensure_az_cli_installed() -> None:
    """Raise CliError if the Azure CLI is missing; offer an upgrade if it is too old."""
    log.debug("Checking that Azure Cli is installed...")
    ok, _ = _run("az")
    if not ok:
        raise CliError(
            "AZ cli not installed. Find installation instructions at this link: "
            "https://docs.microsoft.com/en-us/cli/azure/install-azure-cli"
        )
    try:
        current = Version(get_az_cli_version())
    except InvalidVersion as err:
        raise CliError(str(err)) from err
    if current < MINIMUM_AZ_VERSION:
        if _get_az_upgrade() == "no":
            raise CliError("Az cli version must be at least 2.37.0")
        _upgrade_az_cli()


def is_logged_in_to_az() -> bool:
    """Return whether the Azure CLI has a signed-in user."""
    log.debug("Checking that user is logged in to Azure CLI...")
    ok, _ = _run("az", "ad", "signed-in-user", "show", "--only-show-errors", "--query", "objectId")
    return ok


def ensure_az_cli_logged_in() -> None:
    """Log the user in to Azure if they are not already."""
    ensure_az_cli_installed()
    if not is_logged_in_to_az():
        try:
            log_in_to_az()
        except CliError as err:
            raise CliError("unable to log in to Azure") from err


def log_in_to_az() -> None:
    """Run the interactive Azure login."""
    log.debug("Logging user in to Azure Cli...")
    _run_interactive("az", "login", "--allow-no-subscriptions")
    log.debug("Successfully logged in!")


def is_subscription_id_valid(subscription_id: str) -> None:
    """Raise CliError unless ``subscription_id`` names a known subscription."""
    if not subscription_id:
        raise CliError("subscriptionId cannot be empty")
    ok, out = _run("az", "account", "show", "-s", subscription_id, "--query", "id")
    if not ok:
        raise CliError(out)
    try:
        found = json.loads(out)
    except ValueError as err:
        raise CliError(f"invalid subscription output: {err}") from err
    if not found:
        raise CliError("subscription not found")


def is_valid_resource_group(subscription_id: str, resource_group: str) -> None:
    """Raise CliError unless ``resource_group`` exists in the subscription."""
    if not resource_group:
        raise CliError("resource group cannot be empty")
    query = f"[?name=='{resource_group}']"
    ok, out = _run("az", "group", "list", "--subscription", subscription_id, "--query", query)
    if not ok:
        log.error(
            "failed to validate resource group %r from subscription %r: %s",
            resource_group,
            subscription_id,
            out,
        )
        raise CliError(out)
    try:
        groups = json.loads(out)
    except ValueError as err:
        raise CliError(f"invalid resource group output: {err}") from err
    if not groups:
        raise CliError(
            f'resource group "{resource_group}" not found from subscription "{subscription_id}"'
        )


def _loads_or(out: str, fallback: Any) -> Any:
    try:
        return json.loads(out)
    except ValueError:
        return fallback


def az_app_exists(app_name: str) -> bool:
    """Return whether an Azure AD application with this display name exists."""
    query_filter = f"displayName eq '{app_name}'"
    ok, out = _run(
        "az", "ad", "app", "list", "--only-show-errors", "--filter", query_filter, "--query", "[].appId"
    )
    if not ok:
        return False
    apps = _loads_or(out, [])
    return isinstance(apps, list) and len(apps) >= 1


def service_principal_object_id(app_id: str) -> str | None:
    """Return the object id of the application's service principal, or None if there is none."""
    ok, out = _run("az", "ad", "sp", "show", "--only-show-errors", "--id", app_id, "--query", "id")
    if not ok:
        return None
    object_id = _loads_or(out, "")
    log.debug("Service principal exists")
    return object_id if isinstance(object_id, str) else ""


def az_acr_exists(acr_name: str) -> bool:
    """Return whether a container registry with this name exists."""
    query = f"[?name=='{acr_name}']"
    ok, out = _run("az", "acr", "list", "--only-show-errors", "--query", query)
    if not ok:
        return False
    registries = _loads_or(out, [])
    return isinstance(registries, list) and len(registries) >= 1


def az_aks_exists(aks_name: str, resource_group: str) -> bool:
    """Return whether the AKS cluster can be browsed."""
    ok, _ = _run("az", "aks", "browse", "-g", resource_group, "--name", aks_name)
    return ok


def _ensure_session() -> None:
    ensure_az_cli_installed()
    if not is_logged_in_to_az():
        try:
            log_in_to_az()
        except CliError as err:
            raise CliError(f"failed to log in to Azure CLI: {err}") from err


def get_current_az_subscription_label() -> SubLabel:
    """Return the id and name of the current subscription."""
    _ensure_session()
    ok, out = _run("az", "account", "show", "--query", "{id: id, name: name}")
    if not ok:
        raise CliError(out)
    try:
        data = json.loads(out)
    except ValueError as err:
        raise CliError(f"failed to unmarshal JSON output: {err}") from err
    label = SubLabel(id=str(data.get("id") or ""), name=str(data.get("name") or ""))
    if not label.id:
        raise CliError("no current subscription found")
    return label


def get_az_subscription_labels() -> list[SubLabel]:
    """Return the id and name of every subscription."""
    _ensure_session()
    ok, out = _run("az", "account", "list", "--all", "--query", "[].{id: id, name: name}")
    if not ok:
        raise CliError(out)
    try:
        data = json.loads(out)
    except ValueError as err:
        raise CliError(f"failed to unmarshal JSON output: {err}") from err
    labels = [SubLabel(id=str(item.get("id") or ""), name=str(item.get("name") or "")) for item in data or []]
    if not labels:
        raise CliError("no subscriptions found")
    return labels