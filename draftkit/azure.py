"""Connecting a GitHub repository to Azure with OpenID Connect credentials."""

from __future__ import annotations

import json
import logging
import time
import uuid
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

import backoff

from draftkit.azcli import (
    az_app_exists,
    is_subscription_id_valid,
    is_valid_resource_group,
    service_principal_object_id,
)
from draftkit.ghcli import (
    CliError,
    _run,
    ensure_gh_cli_installed,
    ensure_gh_cli_logged_in,
    is_valid_gh_repo,
)

log = logging.getLogger(__name__)

CONTRIBUTOR_ROLE_ID = "b24988ac-6180-42a0-ab88-20f7382dd24c"
_MAX_ELAPSED_SECONDS = 5
_FIC_URI = "https://graph.microsoft.com/beta/applications/{}/federatedIdentityCredentials"
_ISSUER = "https://token.actions.githubusercontent.com"
_FICS = (
    ("prfic", "repo:{}:pull_request", "pr"),
    ("mainfic", "repo:{}:ref:refs/heads/main", "main"),
    ("masterfic", "repo:{}:ref:refs/heads/master", "master"),
)
_ROLE_API_VERSION = "2022-04-01"


class _Spinner(Protocol):
    def start(self) -> None: ...

    def stop(self) -> None: ...


class TenantClient:
    """Lists the tenants visible to the signed-in Azure account."""

    def list_pages(self) -> Iterable[Iterable[Mapping[str, Any] | None]]:
        """Yield pages of tenant descriptions, each with a ``tenantId``."""
        ok, out = _run("az", "account", "tenant", "list")
        if not ok:
            raise CliError(out)
        yield json.loads(out) or []


@dataclass
class RoleAssignmentClient:
    """Creates role assignments in a subscription."""

    subscription_id: str = ""

    def create_by_id(self, assignment_id: str, parameters: Mapping[str, Any]) -> Any:
        """Create the role assignment with the given full id."""
        uri = f"https://management.azure.com{assignment_id}?api-version={_ROLE_API_VERSION}"
        ok, out = _run("az", "rest", "--method", "PUT", "--uri", uri, "--body", json.dumps(parameters))
        if not ok:
            raise CliError(out)
        return json.loads(out) if out.strip() else {}


@dataclass
class AzClient:
    """The Azure clients a setup run uses."""

    tenant_client: Any = field(default_factory=TenantClient)
    role_assign_client: Any = None


@dataclass
class SetUpCmd:
    """State of one GitHub-to-Azure setup run."""

    app_name: str = ""
    subscription_id: str = ""
    resource_group_name: str = ""
    provider: str = ""
    repo: str = ""
    app_id: str = ""
    tenant_id: str = ""
    app_object_id: str = ""
    sp_object_id: str = ""
    az_client: AzClient = field(default_factory=AzClient)

    def validate_set_up_config(self) -> None:
        """Raise CliError if the subscription, resource group, app name or repo is invalid."""
        log.debug("Checking that provided information is valid...")
        is_subscription_id_valid(self.subscription_id)
        is_valid_resource_group(self.subscription_id, self.resource_group_name)
        if not self.app_name:
            raise CliError("invalid app name")
        is_valid_gh_repo(self.repo)

    def create_az_app(self) -> None:
        """Create the Azure AD application, retrying for a few seconds."""
        log.debug("Commencing Azure app creation...")

        @backoff.on_exception(backoff.expo, (CliError, ValueError), max_time=_MAX_ELAPSED_SECONDS)
        def create() -> None:
            ok, out = _run("az", "ad", "app", "create", "--only-show-errors", "--display-name", self.app_name)
            if not ok:
                log.info("%s", out)
                raise CliError(out)
            if not az_app_exists(self.app_name):
                raise CliError("app creation time has exceeded max elapsed time for exponential backoff")
            self.app_id = str(json.loads(out).get("appId"))
            log.debug("App created successfully!")

        create()

    def create_service_principal(self) -> None:
        """Create the application's service principal, retrying for a few seconds."""
        log.debug("Creating Azure service principal...")

        @backoff.on_exception(backoff.expo, CliError, max_time=_MAX_ELAPSED_SECONDS)
        def create() -> None:
            ok, out = _run("az", "ad", "sp", "create", "--id", self.app_id, "--only-show-errors")
            if not ok:
                log.info("%s", out)
                raise CliError(out)
            log.debug("Checking sp was created...")
            if not self.service_principal_exists():
                raise CliError("service principal not found")
            log.debug("Service principal created successfully!")

        create()

    def service_principal_exists(self) -> bool:
        """Return whether the service principal exists, recording its object id."""
        object_id = service_principal_object_id(self.app_id)
        if object_id is None:
            return False
        self.sp_object_id = object_id
        return True

    def assign_sp_role(self) -> None:
        """Give the service principal the Contributor role on the resource group."""
        log.debug("Assigning contributor role to service principal...")
        client = self.az_client.role_assign_client or RoleAssignmentClient(self.subscription_id)
        scope = f"/subscriptions/{self.subscription_id}/resourceGroups/{self.resource_group_name}"
        assignment_id = f"/{scope}/providers/Microsoft.Authorization/roleAssignments/{uuid.uuid4()}"
        definition_id = f"/providers/Microsoft.Authorization/roleDefinitions/{CONTRIBUTOR_ROLE_ID}"
        parameters = {
            "properties": {
                "principalId": self.sp_object_id,
                "roleDefinitionId": definition_id,
                "principalType": "ServicePrincipal",
            }
        }
        try:
            client.create_by_id(assignment_id, parameters)
        except Exception as err:
            raise CliError(f"creating role assignment: {err}") from err
        log.debug("Role assigned successfully!")

    def get_tenant_id(self) -> None:
        """Record the id of the single visible tenant; zero or several is an error."""
        log.debug("getting Azure tenant ID")
        try:
            tenants = self.list_tenants()
        except CliError as err:
            raise CliError(f"listing tenants: {err}") from err
        if not tenants:
            raise CliError("no tenants found")
        if len(tenants) > 1:
            raise CliError("multiple tenants found")
        self.tenant_id = str(tenants[0]["tenantId"])

    def list_tenants(self) -> list[Mapping[str, Any]]:
        """Return every tenant from every page of the tenant client."""
        log.debug("listing Azure subscriptions")
        tenants: list[Mapping[str, Any]] = []
        pages: Iterator[Any] = iter(self.az_client.tenant_client.list_pages())
        while True:
            try:
                page = next(pages)
            except StopIteration:
                break
            except Exception as err:
                raise CliError(f"listing tenants page: {err}") from err
            for tenant in page or []:
                if tenant is None:
                    raise CliError("nil tenant")
                tenants.append(tenant)
        log.debug("finished listing Azure tenants")
        return tenants

    def has_federated_credentials(self) -> bool:
        """Return whether the application already has federated credentials."""
        log.debug("Checking for existing federated credentials...")
        ok, out = _run("az", "rest", "--method", "GET", "--uri", _FIC_URI.format(self.app_object_id), "--query", "value")
        if not ok:
            log.error("error getting fic: %s", out)
            return False
        try:
            fics = json.loads(out)
        except ValueError as err:
            log.error("error marshaling fics: %s", err)
            return False
        if fics:
            log.debug("Credentials found")
            return True
        log.debug("No existing credentials found")
        return False

    def create_federated_credentials(self) -> None:
        """Create pull-request, main and master credentials for the repository."""
        log.debug("Creating federated credentials...")
        uri = _FIC_URI.format(self.app_object_id)
        for name, subject, description in _FICS:
            body = json.dumps(
                {
                    "name": name,
                    "subject": subject.format(self.repo),
                    "issuer": _ISSUER,
                    "description": description,
                    "audiences": ["api://AzureADTokenExchange"],
                }
            )
            ok, out = _run("az", "rest", "--method", "POST", "--uri", uri, "--body", body)
            if not ok:
                log.info("%s", out)
                raise CliError(out)

        log.debug("Waiting 10 seconds to allow credentials time to populate")
        time.sleep(10)
        for _ in range(10):
            if self.has_federated_credentials():
                break
            log.debug("Credentials not yet created, retrying...")

    def get_app_object_id(self) -> None:
        """Record the application's object id."""
        log.debug("Fetching Azure application object ID")
        ok, out = _run("az", "ad", "app", "show", "--only-show-errors", "--id", self.app_id, "--query", "id")
        if not ok:
            log.info("%s", out)
            raise CliError(out)
        self.app_object_id = json.loads(out)

    def _set_secret(self, name: str, value: str) -> None:
        log.debug("Setting %s in github...", name)
        ok, out = _run("gh", "secret", "set", name, "-b", value, "--repo", self.repo)
        if not ok:
            log.info("%s", out)
            raise CliError(out)

    def set_az_client_id(self) -> None:
        """Store the application id as the repository's AZURE_CLIENT_ID secret."""
        self._set_secret("AZURE_CLIENT_ID", self.app_id)

    def set_az_subscription_id(self) -> None:
        """Store the subscription id as the repository's AZURE_SUBSCRIPTION_ID secret."""
        self._set_secret("AZURE_SUBSCRIPTION_ID", self.subscription_id)

    def set_az_tenant_id(self) -> None:
        """Store the tenant id as the repository's AZURE_TENANT_ID secret."""
        self._set_secret("AZURE_TENANT_ID", self.tenant_id)


def initiate_azure_oidc_flow(sc: SetUpCmd, spinner: _Spinner) -> None:
    """Run the full setup connecting the repository to Azure."""
    log.debug("Commencing github connection with azure...")
    ensure_gh_cli_installed()
    ensure_gh_cli_logged_in()
    spinner.start()

    sc.validate_set_up_config()
    if az_app_exists(sc.app_name):
        raise CliError("app already exists")
    sc.create_az_app()
    sc.create_service_principal()
    sc.get_tenant_id()
    sc.get_app_object_id()
    sc.assign_sp_role()
    if not sc.has_federated_credentials():
        sc.create_federated_credentials()
    sc.set_az_client_id()
    sc.set_az_subscription_id()
    sc.set_az_tenant_id()
    log.debug("Github connection with azure completed successfully!")