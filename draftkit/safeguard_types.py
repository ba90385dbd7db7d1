"""Safeguard definitions, manifest records and reading of Kubernetes manifests."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import yaml

CONSTRAINT_CAI = "container-allowed-images"
CONSTRAINT_CEP = "container-enforce-probes"
CONSTRAINT_CRL = "container-resource-limits"
CONSTRAINT_CRIP = "container-restricted-image-pulls"
CONSTRAINT_DBPDB = "disallowed-bad-pod-disruption-budgets"
CONSTRAINT_PEA = "pod-enforce-antiaffinity"
CONSTRAINT_RT = "restricted-taints"
CONSTRAINT_USS = "unique-service-selectors"
CONSTRAINT_ALL = "all"

TEMPLATE_FILE_NAME = "template.yaml"
CONSTRAINT_FILE_NAME = "constraint.yaml"

SELECTED_VERSION = "v1.0.0"
SUPPORTED_VERSIONS = (SELECTED_VERSION,)

_DEFAULT_NAMES = (
    CONSTRAINT_CAI,
    CONSTRAINT_CEP,
    CONSTRAINT_CRL,
    CONSTRAINT_DBPDB,
    CONSTRAINT_PEA,
    CONSTRAINT_RT,
    CONSTRAINT_USS,
)


@dataclass(frozen=True)
class Safeguard:
    """A named safeguard and where its constraint template and constraint live."""

    name: str
    template_path: str
    constraint_path: str


@dataclass
class ManifestFile:
    """A manifest file's name and raw contents."""

    name: str
    manifest_content: bytes


@dataclass
class ManifestResult:
    """The violations found in one manifest file, keyed by object name."""

    name: str
    object_violations: dict[str, list[str]] = field(default_factory=dict)
    violations_count: int = 0


def safeguard_for(name: str, version: str = SELECTED_VERSION) -> Safeguard:
    """Return the safeguard called ``name`` with its library paths for ``version``."""
    return Safeguard(
        name=name,
        template_path=f"lib/{version}/{name}/{TEMPLATE_FILE_NAME}",
        constraint_path=f"lib/{version}/{name}/{CONSTRAINT_FILE_NAME}",
    )


def default_safeguards(version: str = SELECTED_VERSION) -> list[Safeguard]:
    """Return the safeguards applied by default, without restricted image pulls."""
    return [safeguard_for(name, version) for name in _DEFAULT_NAMES]


SAFEGUARD_CRIP = safeguard_for(CONSTRAINT_CRIP)
SAFEGUARDS = default_safeguards()
SAFEGUARDS_TESTING = [*SAFEGUARDS, SAFEGUARD_CRIP]


@dataclass
class FileCrawler:
    """A set of safeguards and the file tree their templates and constraints are read from."""

    safeguards: list[Safeguard] = field(default_factory=list)
    constraint_fs: Any = None

    def read_manifests(self, manifest_bytes: bytes) -> list[dict[str, Any]]:
        """Parse every Kubernetes object in a (multi-document) YAML manifest."""
        text = manifest_bytes.decode("utf-8", "surrogateescape")
        try:
            documents = list(yaml.safe_load_all(text))
        except yaml.YAMLError as err:
            raise ValueError(f"reading manifests: {err}") from err

        objects: list[dict[str, Any]] = []
        for document in documents:
            if document is None:
                continue
            if not isinstance(document, dict):
                raise ValueError("reading manifests: document is not a mapping")
            kind = document.get("kind")
            if not isinstance(kind, str) or not kind:
                raise ValueError("reading manifests: Object 'Kind' is missing")
            objects.append(document)
        return objects

    def find_safeguard(self, name: str) -> Safeguard:
        """Return the safeguard called ``name``; the last one wins if several share it."""
        found = None
        for safeguard in self.safeguards:
            if safeguard.name == name:
                found = safeguard
        if found is None:
            raise ValueError(f"no safeguard exists with name: {name}")
        return found