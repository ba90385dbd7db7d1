"""Locating manifest files and classifying manifest paths for safeguard checks."""

from __future__ import annotations

import functools
import logging
import os
import re
from collections.abc import Iterable, Sequence

from draftkit.safeguard_types import (
    SUPPORTED_VERSIONS,
    ManifestFile,
    Safeguard,
    safeguard_for,
)

log = logging.getLogger(__name__)

_CHART_FILES = ("Chart.yaml", "Chart.yml")
_KUSTOMIZATION_FILES = ("kustomization.yaml", "kustomization.yml")

_IDENT = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_SEMVER_RE = re.compile(
    r"v(0|[1-9][0-9]*)"
    r"(?:\.(0|[1-9][0-9]*)"
    r"(?:\.(0|[1-9][0-9]*)"
    rf"(?:-({_IDENT}(?:\.{_IDENT})*))?"
    r"(?:\+[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*)?"
    r")?)?"
)


class ManifestError(ValueError):
    """Raised when manifest files cannot be found or read."""


def _ext(path: str) -> str:
    separators = {"/", os.sep}
    for index in range(len(path) - 1, -1, -1):
        char = path[index]
        if char in separators:
            break
        if char == ".":
            return path[index:]
    return ""


def is_yaml(path: str | os.PathLike[str]) -> bool:
    """Return whether ``path`` has a .yaml or .yml extension."""
    return _ext(os.fspath(path)) in (".yaml", ".yml")


def is_directory(path: str | os.PathLike[str]) -> bool:
    """Return whether ``path`` is a directory; a missing path raises OSError."""
    os.stat(path)
    return os.path.isdir(path)


def _read_manifest(path: str) -> ManifestFile:
    try:
        with open(path, "rb") as handle:
            content = handle.read()
    except OSError as err:
        raise ManifestError(f"could not read file {path}: {err}") from err
    return ManifestFile(name=os.path.basename(path), manifest_content=content)


def read_single_manifest(path: str | os.PathLike[str]) -> list[ManifestFile]:
    """Return the single YAML manifest at ``path`` as a one-element list."""
    path = os.fspath(path)
    if not is_yaml(path):
        raise ManifestError("expected at least one .yaml or .yml file within given path")
    return [_read_manifest(path)]


def get_manifest_files_from_dir(path: str | os.PathLike[str]) -> list[ManifestFile]:
    """Return every YAML file under ``path``, walked in lexical order."""
    root = os.fspath(path)
    manifests: list[ManifestFile] = []

    def visit(current: str) -> None:
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda entry: entry.name)
        except OSError as err:
            raise ManifestError(
                f"could not walk directory: error walking path {current} with error: {err}"
            ) from err
        for entry in entries:
            if entry.is_dir(follow_symlinks=False):
                log.debug("%s is a directory, descending...", entry.name)
                visit(entry.path)
            elif is_yaml(entry.path):
                log.debug("%s is not a directory, appending to manifestFiles", entry.name)
                try:
                    manifests.append(_read_manifest(entry.path))
                except ManifestError as err:
                    raise ManifestError(f"could not walk directory: {err}") from err
            else:
                log.debug("%s is not a manifest file, skipping...", entry.name)

    try:
        root_is_dir = is_directory(root)
    except OSError as err:
        raise ManifestError(
            f"could not walk directory: error walking path {root} with error: {err}"
        ) from err

    if root_is_dir:
        visit(root)
    elif is_yaml(root):
        manifests.append(_read_manifest(root))

    if not manifests:
        raise ManifestError("no manifest files found within given path")
    return manifests


def is_helm(is_dir: bool, path: str | os.PathLike[str]) -> bool:
    """Return whether ``path`` is a Helm chart directory or a chart's Chart.yaml file."""
    path = os.fspath(path)
    if is_dir:
        candidates = [os.path.join(path, name) for name in _CHART_FILES]
    else:
        if os.path.basename(path.rstrip("/" + os.sep)) not in _CHART_FILES:
            return False
        candidates = [path]
    return any(os.path.exists(candidate) for candidate in candidates)


def is_kustomize(is_dir: bool, path: str | os.PathLike[str]) -> bool:
    """Return whether ``path`` is a kustomize project directory or kustomization file."""
    path = os.fspath(path)
    if is_dir:
        return any(os.path.exists(os.path.join(path, name)) for name in _KUSTOMIZATION_FILES)
    return "kustomization.yaml" in path


def _parse_semver(version: str) -> tuple[tuple[int, int, int], str] | None:
    match = _SEMVER_RE.fullmatch(version)
    if match is None:
        return None
    major, minor, patch, prerelease = match.groups()
    return (int(major), int(minor or 0), int(patch or 0)), prerelease or ""


def _compare_prerelease(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return 1
    if not b:
        return -1
    left, right = a.split("."), b.split(".")
    for x, y in zip(left, right):
        if x == y:
            continue
        x_num, y_num = x.isdigit(), y.isdigit()
        if x_num and y_num:
            return -1 if int(x) < int(y) else 1
        if x_num != y_num:
            return -1 if x_num else 1
        return -1 if x < y else 1
    return (len(left) > len(right)) - (len(left) < len(right))


def _compare_semver(a: str, b: str) -> int:
    pa, pb = _parse_semver(a), _parse_semver(b)
    if pa is None and pb is None:
        return 0
    if pa is None:
        return -1
    if pb is None:
        return 1
    if pa[0] != pb[0]:
        return -1 if pa[0] < pb[0] else 1
    return _compare_prerelease(pa[1], pb[1])


def _version_order(a: str, b: str) -> int:
    result = _compare_semver(a, b)
    if result:
        return result
    return (a > b) - (a < b)


def get_latest_safeguards_version(versions: Sequence[str] | None = None) -> str:
    """Return the highest semantic version; invalid versions sort below valid ones."""
    candidates = list(SUPPORTED_VERSIONS if versions is None else versions)
    if not candidates:
        raise ManifestError("no safeguards versions given")
    return sorted(candidates, key=functools.cmp_to_key(_version_order))[-1]


def update_safeguard_paths(safeguards: Iterable[Safeguard], version: str) -> list[Safeguard]:
    """Return the safeguards with template and constraint paths for ``version``."""
    return [safeguard_for(sg.name, version) for sg in safeguards]