"""Release options for rendering Helm charts and normalisation of rendered YAML."""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import yaml

from draftkit.safeguards import ManifestError

_WS = "[\t\n\f\r ]"
_PIPE_RE = re.compile(rf"({_WS}*\|{_WS}*)")
_EMPTY_MAPPING_RE = re.compile(rf"\{{{_WS}*\}}")
_COLON_RE = re.compile(rf"{_WS}*:{_WS}*")


@dataclass(frozen=True)
class ReleaseOptions:
    """The release name and namespace a chart is rendered with."""

    name: str = ""
    namespace: str = ""


def load_values(values_path: str | os.PathLike[str]) -> dict[str, Any]:
    """Read a values.yaml file into a mapping; an empty file gives an empty mapping."""
    try:
        with open(values_path, "rb") as handle:
            raw = handle.read()
    except OSError as err:
        raise ManifestError(f"failed to read values file: {err}") from err
    try:
        values = yaml.safe_load(raw.decode("utf-8", "surrogateescape"))
    except yaml.YAMLError as err:
        raise ManifestError(f"failed to parse values.yaml: {err}") from err
    if values is None:
        return {}
    if not isinstance(values, dict):
        raise ManifestError("failed to parse values.yaml: top level is not a mapping")
    return values


def _from_values(vals: Mapping[str, Any], key: str, fallback: str) -> str:
    value = vals.get(key)
    if isinstance(value, str) and value:
        return value
    return fallback


def get_release_options(
    vals: Mapping[str, Any], opt: ReleaseOptions, dir_name: str
) -> ReleaseOptions:
    """Choose release name and namespace from flags, then values.yaml, then ``dir_name``."""
    if opt.name and opt.namespace:
        return opt
    name = opt.name or _from_values(vals, "releaseName", dir_name)
    namespace = opt.namespace or _from_values(vals, "releaseNamespace", dir_name)
    return ReleaseOptions(name=name, namespace=namespace)


def normalize_newlines(data: bytes) -> bytes:
    """Collapse line endings, block-scalar markers and whitespace so YAML can be compared."""
    text = data.decode("utf-8", "surrogateescape")
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _PIPE_RE.sub(" ", text)
    text = " ".join(text.split())
    text = _EMPTY_MAPPING_RE.sub("{}", text)
    text = _COLON_RE.sub(": ", text)
    return text.encode("utf-8", "surrogateescape")