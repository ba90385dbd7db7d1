"""Language detection from file names, shebang lines and contents."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import yaml

_SPACE = "\t\n\f\r "
_SHEBANG_RE = re.compile(rf"^#![{_SPACE}]*([^{_SPACE}]+)(?:[{_SPACE}]+([^{_SPACE}]+))?.*")
_SCRIPT_VERSION_RE = re.compile(r"((?:[0-9]+\.?)+)")

CONFIGURATION_SUFFIXES = (".yaml", ".yml", ".xml", ".toml")
_BINARY_SCAN_LIMIT = 512
_ALLOWED_CONTROL_BYTES = frozenset({0, 9, 10, 13})


def _ext(path: str) -> str:
    """Return the extension: text from the last dot in the final path element, or ''."""
    for index in range(len(path) - 1, -1, -1):
        char = path[index]
        if char == "/":
            break
        if char == ".":
            return path[index:]
    return ""


def _base(path: str) -> str:
    stripped = path.rstrip("/")
    if not stripped:
        return "/" if path else "."
    return stripped.rsplit("/", 1)[-1]


def _regex_list(text: str, what: str) -> list[str]:
    data = yaml.safe_load(text) if text else None
    if data is None:
        return []
    if not isinstance(data, list) or not all(isinstance(item, str) for item in data):
        raise ValueError(f"{what} must be a list of regular expressions")
    return data


def _string_list(entry: Mapping[str, Any], key: str) -> list[str]:
    values = entry.get(key) or []
    return [str(value) for value in values]


@dataclass
class LanguageData:
    """Lookup tables for language detection."""

    vendor_re: re.Pattern[str]
    documentation_re: re.Pattern[str]
    extensions: dict[str, list[str]] = field(default_factory=dict)
    filenames: dict[str, list[str]] = field(default_factory=dict)
    interpreters: dict[str, list[str]] = field(default_factory=dict)
    colors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_yaml(cls, vendor_yaml: str, documentation_yaml: str, languages_yaml: str) -> LanguageData:
        """Build the tables from vendor and documentation regex lists and a languages mapping."""
        vendor_re = re.compile("|".join(_regex_list(vendor_yaml, "vendor data")))
        documentation_re = re.compile("|".join(_regex_list(documentation_yaml, "documentation data")))

        languages = yaml.safe_load(languages_yaml) if languages_yaml else None
        if languages is None:
            languages = {}
        if not isinstance(languages, dict):
            raise ValueError("language data must be a mapping of language names")

        data = cls(vendor_re=vendor_re, documentation_re=documentation_re)
        for name, entry in languages.items():
            name = str(name)
            entry = entry or {}
            if not isinstance(entry, dict):
                raise ValueError(f"language {name} must be a mapping")
            for ext in _string_list(entry, "extensions"):
                data.extensions.setdefault(ext, []).append(name)
            for filename in _string_list(entry, "filenames"):
                data.filenames.setdefault(filename, []).append(name)
            for interpreter in _string_list(entry, "interpreters"):
                data.interpreters.setdefault(interpreter, []).append(name)
            data.colors[name] = str(entry.get("color") or "")
        return data

    def language_color(self, language: str) -> str:
        """Return the language's HTML hex colour, or '' if it has none."""
        return self.colors.get(language, "")

    def language_by_filename(self, filename: str) -> str:
        """Return the single language the file name or extension points to, or '' if ambiguous."""
        by_name = self.filenames.get(filename, [])
        if len(by_name) == 1:
            return by_name[0]
        ext = _ext(filename)
        if ext:
            by_ext = self.extensions.get(ext, [])
            if len(by_ext) == 1:
                return by_ext[0]
        return ""

    def language_hints(self, filename: str) -> list[str]:
        """Return every language the file name or extension could mean."""
        hints = list(self.filenames.get(filename, []))
        ext = _ext(filename)
        if ext:
            hints.extend(self.extensions.get(ext, []))
        return hints

    def language_by_interpreter(self, contents: bytes) -> str:
        """Return the single language of the shebang interpreter, or ''."""
        interpreter = detect_interpreter(contents)
        if interpreter:
            candidates = self.interpreters.get(interpreter, [])
            if len(candidates) == 1:
                return candidates[0]
        return ""

    def is_vendored(self, path: str) -> bool:
        """Return whether ``path`` looks like vendored code."""
        return self.vendor_re.search(path) is not None

    def is_documentation(self, path: str) -> bool:
        """Return whether ``path`` looks like documentation."""
        return self.documentation_re.search(path) is not None

    def should_ignore_filename(self, filename: str) -> bool:
        """Return whether the file is vendored, documentation or configuration."""
        return self.is_vendored(filename) or self.is_documentation(filename) or is_configuration(filename)


def detect_interpreter(contents: bytes) -> str:
    """Return the interpreter named by a shebang on the first line, without version suffix."""
    first_line = contents.split(b"\n", 1)[0]
    if first_line.endswith(b"\r"):
        first_line = first_line[:-1]
    match = _SHEBANG_RE.match(first_line.decode("utf-8", "surrogateescape"))
    if match is None:
        return ""
    base = _base(match.group(1))
    argument = match.group(2) or ""
    if base == "env" and argument:
        base = argument
    return _SCRIPT_VERSION_RE.sub("", base)


def is_configuration(path: str) -> bool:
    """Return whether ``path`` has a configuration file suffix."""
    return path.endswith(CONFIGURATION_SUFFIXES)


def is_binary(contents: bytes) -> bool:
    """Return whether the first 512 bytes hold control bytes rarely found in text."""
    return any(
        byte < 32 and byte not in _ALLOWED_CONTROL_BYTES for byte in contents[:_BINARY_SCAN_LIMIT]
    )


def should_ignore_contents(contents: bytes) -> bool:
    """Return whether the contents look binary and should not be analysed."""
    return is_binary(contents)