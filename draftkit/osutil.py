"""Filesystem helpers and copying of template directories with variable substitution."""

from __future__ import annotations

import logging
import os
import posixpath
import re
import sys
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from draftkit.templatewriter import TemplateWriter

log = logging.getLogger(__name__)

CONFIG_FILE_NAME = "draft.yaml"

# A draft variable is a run of non-whitespace characters, not starting with a
# period, wrapped in double curly braces. The period rule keeps helm template
# expressions such as {{.Values.x}} from matching.
_DRAFT_VARIABLE_RE = re.compile(r"\{\{[^\s.]+\S*\}\}")

_ERROR_PRIVILEGE_NOT_HELD = 0x522

_TEMPLATE_ACTION_RE = re.compile(
    r"\{\{(?P<ltrim>-[ \t\r\n])?(?P<body>.*?)(?P<rtrim>[ \t\r\n]-)?\}\}", re.DOTALL
)
_FIELD_RE = re.compile(r"\.([A-Za-z_][A-Za-z0-9_]*)")
_TEMPLATE_SPACE = " \t\r\n"


class TemplateError(ValueError):
    """Raised when a template cannot be rendered or leaves variables unsubstituted."""


class _Variable(Protocol):
    name: str
    value: str


class DraftConfigLike(Protocol):
    """What the copy functions need from a draft configuration."""

    variables: Iterable[Any]
    file_name_override_map: Mapping[str, str] | None


def exists(path: str | os.PathLike[str]) -> bool:
    """Return whether a file or directory exists; other stat failures are raised."""
    try:
        os.stat(path)
    except FileNotFoundError:
        return False
    return True


def symlink_with_fallback(oldname: str, newname: str) -> None:
    """Symlink ``oldname`` to ``newname``, renaming instead on Windows without privileges."""
    try:
        os.symlink(oldname, newname)
    except OSError as err:
        if sys.platform == "win32" and getattr(err, "winerror", None) == _ERROR_PRIVILEGE_NOT_HELD:
            os.rename(oldname, newname)
        else:
            raise


def ensure_directory(directory: str | os.PathLike[str]) -> None:
    """Create ``directory`` if missing; raise if the path exists but is not a directory."""
    try:
        info = os.stat(directory)
    except OSError:
        try:
            os.makedirs(directory, mode=0o755, exist_ok=True)
        except OSError as err:
            raise OSError(f"could not create {os.fspath(directory)}: {err}") from err
        return
    if not os.path.isdir(directory) or not _is_dir_mode(info.st_mode):
        raise NotADirectoryError(f"{os.fspath(directory)} must be a directory")


def _is_dir_mode(mode: int) -> bool:
    import stat

    return stat.S_ISDIR(mode)


def ensure_file(file: str | os.PathLike[str]) -> None:
    """Create an empty ``file`` if missing; raise if the path is a directory."""
    try:
        os.stat(file)
    except OSError:
        try:
            with open(file, "wb"):
                pass
        except OSError as err:
            raise OSError(f"could not create {os.fspath(file)}: {err}") from err
        return
    if os.path.isdir(file):
        raise IsADirectoryError(f"{os.fspath(file)} must not be a directory")


def check_all_variables_substituted(file_content: str) -> None:
    """Raise TemplateError listing any draft variables left in ``file_content``."""
    leftovers = _DRAFT_VARIABLE_RE.findall(file_content)
    if leftovers:
        raise TemplateError(f"unsubstituted variable: {', '.join(leftovers)}")


def _resolve(file_sys: Any, rel_path: str) -> Any:
    node = file_sys
    for part in rel_path.split("/"):
        if part and part != ".":
            node = node / part
    return node


def _read(file_sys: Any, rel_path: str) -> str:
    return _resolve(file_sys, rel_path).read_bytes().decode("utf-8", "surrogateescape")


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _join(base: str, name: str) -> str:
    return posixpath.normpath(posixpath.join(base, name))


def _variable_map(draft_config: DraftConfigLike) -> dict[str, str]:
    return {variable.name: variable.value for variable in draft_config.variables}


def _entries(file_sys: Any, src: str) -> list[Any]:
    return sorted(_resolve(file_sys, src).iterdir(), key=lambda entry: entry.name)


def replace_template_variables(file_sys: Any, src_path: str, draft_config: DraftConfigLike) -> bytes:
    """Read ``src_path`` and replace every ``{{NAME}}`` with the matching variable's value."""
    text = _read(file_sys, src_path)
    for variable in draft_config.variables:
        log.debug("replacing %s with %s", variable.name, variable.value)
        text = text.replace("{{" + variable.name + "}}", variable.value)
    return _encode(text)


def _render_go_template(text: str, variables: Mapping[str, str]) -> str:
    pieces: list[str] = []
    pos = 0
    trim_next = False
    for match in _TEMPLATE_ACTION_RE.finditer(text):
        chunk = text[pos:match.start()]
        if trim_next:
            chunk = chunk.lstrip(_TEMPLATE_SPACE)
        if match.group("ltrim"):
            chunk = chunk.rstrip(_TEMPLATE_SPACE)
        pieces.append(chunk)

        body = match.group("body").strip(_TEMPLATE_SPACE)
        if body.startswith("/*") and body.endswith("*/"):
            pass
        else:
            field = _FIELD_RE.fullmatch(body)
            if field is None:
                raise TemplateError(f"unsupported template action: {{{{{body}}}}}")
            key = field.group(1)
            if key not in variables:
                raise TemplateError(f'map has no entry for key "{key}"')
            pieces.append(str(variables[key]))

        trim_next = bool(match.group("rtrim"))
        pos = match.end()

    tail = text[pos:]
    if trim_next:
        tail = tail.lstrip(_TEMPLATE_SPACE)
    if "{{" in tail:
        raise TemplateError("unclosed action")
    pieces.append(tail)
    return "".join(pieces)


def replace_go_template_variables(
    file_sys: Any, src_path: str, variable_map: Mapping[str, str]
) -> bytes:
    """Render ``src_path`` as a template; a key missing from ``variable_map`` is an error."""
    text = _read(file_sys, src_path)
    return _encode(_render_go_template(text, variable_map))


def copy_dir(
    file_sys: Any,
    src: str,
    dest: str,
    draft_config: DraftConfigLike,
    template_writer: TemplateWriter,
) -> None:
    """Copy ``src`` to ``dest`` through ``template_writer``, substituting ``{{NAME}}`` variables."""
    overrides = draft_config.file_name_override_map or {}
    for entry in _entries(file_sys, src):
        if entry.name == CONFIG_FILE_NAME:
            continue
        src_path = _join(src, entry.name)
        dest_path = _join(dest, overrides.get(entry.name, entry.name))
        log.debug("Source path: %s Dest path: %s", src_path, dest_path)

        if entry.is_dir():
            template_writer.ensure_directory(dest_path)
            copy_dir(file_sys, src_path, dest_path, draft_config, template_writer)
            continue

        content = replace_template_variables(file_sys, src_path, draft_config)
        try:
            check_all_variables_substituted(content.decode("utf-8", "surrogateescape"))
        except TemplateError as err:
            raise TemplateError(f"error substituting file {src_path}: {err}") from err
        template_writer.write_file(dest_path, content)


def copy_dir_with_templates(
    file_sys: Any,
    src: str,
    dest: str,
    draft_config: DraftConfigLike,
    template_writer: TemplateWriter,
) -> None:
    """Copy ``src`` to ``dest`` through ``template_writer``, rendering each file as a template."""
    overrides = draft_config.file_name_override_map or {}
    for entry in _entries(file_sys, src):
        if entry.name == CONFIG_FILE_NAME:
            continue
        src_path = _join(src, entry.name)
        dest_path = _join(dest, overrides.get(entry.name, entry.name))
        log.debug("Source path: %s Dest path: %s", src_path, dest_path)

        variable_map = _variable_map(draft_config)
        if not variable_map:
            raise TemplateError("variable map is empty, unable to replace template variables")

        if entry.is_dir():
            template_writer.ensure_directory(dest_path)
            copy_dir_with_templates(file_sys, src_path, dest_path, draft_config, template_writer)
        else:
            content = replace_go_template_variables(file_sys, src_path, variable_map)
            template_writer.write_file(dest_path, content)