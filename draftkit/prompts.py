"""Interactive prompts for filling in draft variables."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable, Iterable, Sequence
from typing import Any, Protocol, TextIO, TypeVar

log = logging.getLogger(__name__)

DEFAULT_APP_NAME = "my-app"
APP_NAME_VARIABLE = "APPNAME"
_MAX_APP_NAME_LENGTH = 63
_APP_NAME_EXTRA = "-_."

T = TypeVar("T")
Validator = Callable[[str], None]


class PromptError(Exception):
    """Raised when a prompt cannot obtain an answer."""


class _VariableDefault(Protocol):
    value: str
    reference_var: str
    is_prompt_disabled: bool


class _Variable(Protocol):
    name: str
    value: str
    type: str
    description: str
    default: _VariableDefault


class _DraftConfig(Protocol):
    variables: Iterable[Any]


def _streams(stdin: TextIO | None, stdout: TextIO | None) -> tuple[TextIO, TextIO]:
    return (stdin if stdin is not None else sys.stdin, stdout if stdout is not None else sys.stdout)


def _read_line(stdin: TextIO) -> str | None:
    line = stdin.readline()
    if not line:
        return None
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


def _ask(label: str, validate: Validator, stdin: TextIO | None, stdout: TextIO | None) -> str:
    """Ask until an answer passes ``validate``; end of input is an error."""
    source, out = _streams(stdin, stdout)
    last_error = ""
    while True:
        out.write(f"{label}: ")
        out.flush()
        line = _read_line(source)
        if line is None:
            detail = f" ({last_error})" if last_error else ""
            raise PromptError(f"no input: end of file reached{detail}")
        try:
            validate(line)
        except ValueError as err:
            last_error = str(err)
            out.write(f">> {err}\n")
            continue
        return line


def _choose(label: str, options: Sequence[str], stdin: TextIO | None, stdout: TextIO | None) -> int:
    """Let the user pick one of ``options`` by number or search text; blank picks the first."""
    source, out = _streams(stdin, stdout)
    out.write(f"{label}\n")
    for number, option in enumerate(options, 1):
        out.write(f"  {number}) {option}\n")
    while True:
        out.write("Choice (number or search, blank for 1): ")
        out.flush()
        line = _read_line(source)
        if line is None:
            raise PromptError("no selection made: end of input")
        answer = line.strip()
        if not answer:
            return 0
        if answer.isdecimal() and 1 <= int(answer) <= len(options):
            return int(answer) - 1
        lowered = answer.lower()
        exact = [index for index, option in enumerate(options) if option.lower() == lowered]
        matches = exact or [index for index, option in enumerate(options) if lowered in option.lower()]
        if len(matches) == 1:
            return matches[0]
        out.write(f">> no single option matches {answer!r}\n")


def run_prompts_from_config(draft_config: _DraftConfig) -> None:
    """Prompt on the terminal for every variable of ``draft_config`` still without a value."""
    run_prompts_from_config_with_skips_io(draft_config, None, None)


def run_prompts_from_config_with_skips_io(
    draft_config: _DraftConfig | None, stdin: TextIO | None = None, stdout: TextIO | None = None
) -> None:
    """Fill in unset variables, skipping those with a value or with prompting disabled.

    Variables with prompting disabled take their default value, which must exist.
    """
    if draft_config is None:
        raise PromptError("draftConfig is nil")

    for variable in draft_config.variables:
        if variable.value:
            log.debug("Skipping prompt for %s", variable.name)
            continue

        if variable.default.is_prompt_disabled:
            log.debug("Skipping prompt for %s as it has IsPromptDisabled=true", variable.name)
            default_value = get_variable_default_value(draft_config, variable)
            if not default_value:
                raise PromptError(
                    f"IsPromptDisabled is true for {variable.name} but no default value was found"
                )
            log.debug("Using default value %s for %s", default_value, variable.name)
            variable.value = default_value
            continue

        log.debug("constructing prompt for: %s", variable.name)
        if variable.type == "bool":
            variable.value = run_bool_prompt(variable, stdin, stdout)
        else:
            default_value = get_variable_default_value(draft_config, variable)
            variable.value = run_defaultable_string_prompt(default_value, variable, None, stdin, stdout)


def _find_variable(draft_config: _DraftConfig, name: str) -> Any | None:
    return next((variable for variable in draft_config.variables if variable.name == name), None)


def get_variable_default_value(draft_config: _DraftConfig, variable: _Variable) -> str:
    """Return a variable's default: the referenced variable's value if set, else the literal default.

    The application name defaults to the sanitized name of the current directory.
    """
    if variable.name == APP_NAME_VARIABLE:
        try:
            return sanitize_app_name(get_current_dir_name())
        except PromptError as err:
            log.error("Error retrieving current directory name: %s", err)
            return DEFAULT_APP_NAME

    default_value = variable.default.value
    log.debug("setting default value for %s to %s from variable default rule", variable.name, default_value)
    reference_name = variable.default.reference_var
    if reference_name:
        reference = _find_variable(draft_config, reference_name)
        if reference is None:
            log.error("Error getting reference variable %s: variable not found", reference_name)
        elif reference.value:
            default_value = reference.value
            log.debug(
                "setting default value for %s to %s from referenceVar %s",
                variable.name,
                default_value,
                reference_name,
            )
    return default_value


def run_bool_prompt(
    custom_prompt: _Variable, stdin: TextIO | None = None, stdout: TextIO | None = None
) -> str:
    """Ask the user to pick true or false; return the choice as ``"true"`` or ``"false"``."""
    options = ["true", "false"]
    index = _choose("Please select " + custom_prompt.description, options, stdin, stdout)
    return options[index]


def allow_all_string_validator(value: str) -> None:
    """Accept any string; reject values that are not strings at all."""
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")


def no_blank_string_validator(value: str) -> None:
    """Reject the empty string."""
    if not value:
        raise ValueError("input must be greater than 0")


def app_name_validator(name: str) -> None:
    """Reject names that are not valid application (Kubernetes label) names."""
    if not name:
        raise ValueError("application name cannot be empty")
    first = name[0]
    if not (first.isalpha() or first.isdecimal()):
        raise ValueError("application name must start with a letter or digit")
    if name[-1] in _APP_NAME_EXTRA:
        raise ValueError("application name must end with a letter or digit")
    if any(not (ch.isalpha() or ch.isdecimal() or ch in _APP_NAME_EXTRA) for ch in name):
        raise ValueError("application name can only contain letters, digits, '-', '_', and '.'")
    if len(name.encode("utf-8")) > _MAX_APP_NAME_LENGTH:
        raise ValueError("application name cannot be longer than 63 characters")


def run_defaultable_string_prompt(
    default_value: str,
    custom_prompt: _Variable,
    validate: Validator | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> str:
    """Ask for a string; a blank answer yields ``default_value``.

    Non-blank answers are checked with ``validate`` (no blanks by default), or with the
    application-name rules for the application name variable.
    """
    check = validate or no_blank_string_validator
    if custom_prompt.name == APP_NAME_VARIABLE:
        check = app_name_validator

    def validator(answer: str) -> None:
        if answer:
            check(answer)

    label = f"Please enter {custom_prompt.description} (default: {default_value})"
    answer = _ask(label, validator, stdin, stdout)
    if not answer and default_value:
        return default_value
    return answer


def get_input_from_prompt(
    desired_input: str, stdin: TextIO | None = None, stdout: TextIO | None = None
) -> str:
    """Ask for a non-blank string."""
    return _ask("Please enter " + desired_input, no_blank_string_validator, stdin, stdout)


def select(
    label: str,
    items: Sequence[T],
    field: Callable[[T], str] | None = None,
    default: T | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> T:
    """Let the user choose one of ``items``, shown by ``field`` or as themselves.

    The ``default`` item, if given and present, is listed first.
    """
    choices = list(items)
    labels: list[Any] = [field(item) for item in choices] if field is not None else list(choices)
    if not labels:
        raise PromptError("no selection options")
    if not isinstance(labels[0], str):
        raise PromptError("selections must be of type string or use field")

    if default is not None:
        default_label = field(default) if field is not None else default
        for index, item_label in enumerate(labels):
            if item_label == default_label:
                labels[0], labels[index] = labels[index], labels[0]
                choices[0], choices[index] = choices[index], choices[0]
                break

    try:
        index = _choose(label, [str(item_label) for item_label in labels], stdin, stdout)
    except PromptError as err:
        raise PromptError(f"running select: {err}") from err
    return choices[index]


def get_current_dir_name() -> str:
    """Return the current directory's name, sanitized as an application name."""
    try:
        cwd = os.getcwd()
    except OSError as err:
        raise PromptError(f"getting current directory: {err}") from err
    return sanitize_app_name(os.path.basename(cwd))


def sanitize_app_name(name: str) -> str:
    """Reduce ``name`` to a valid Kubernetes label, falling back to ``my-app``."""
    kept = "".join(ch for ch in name if ch.isalpha() or ch.isdecimal() or ch in _APP_NAME_EXTRA)
    if not kept:
        return DEFAULT_APP_NAME
    encoded = kept.encode("utf-8")
    if len(encoded) > _MAX_APP_NAME_LENGTH:
        kept = encoded[:_MAX_APP_NAME_LENGTH].decode("utf-8", "ignore")
    return kept.strip(_APP_NAME_EXTRA)