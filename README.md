# draftkit

draftkit is a library of helpers for producing and checking the deployment
files of an application that runs on Kubernetes. It covers template copying,
writers for generated files, repository readers, terminal prompts for template
variables, file-based language detection, GitHub/Azure setup through the `gh`
and `az` command-line tools, and locating and classifying manifest files.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

### `draftkit.osutil`: filesystem helpers and template copying

- `exists(path)`: whether a path exists.
- `ensure_directory(directory)` and `ensure_file(file)`: create the path if it
  is missing. They raise if the path exists with the wrong kind.
- `symlink_with_fallback(oldname, newname)`: create a symlink. On Windows, if
  the user lacks the privilege, it renames the file instead.
- `check_all_variables_substituted(text)`: raises `TemplateError` if any
  `{{NAME}}` placeholder is left. Helm-style `{{.Values.x}}` and placeholders
  that contain spaces are not counted.
- `copy_dir(file_sys, src, dest, draft_config, template_writer)`: copies a
  tree and replaces `{{NAME}}` with each variable's value. It raises
  `TemplateError` if a placeholder is left unsubstituted.
- `copy_dir_with_templates(...)`: copies a tree and renders each file as a
  template. The renderer understands field actions such as `{{.Name}}`,
  `{{- .Name -}}` trimming, and `{{/* comments */}}`. A missing key, or any
  other kind of action, raises `TemplateError`. An empty variable map is also
  an error.

In both copy functions, `file_sys` is a path-like tree root such as
`pathlib.Path`. `draft_config` is any object that has `variables` (items with
`name` and `value`) and `file_name_override_map`. A file named `draft.yaml` is
skipped.

### `draftkit.templatewriter`

`TemplateWriter` is the abstract destination. `FileMapWriter` keeps the files
in `file_map`, a dict that maps each path to its bytes. `LocalFSWriter` writes
to disk, with `write_mode` defaulting to `0o644`.

```python
from pathlib import Path
from types import SimpleNamespace
from draftkit.osutil import copy_dir_with_templates
from draftkit.templatewriter import FileMapWriter

config = SimpleNamespace(
    variables=[SimpleNamespace(name="Name", value="Joe")],
    file_name_override_map={},
)
writer = FileMapWriter()
copy_dir_with_templates(Path("templates"), "app", "out", config, writer)
print(writer.file_map)
```

### `draftkit.reporeader`

`RepoReader` and `VariableExtractor` are abstract interfaces. Two readers
implement `RepoReader`:

- `LocalFSReader` reads from disk. Its `get_repo_name()` returns the name of
  the current directory.
- `FakeRepoReader(files=...)` is an in-memory reader for tests. Its repository
  name is `"test-repo"`.

`find_files(path, patterns, max_depth)` matches glob patterns against base
names. A `max_depth` of 0 means the root directory only.

### `draftkit.prompts`

These functions fill in variables from the terminal, or from any text streams
you pass in.

- `run_prompts_from_config_with_skips_io(config, stdin, stdout)`:
  - skips variables that already have a value;
  - gives variables with `default.is_prompt_disabled` their default value;
  - asks about the remaining variables.

  A blank answer takes the default. The default is the referenced variable's
  value if set, and otherwise the literal default. The `APPNAME` variable
  defaults to the sanitized name of the current directory and is checked by
  `app_name_validator`.
- `select(label, items, field, default, stdin, stdout)`: a numbered choice.
  The user answers by number or by search text.
- `sanitize_app_name(name)`: reduces a name to a valid Kubernetes label. It
  falls back to `my-app`.

Failures raise `PromptError`, and running out of input counts as a failure.

```python
import io
from types import SimpleNamespace as NS
from draftkit.prompts import run_prompts_from_config_with_skips_io

port = NS(name="PORT", value="", type="string", description="the port",
          default=NS(value="80", reference_var="", is_prompt_disabled=False))
run_prompts_from_config_with_skips_io(NS(variables=[port]), io.StringIO("\n"), io.StringIO())
print(port.value)  # 80
```

### `draftkit.linguist`

`LanguageData.from_yaml(vendor_yaml, documentation_yaml, languages_yaml)`
builds lookup tables from YAML text that you supply. It provides:

- `language_by_filename` and `language_hints`;
- `language_by_interpreter`;
- `language_color`;
- `is_vendored`, `is_documentation` and `should_ignore_filename`.

The module also has these standalone helpers:

```python
from draftkit.linguist import detect_interpreter, is_binary, is_configuration

detect_interpreter(b"#!/usr/bin/env python3\nprint('hi')\n")  # "python"
is_binary(b"\x00\x01\x02")                                     # True
is_configuration("values.yaml")                                # True
```

### `draftkit.logger` and `draftkit.spinner`

- `CustomFormatter` is a `logging.Formatter`. It prefixes messages with a cyan
  `[Draft]`, or with a red level name for errors.
- `OutputSplitter` is a stream. Text that contains `Error`, `Fatal` or `Panic`
  goes to stderr, and everything else goes to stdout.
- `create_spinner(msg)` returns a `Spinner`. Use its `start()` and `stop()`
  methods, or use it as a context manager.

### `draftkit.ghcli`, `draftkit.azcli`, `draftkit.azure`

These modules run the `gh` and `az` command-line tools, so both tools must be
on `PATH`. Failures raise `CliError`.

- `ghcli` and `azcli` check that each tool is installed and logged in. The `az`
  tool must be at least version 2.37, and the module offers to upgrade it. They
  also validate subscriptions, resource groups and repositories, and list
  subscriptions as `SubLabel` items.
- `azure.initiate_azure_oidc_flow(sc, spinner)` uses a `SetUpCmd` to do the
  full setup:
  - create the Azure AD app and its service principal;
  - read the single tenant;
  - assign the Contributor role on the resource group;
  - create federated credentials for pull requests and the `main` and `master`
    branches;
  - store `AZURE_CLIENT_ID`, `AZURE_SUBSCRIPTION_ID` and `AZURE_TENANT_ID` as
    repository secrets.

  The tenant and role-assignment clients (`TenantClient`,
  `RoleAssignmentClient`) can be replaced through `AzClient`.

### `draftkit.safeguards`, `draftkit.safeguard_types`, `draftkit.preprocessing`

- `get_manifest_files_from_dir(path)` collects every `.yaml` or `.yml` file
  under a directory as `ManifestFile` records. `read_single_manifest(path)`
  reads one file.
- `is_helm`, `is_kustomize`, `is_yaml` and `is_directory` classify paths.
- `get_latest_safeguards_version` picks the highest semantic version.
  `update_safeguard_paths` and `safeguard_for` build the library paths for a
  `Safeguard`.
- `FileCrawler.read_manifests(bytes)` parses multi-document YAML into
  Kubernetes objects. Each object must have a `kind`.
  `FileCrawler.find_safeguard(name)` looks up a safeguard by name.
- `preprocessing.get_release_options(vals, opt, dir_name)` chooses the release
  name and namespace. Explicit `ReleaseOptions` come first, then
  `releaseName`/`releaseNamespace` from the values, then the directory name.
  `load_values` reads a values file. `normalize_newlines` makes YAML easy to
  compare.

## What draftkit does not do

- There is no command-line program; draftkit is a library only.
- It does not render Helm charts or build Kustomize overlays.
- It does not evaluate safeguard constraint policies, so it produces no
  `ManifestResult` values by itself.
- It ships no language, vendor or documentation data files and no deployment
  templates. You pass those in.
- It does not define a draft configuration type. Any object with the
  attributes described above will do.