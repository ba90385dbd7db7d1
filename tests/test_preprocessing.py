import pytest
import yaml

from draftkit.preprocessing import (
    ReleaseOptions,
    get_release_options,
    load_values,
    normalize_newlines,
)
from draftkit.safeguards import ManifestError


def test_load_values_round_trip(tmp_path):
    values = {"replicaCount": 2, "image": {"repository": "web", "tag": "latest"}}
    path = tmp_path / "values.yaml"
    path.write_text(yaml.safe_dump(values))
    assert load_values(path) == values


def test_load_values_empty_file(tmp_path):
    path = tmp_path / "values.yaml"
    path.write_text("")
    assert load_values(path) == {}


def test_load_values_missing(tmp_path):
    with pytest.raises(ManifestError, match="failed to read values file"):
        load_values(tmp_path / "values.yaml")


def test_load_values_invalid_yaml(tmp_path):
    path = tmp_path / "values.yaml"
    path.write_text("key: [unclosed")
    with pytest.raises(ManifestError, match="failed to parse values.yaml"):
        load_values(path)


def test_load_values_not_a_mapping(tmp_path):
    path = tmp_path / "values.yaml"
    path.write_text("- a\n- b\n")
    with pytest.raises(ManifestError, match="failed to parse values.yaml"):
        load_values(path)


def test_release_options_flags_take_precedence():
    opt = ReleaseOptions(name="test-flags-name", namespace="test-flags-namespace")
    vals = {"releaseName": "from-values", "releaseNamespace": "ns-values"}
    assert get_release_options(vals, opt, "chartdir") == opt


def test_release_options_from_values():
    vals = {"releaseName": "from-values", "releaseNamespace": "ns-values"}
    result = get_release_options(vals, ReleaseOptions(), "chartdir")
    assert result == ReleaseOptions(name=vals["releaseName"], namespace=vals["releaseNamespace"])


def test_release_options_fall_back_to_directory():
    dir_name = "validchart"
    result = get_release_options({}, ReleaseOptions(), dir_name)
    assert result == ReleaseOptions(name=dir_name, namespace=dir_name)


def test_release_options_ignore_non_string_and_empty_values():
    dir_name = "validchart"
    vals = {"releaseName": 42, "releaseNamespace": ""}
    result = get_release_options(vals, ReleaseOptions(), dir_name)
    assert result == ReleaseOptions(name=dir_name, namespace=dir_name)


def test_release_options_mixes_flag_and_values():
    opt = ReleaseOptions(name="flag-name")
    vals = {"releaseNamespace": "ns-values"}
    result = get_release_options(vals, opt, "chartdir")
    assert result == ReleaseOptions(name=opt.name, namespace=vals["releaseNamespace"])


def test_normalize_line_endings_equivalent():
    unix = b"kind: Service\nmetadata:\n  name: web\n"
    windows = b"kind: Service\r\nmetadata:\r\n  name: web\r\n"
    old_mac = b"kind: Service\rmetadata:\r  name: web\r"
    assert normalize_newlines(unix) == normalize_newlines(windows) == normalize_newlines(old_mac)


def test_normalize_is_idempotent():
    data = b"spec:\n  template: |\n    line one\n  labels: {  }\n"
    once = normalize_newlines(data)
    assert normalize_newlines(once) == once


def test_normalize_removes_newlines_and_runs_of_spaces():
    result = normalize_newlines(b"a:   b\n\n\tc :d\n")
    assert b"\n" not in result
    assert b"\r" not in result
    assert b"  " not in result
    assert result == result.strip()


def test_normalize_block_scalar_matches_plain_value():
    assert normalize_newlines(b"key: |\n  value") == normalize_newlines(b"key:  value")


def test_normalize_empty_mapping_and_colon_spacing():
    assert normalize_newlines(b"labels: {   }") == normalize_newlines(b"labels :{}")
    assert normalize_newlines(b"labels: {\n}") == b"labels: {}"