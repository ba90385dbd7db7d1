import pytest

from draftkit.safeguard_types import SAFEGUARDS, safeguard_for
from draftkit.safeguards import (
    ManifestError,
    get_latest_safeguards_version,
    get_manifest_files_from_dir,
    is_directory,
    is_helm,
    is_kustomize,
    is_yaml,
    read_single_manifest,
    update_safeguard_paths,
)

DEPLOYMENT = b"apiVersion: apps/v1\nkind: Deployment\nmetadata:\n  name: web\n"
SERVICE = b"apiVersion: v1\nkind: Service\nmetadata:\n  name: web\n"


@pytest.fixture
def chart_dir(tmp_path):
    chart = tmp_path / "validchart"
    chart.mkdir()
    (chart / "Chart.yaml").write_text("apiVersion: v2\nname: validchart\nversion: 0.1.0\n")
    (chart / "values.yaml").write_text("replicaCount: 1\n")
    return chart


@pytest.fixture
def kustomize_dir(tmp_path):
    overlay = tmp_path / "kustomize" / "overlays" / "production"
    overlay.mkdir(parents=True)
    (overlay / "kustomization.yaml").write_text("resources:\n- ../../base\n")
    return overlay


@pytest.fixture
def manifests_dir(tmp_path):
    root = tmp_path / "success"
    root.mkdir()
    (root / "b-service.yml").write_bytes(SERVICE)
    (root / "a-deployment.yaml").write_bytes(DEPLOYMENT)
    (root / "README.md").write_text("not a manifest")
    nested = root / "nested"
    nested.mkdir()
    (nested / "c.yaml").write_bytes(DEPLOYMENT)
    return root


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("deployment.yaml", True),
        ("dir/service.yml", True),
        ("Chart.yaml", True),
        ("notes.txt", False),
        ("dir.yaml/file", False),
        ("noext", False),
    ],
)
def test_is_yaml(path, expected):
    assert is_yaml(path) is expected


def test_is_directory(tmp_path):
    file = tmp_path / "f.yaml"
    file.write_text("x: 1")
    assert is_directory(tmp_path) is True
    assert is_directory(file) is False
    with pytest.raises(OSError):
        is_directory(tmp_path / "missing")


def test_is_kustomize(kustomize_dir, chart_dir):
    assert is_kustomize(True, kustomize_dir) is True
    assert is_kustomize(False, kustomize_dir / "kustomization.yaml") is True
    assert is_kustomize(True, chart_dir) is False


def test_is_kustomize_yml_directory(tmp_path):
    (tmp_path / "kustomization.yml").write_text("resources: []\n")
    assert is_kustomize(True, tmp_path) is True


def test_is_helm(chart_dir, kustomize_dir, manifests_dir):
    assert is_helm(True, chart_dir) is True
    assert is_helm(False, chart_dir / "Chart.yaml") is True
    assert is_helm(True, kustomize_dir) is False
    assert is_helm(False, manifests_dir / "a-deployment.yaml") is False
    assert is_helm(False, "invalid/path") is False


def test_is_helm_missing_chart_file(tmp_path):
    assert is_helm(False, tmp_path / "Chart.yaml") is False


def test_get_manifest_files_from_dir(manifests_dir):
    files = get_manifest_files_from_dir(manifests_dir)
    assert [f.name for f in files] == ["a-deployment.yaml", "b-service.yml", "c.yaml"]
    assert files[0].manifest_content == DEPLOYMENT
    assert files[1].manifest_content == SERVICE


def test_get_manifest_files_from_dir_without_yaml(tmp_path):
    (tmp_path / "readme.txt").write_text("hello")
    with pytest.raises(ManifestError, match="no manifest files found within given path"):
        get_manifest_files_from_dir(tmp_path)


def test_get_manifest_files_from_missing_dir(tmp_path):
    with pytest.raises(ManifestError, match="could not walk directory"):
        get_manifest_files_from_dir(tmp_path / "missing")


def test_read_single_manifest(manifests_dir):
    files = read_single_manifest(manifests_dir / "a-deployment.yaml")
    assert len(files) == 1
    assert files[0].name == "a-deployment.yaml"
    assert files[0].manifest_content == DEPLOYMENT


def test_read_single_manifest_rejects_non_yaml(manifests_dir):
    with pytest.raises(ManifestError, match="expected at least one .yaml or .yml file"):
        read_single_manifest(manifests_dir / "README.md")


def test_read_single_manifest_missing(tmp_path):
    with pytest.raises(ManifestError, match="could not read file"):
        read_single_manifest(tmp_path / "missing.yaml")


def test_latest_version_default():
    assert get_latest_safeguards_version() == "v1.0.0"


@pytest.mark.parametrize(
    ("versions", "expected"),
    [
        (["v1.0.0"], "v1.0.0"),
        (["v1.10.0", "v1.2.0", "v1.9.0"], "v1.10.0"),
        (["v2.0.0", "junk"], "v2.0.0"),
        (["v1.0.0-rc.1", "v1.0.0"], "v1.0.0"),
        (["v1.0.0-alpha", "v1.0.0-beta"], "v1.0.0-beta"),
        (["v1", "v0.9.9"], "v1"),
    ],
)
def test_latest_version(versions, expected):
    assert get_latest_safeguards_version(versions) == expected


def test_latest_version_does_not_mutate_input():
    versions = ["v2.0.0", "v1.0.0"]
    get_latest_safeguards_version(versions)
    assert versions == ["v2.0.0", "v1.0.0"]


def test_latest_version_empty():
    with pytest.raises(ManifestError):
        get_latest_safeguards_version([])


def test_update_safeguard_paths():
    updated = update_safeguard_paths(SAFEGUARDS, "v1.0.0")
    assert [sg.name for sg in updated] == [sg.name for sg in SAFEGUARDS]
    assert updated == [safeguard_for(sg.name, "v1.0.0") for sg in SAFEGUARDS]