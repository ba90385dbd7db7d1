import pytest

from draftkit.safeguard_types import (
    CONSTRAINT_CAI,
    CONSTRAINT_CEP,
    CONSTRAINT_CRIP,
    CONSTRAINT_CRL,
    CONSTRAINT_DBPDB,
    CONSTRAINT_PEA,
    CONSTRAINT_RT,
    CONSTRAINT_USS,
    SAFEGUARD_CRIP,
    SAFEGUARDS,
    SAFEGUARDS_TESTING,
    FileCrawler,
    ManifestResult,
    default_safeguards,
    safeguard_for,
)


@pytest.mark.parametrize(
    "name",
    [
        "container-allowed-images",
        "container-enforce-probes",
        "container-resource-limits",
        "container-restricted-image-pulls",
        "disallowed-bad-pod-disruption-budgets",
        "pod-enforce-antiaffinity",
        "restricted-taints",
        "unique-service-selectors",
    ],
)
def test_safeguard_for_builds_library_paths(name):
    sg = safeguard_for(name, "v1.0.0")
    assert sg.name == name
    assert sg.template_path == f"lib/v1.0.0/{name}/template.yaml"
    assert sg.constraint_path == f"lib/v1.0.0/{name}/constraint.yaml"


def test_default_safeguards_order_and_names():
    names = [sg.name for sg in default_safeguards("v1.0.0")]
    assert names == [
        "container-allowed-images",
        "container-enforce-probes",
        "container-resource-limits",
        "disallowed-bad-pod-disruption-budgets",
        "pod-enforce-antiaffinity",
        "restricted-taints",
        "unique-service-selectors",
    ]


def test_default_safeguards_excludes_crip_but_testing_includes_it():
    assert CONSTRAINT_CRIP not in [sg.name for sg in default_safeguards("v1.0.0")]
    assert CONSTRAINT_CRIP not in [sg.name for sg in SAFEGUARDS]
    assert SAFEGUARDS_TESTING[-1] == safeguard_for(CONSTRAINT_CRIP)
    assert SAFEGUARD_CRIP == safeguard_for(CONSTRAINT_CRIP)
    assert len(SAFEGUARDS_TESTING) == len(SAFEGUARDS) + 1


def test_other_version_changes_paths():
    sg = safeguard_for(CONSTRAINT_RT, "v2.0.0")
    assert sg.template_path == "lib/v2.0.0/restricted-taints/template.yaml"


@pytest.mark.parametrize(
    "name",
    [
        CONSTRAINT_CAI,
        CONSTRAINT_CEP,
        CONSTRAINT_CRL,
        CONSTRAINT_CRIP,
        CONSTRAINT_DBPDB,
        CONSTRAINT_PEA,
        CONSTRAINT_RT,
        CONSTRAINT_USS,
    ],
)
def test_find_safeguard_in_testing_set(name):
    crawler = FileCrawler(safeguards=SAFEGUARDS_TESTING)
    assert crawler.find_safeguard(name) == safeguard_for(name)


def test_find_safeguard_missing_raises():
    crawler = FileCrawler(safeguards=SAFEGUARDS)
    with pytest.raises(ValueError, match="no safeguard exists with name: container-restricted-image-pulls"):
        crawler.find_safeguard(CONSTRAINT_CRIP)


def test_read_manifests_multiple_documents():
    content = b"""apiVersion: v1
kind: Service
metadata:
  name: svc
---
---
apiVersion: apps/v1
kind: Deployment
metadata:
  name: dep
"""
    objects = FileCrawler().read_manifests(content)
    assert [o["kind"] for o in objects] == ["Service", "Deployment"]
    assert [o["metadata"]["name"] for o in objects] == ["svc", "dep"]


def test_read_manifests_empty_gives_no_objects():
    assert FileCrawler().read_manifests(b"") == []


def test_read_manifests_invalid_yaml():
    with pytest.raises(ValueError, match="reading manifests"):
        FileCrawler().read_manifests(b"kind: [unclosed")


def test_read_manifests_missing_kind():
    with pytest.raises(ValueError, match="Kind"):
        FileCrawler().read_manifests(b"apiVersion: v1\nmetadata:\n  name: x\n")


def test_read_manifests_non_mapping_document():
    with pytest.raises(ValueError, match="reading manifests"):
        FileCrawler().read_manifests(b"- a\n- b\n")


def test_manifest_result_defaults():
    result = ManifestResult(name="deployment.yaml")
    assert result.object_violations == {}
    assert result.violations_count == 0