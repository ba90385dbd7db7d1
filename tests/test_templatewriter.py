from dataclasses import dataclass, field

import pytest

from draftkit.osutil import copy_dir
from draftkit.templatewriter import FileMapWriter, LocalFSWriter, TemplateWriter


@dataclass
class Var:
    name: str
    value: str = ""


@dataclass
class Config:
    variables: list = field(default_factory=list)
    file_name_override_map: dict = field(default_factory=dict)


def test_copy_dir_to_file_map(tmp_path):
    source = tmp_path / "addons" / "azure" / "webapp_routing"
    source.mkdir(parents=True)
    (source / "ingress.yaml").write_text(
        "host: {{ingress-host}}\n"
        "uri: {{ingress-tls-cert-keyvault-uri}}\n"
        "mtls: {{ingress-use-osm-mtls}}\n"
    )
    (source / "draft.yaml").write_text("variables: []\n")

    writer = FileMapWriter()
    config = Config(
        variables=[
            Var("ingress-tls-cert-keyvault-uri", "https://test.vault.azure.net/secrets/test-secret"),
            Var("ingress-use-osm-mtls", "true"),
            Var("ingress-host", "testhost.com"),
        ]
    )
    copy_dir(tmp_path, "addons/azure/webapp_routing", "/test/dir", config, writer)

    assert "/test/dir/ingress.yaml" in writer.file_map
    assert "/test/dir/draft.yaml" not in writer.file_map
    content = writer.file_map["/test/dir/ingress.yaml"].decode()
    assert "host: testhost.com" in content
    assert "mtls: true" in content


def test_file_map_writer_overwrites():
    writer = FileMapWriter()
    writer.write_file("a", b"1")
    writer.write_file("a", b"2")
    writer.ensure_directory("anything")
    assert writer.file_map == {"a": b"2"}


def test_local_fs_writer_round_trip(tmp_path):
    writer = LocalFSWriter()
    target = tmp_path / "out.txt"
    writer.write_file(str(target), b"first line that is long")
    writer.write_file(str(target), b"short")
    assert target.read_bytes() == b"short"


def test_local_fs_writer_ensure_directory(tmp_path):
    writer = LocalFSWriter()
    nested = tmp_path / "a" / "b"
    writer.ensure_directory(str(nested))
    assert nested.is_dir()


def test_local_fs_writer_ensure_directory_on_file(tmp_path):
    file_path = tmp_path / "f"
    file_path.write_text("x")
    with pytest.raises(NotADirectoryError):
        LocalFSWriter().ensure_directory(str(file_path))


def test_template_writer_is_abstract():
    with pytest.raises(TypeError):
        TemplateWriter()