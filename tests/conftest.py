"""
Shared fixtures for buildpack manifest validator tests.
"""

import pytest

from buildpack_manifest import cli_config, schema_validator

VALID_MANIFEST = """\
---
language: ruby
default_versions:
- name: ruby
  version: 2.4.2
- name: bundler
  version: 1.15.4
dependency_deprecation_dates:
- version_line: 2.2.x
  name: ruby
  date: "2018-03-31"
  link: https://www.ruby-lang.org/en/news/2017/09/14/ruby-2-2-8-released/
dependencies:
- name: ruby
  version: 2.3.5
  uri: https://buildpacks.cloudfoundry.org/dependencies/ruby/ruby-2.3.5-linux-x64.tgz
  sha256: 2d49b4cf1e0c9d2a6e1d8c7f2a8d64b1f8d4c97c1e1d0c79e65f0f8f2c1e7a3b
  cf_stacks:
  - cflinuxfs2
- name: ruby
  version: 2.4.2
  uri: https://buildpacks.cloudfoundry.org/dependencies/ruby/ruby-2.4.2-linux-x64.tgz
  sha256: 7a4e8b3c5fd1e2a6b5e7d1c2f3a4b5c6d7e8f9a0b1c2d3e4f5a6b7c8d9e0f1a2
  cf_stacks:
  - cflinuxfs2
- name: bundler
  version: 1.15.4
  uri: https://buildpacks.cloudfoundry.org/dependencies/bundler/bundler-1.15.4.tgz
  md5: 0123456789abcdef0123456789abcdef
  cf_stacks:
  - cflinuxfs2
"""


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path, monkeypatch):
    """Keep user config files and BUILDPACK_MANIFEST_* variables out of tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    for key in (
        "BUILDPACK_MANIFEST_SCHEMA",
        "BUILDPACK_MANIFEST_OUTPUT_FORMAT",
        "BUILDPACK_MANIFEST_MAX_FILE_SIZE_MB",
        "BUILDPACK_MANIFEST_LOG_LEVEL",
    ):
        monkeypatch.delenv(key, raising=False)
    cli_config.reset_config()
    schema_validator.clear_cache()
    yield
    cli_config.reset_config()
    schema_validator.clear_cache()


@pytest.fixture
def temp_dir(tmp_path):
    """Directory for manifests written by a test."""
    manifests = tmp_path / "manifests"
    manifests.mkdir()
    return manifests


@pytest.fixture
def write_manifest(temp_dir):
    """Write manifest text to a file and return its path."""

    def _write(content: str, name: str = "manifest.yml"):
        path = temp_dir / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def valid_manifest(write_manifest):
    return write_manifest(VALID_MANIFEST)


def manifest_with(default_versions: str, dependencies: str) -> str:
    """Build manifest text from YAML fragments for the two sections."""
    return (
        "---\nlanguage: ruby\n"
        f"default_versions:\n{default_versions}"
        f"dependencies:\n{dependencies}"
    )


def dependency_yaml(name: str, version: str) -> str:
    return (
        f"- name: {name}\n"
        f"  version: '{version}'\n"
        f"  uri: https://example.com/{name}-{version}.tgz\n"
    )


def default_yaml(name: str, version: str) -> str:
    return f"- name: {name}\n  version: '{version}'\n"
