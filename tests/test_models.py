"""
Tests for domain models — profiles, specs, platform and results.
"""

import pytest
from pydantic import ValidationError

from release_installer.core.models import (
    ArchToken,
    ArtifactProfile,
    ConfigFile,
    InstallationResult,
    InstallStage,
    OsFamily,
    PlatformDescriptor,
    ReleaseArtifact,
    ServiceManager,
    ServiceProfile,
    ServiceSpec,
)


def _profile(**overrides) -> ArtifactProfile:
    data = {
        "name": "tool",
        "repo": "acme/tool",
        "asset_template": "tool-{version}.linux-{arch}.tar.gz",
        "binary_name": "tool",
    }
    data.update(overrides)
    return ArtifactProfile.model_validate(data)


class TestArtifactProfile:
    def test_minimal(self):
        p = _profile()
        assert p.service is None
        assert p.supported_arches == [ArchToken.AMD64, ArchToken.ARM64, ArchToken.ARMV7]
        assert p.verify_args == ["--version"]
        assert p.owner() is None

    def test_owner_from_account(self):
        assert _profile(account="tool").owner() == ("tool", "tool")

    def test_arch_alias(self):
        p = _profile(arch_aliases={"amd64": "x86_64"})
        assert p.arch_name(ArchToken.AMD64) == "x86_64"
        assert p.arch_name(ArchToken.ARM64) == "arm64"

    @pytest.mark.parametrize("repo", ["tool", "/tool", "acme/", "a/b/c"])
    def test_bad_repo(self, repo):
        with pytest.raises(ValidationError, match="owner/name"):
            _profile(repo=repo)

    def test_unknown_asset_placeholder(self):
        with pytest.raises(ValidationError, match="unknown placeholder"):
            _profile(asset_template="tool-{release}.tar.gz")

    def test_binary_name_must_be_plain(self):
        with pytest.raises(ValidationError):
            _profile(binary_name="bin/tool")

    @pytest.mark.parametrize("name", ["../../tmp/evil x", "", "-rf", ".hidden", "tool\n", "a b"])
    def test_unsafe_name(self, name):
        with pytest.raises(ValidationError, match="name must start"):
            _profile(name=name)

    @pytest.mark.parametrize("name", ["node_exporter", "docker-compose", "tool.v2", "agent@eu1"])
    def test_safe_name(self, name):
        assert _profile(name=name).name == name

    def test_unknown_arch_alias_key(self):
        with pytest.raises(ValidationError):
            _profile(arch_aliases={"i386": "x86"})


class TestServiceProfile:
    def test_defaults(self):
        s = ServiceProfile(listen_address="127.0.0.1:9100")
        assert s.restart_policy == "always"
        assert s.health_path == "/metrics"

    def test_unknown_arg_placeholder(self):
        with pytest.raises(ValidationError, match="unknown placeholder"):
            ServiceProfile(listen_address="127.0.0.1:1", args=["--port={port}"])

    def test_health_path_absolute(self):
        with pytest.raises(ValidationError):
            ServiceProfile(listen_address="127.0.0.1:1", health_path="metrics")


class TestConfigFile:
    def test_relative_path_required(self):
        with pytest.raises(ValidationError):
            ConfigFile(path="/etc/tool.yml", content="")

    def test_no_parent_escape(self):
        with pytest.raises(ValidationError):
            ConfigFile(path="../tool.yml", content="")

    def test_default_mode(self):
        assert ConfigFile(path="tool/tool.yml", content="x").mode == 0o644


class TestPlatformDescriptor:
    def test_frozen(self):
        d = PlatformDescriptor(
            os_family=OsFamily.DEBIAN, arch=ArchToken.AMD64, service_manager=ServiceManager.SYSTEMD,
        )
        with pytest.raises(ValidationError):
            d.arch = ArchToken.ARM64

    def test_label(self):
        d = PlatformDescriptor(
            os_family=OsFamily.ALPINE, arch=ArchToken.ARM64, service_manager=ServiceManager.OPENRC,
        )
        assert d.label() == "alpine/arm64 (openrc)"


class TestServiceSpec:
    def test_command_line(self):
        spec = ServiceSpec(name="tool", exec_path="/usr/local/bin/tool", args=("--a", "--b"))
        assert spec.command_line == ["/usr/local/bin/tool", "--a", "--b"]

    def test_equal_specs_compare_equal(self):
        a = ServiceSpec(name="tool", exec_path="/bin/tool")
        b = ServiceSpec(name="tool", exec_path="/bin/tool")
        assert a == b


class TestReleaseArtifact:
    def test_defaults(self):
        a = ReleaseArtifact(version="1.2.3", tag="v1.2.3", download_url="https://x/y")
        assert a.local_temp_path is None
        assert a.expected_non_empty is True


class TestInstallationResult:
    def test_to_dict_failure(self):
        r = InstallationResult(
            profile="tool",
            failure_stage=InstallStage.RESOLVE,
            error="boom",
            error_type="VersionResolutionError",
            exit_code=11,
        )
        d = r.to_dict()
        assert d["success"] is False
        assert d["failure_stage"] == "resolve"
        assert d["exit_code"] == 11

    def test_to_dict_success(self):
        r = InstallationResult(profile="tool", success=True, installed_version="1.2.3")
        d = r.to_dict()
        assert d["success"] is True
        assert d["failure_stage"] is None
        assert d["warnings"] == []


class TestPackageExports:
    def test_all_names_come_from_their_modules(self):
        import importlib

        import release_installer.core.models as models

        for name in models.__all__:
            obj = getattr(models, name)
            owner = getattr(obj, "__module__", None)
            if owner is not None and owner.startswith("release_installer.core.models."):
                assert getattr(importlib.import_module(owner), name) is obj
        assert len(set(models.__all__)) == len(models.__all__)
