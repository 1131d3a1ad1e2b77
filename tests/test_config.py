"""
Tests for installer.yml loading — defaults, merging, validation errors.
"""

import textwrap
from pathlib import Path

import pytest

from release_installer.core.config.loader import (
    CONFIG_FILE,
    ConfigError,
    InstallerConfig,
    find_config_file,
    load_config,
    merge_profiles,
    resolve_config_path,
)
from release_installer.core.models.platform import ServiceManager


def _write(tmp_path: Path, content: str) -> Path:
    path = tmp_path / CONFIG_FILE
    path.write_text(textwrap.dedent(content))
    return path


class TestDefaults:
    def test_no_file_uses_defaults(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("RI_CONFIG", raising=False)
        config = load_config()
        assert isinstance(config, InstallerConfig)
        assert config.default_profile == "node_exporter"
        assert config.require_root is True
        assert config.paths.bin_dir == "/usr/local/bin"
        assert set(config.profiles) == {"node_exporter", "blackbox_exporter", "docker_compose"}

    def test_builtin_node_exporter(self, tmp_path: Path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("RI_CONFIG", raising=False)
        p = load_config().get_profile()
        assert p.name == "node_exporter"
        assert p.service is not None
        assert p.service.listen_address == "127.0.0.1:9100"
        assert p.account == "node_exporter"

    def test_empty_file(self, tmp_path: Path):
        config = load_config(_write(tmp_path, ""))
        assert config.default_profile == "node_exporter"


class TestLookup:
    def test_find_walks_up(self, tmp_path: Path):
        _write(tmp_path, "version: 1\n")
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == tmp_path / CONFIG_FILE

    def test_find_none(self, tmp_path: Path):
        assert find_config_file(tmp_path) is None

    def test_env_var(self, tmp_path: Path, monkeypatch):
        path = _write(tmp_path, "default_profile: blackbox_exporter\n")
        monkeypatch.setenv("RI_CONFIG", str(path))
        assert resolve_config_path() == path
        assert load_config().default_profile == "blackbox_exporter"

    def test_explicit_beats_env(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("RI_CONFIG", "/nonexistent.yml")
        explicit = tmp_path / "x.yml"
        assert resolve_config_path(explicit) == explicit


class TestMerging:
    def test_override_builtin_service_key(self, tmp_path: Path):
        config = load_config(_write(tmp_path, """\
            profiles:
              node_exporter:
                service:
                  listen_address: "0.0.0.0:9100"
        """))
        p = config.get_profile("node_exporter")
        assert p.service.listen_address == "0.0.0.0:9100"
        # The rest of the built-in service survives the merge
        assert p.service.health_marker == "node_exporter"
        assert p.repo == "prometheus/node_exporter"

    def test_add_user_profile(self, tmp_path: Path):
        config = load_config(_write(tmp_path, """\
            default_profile: mytool
            profiles:
              mytool:
                repo: acme/mytool
                asset_template: "mytool_{version}_linux_{arch}.tar.gz"
                binary_name: mytool
        """))
        p = config.get_profile()
        assert p.name == "mytool"
        assert p.service is None

    def test_merge_does_not_mutate_builtins(self):
        merge_profiles({"node_exporter": {"service": {"listen_address": "1.2.3.4:1"}}})
        fresh = merge_profiles(None)
        assert fresh["node_exporter"]["service"]["listen_address"] == "127.0.0.1:9100"

    def test_service_manager_override(self, tmp_path: Path):
        config = load_config(_write(tmp_path, "service_manager: openrc\n"))
        assert config.service_manager is ServiceManager.OPENRC


class TestErrors:
    def test_missing_explicit_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(_write(tmp_path, "paths: [unclosed\n"))

    def test_not_a_mapping(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="mapping"):
            load_config(_write(tmp_path, "- a\n- b\n"))

    def test_profile_not_a_mapping(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_config(_write(tmp_path, "profiles:\n  bad: 3\n"))

    def test_schema_violation(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Invalid installer configuration"):
            load_config(_write(tmp_path, """\
                profiles:
                  bad:
                    repo: nope
                    asset_template: x
                    binary_name: x
            """))

    def test_profile_name_with_path_rejected(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="name must start"):
            load_config(_write(tmp_path, """\
                profiles:
                  "../../tmp/evil x":
                    repo: acme/tool
                    asset_template: tool.tar.gz
                    binary_name: tool
            """))

    def test_unknown_default_profile(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="default_profile"):
            load_config(_write(tmp_path, "default_profile: ghost\n"))

    def test_get_unknown_profile(self, tmp_path: Path):
        config = load_config(_write(tmp_path, ""))
        with pytest.raises(ConfigError, match="Unknown profile 'ghost'"):
            config.get_profile("ghost")
