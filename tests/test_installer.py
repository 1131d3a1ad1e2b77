"""
Tests for binary placement, config files and service accounts.
"""

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import completed
from release_installer.core.errors import InstallationError
from release_installer.core.models.platform import OsFamily
from release_installer.core.models.profile import ConfigFile
from release_installer.core.services.artifact_install.execution.accounts import (
    ensure_service_account,
)
from release_installer.core.services.artifact_install.execution.installer import (
    install_binary,
    write_config_file,
)

ACCOUNTS = "release_installer.core.services.artifact_install.execution.accounts"


def _source(tmp_path: Path, data: bytes = b"\x7fELF-binary") -> Path:
    src = tmp_path / "work" / "tool"
    src.parent.mkdir(parents=True, exist_ok=True)
    src.write_bytes(data)
    return src


class TestInstallBinary:
    def test_installs_with_mode(self, tmp_path: Path):
        target = tmp_path / "bin" / "tool"
        result = install_binary(_source(tmp_path), target)
        assert result.status == "installed"
        assert not result.already_installed
        assert target.read_bytes() == b"\x7fELF-binary"
        assert stat.S_IMODE(target.stat().st_mode) == 0o755

    def test_second_call_is_already_installed(self, tmp_path: Path):
        target = tmp_path / "bin" / "tool"
        install_binary(_source(tmp_path), target)
        before = target.stat()

        again = install_binary(_source(tmp_path, b"different"), target)
        assert again.already_installed
        assert target.read_bytes() == b"\x7fELF-binary"
        assert target.stat().st_mtime_ns == before.st_mtime_ns

    def test_no_temp_files_left(self, tmp_path: Path):
        target = tmp_path / "bin" / "tool"
        install_binary(_source(tmp_path), target)
        assert [p.name for p in target.parent.iterdir()] == ["tool"]

    def test_owner_applied(self, tmp_path: Path):
        target = tmp_path / "bin" / "tool"
        with patch("shutil.chown") as chown:
            install_binary(_source(tmp_path), target, owner=("tool", "tool"))
        chown.assert_called_once()
        assert chown.call_args.kwargs == {"user": "tool", "group": "tool"}

    def test_unknown_owner_is_installation_error(self, tmp_path: Path):
        target = tmp_path / "bin" / "tool"
        with patch("shutil.chown", side_effect=LookupError("no such user: ghost")):
            with pytest.raises(InstallationError, match="ghost"):
                install_binary(_source(tmp_path), target, owner=("ghost", "ghost"))
        assert not target.exists()
        assert list(target.parent.iterdir()) == []

    def test_empty_source(self, tmp_path: Path):
        with pytest.raises(InstallationError, match="empty"):
            install_binary(_source(tmp_path, b""), tmp_path / "bin" / "tool")

    def test_missing_source(self, tmp_path: Path):
        with pytest.raises(InstallationError, match="missing") as info:
            install_binary(tmp_path / "nope", tmp_path / "bin" / "tool")
        assert info.value.exit_code == 13

    def test_concurrent_target_not_clobbered(self, tmp_path: Path):
        target = tmp_path / "bin" / "tool"
        target.parent.mkdir()

        real_link = os.link

        def racing_link(src, dst):
            Path(dst).write_bytes(b"winner")
            return real_link(src, dst)

        with patch("os.link", side_effect=racing_link):
            result = install_binary(_source(tmp_path), target)
        assert result.already_installed
        assert target.read_bytes() == b"winner"


class TestWriteConfigFile:
    def test_writes_when_absent(self, tmp_path: Path):
        cfg = ConfigFile(path="tool/tool.yml", content="a: 1\n", mode=0o640)
        assert write_config_file(cfg, tmp_path) is True
        written = tmp_path / "tool" / "tool.yml"
        assert written.read_text() == "a: 1\n"
        assert stat.S_IMODE(written.stat().st_mode) == 0o640

    def test_keeps_existing(self, tmp_path: Path):
        existing = tmp_path / "tool" / "tool.yml"
        existing.parent.mkdir()
        existing.write_text("custom: true\n")
        cfg = ConfigFile(path="tool/tool.yml", content="a: 1\n")
        assert write_config_file(cfg, tmp_path) is False
        assert existing.read_text() == "custom: true\n"

    def test_relative_path_override(self, tmp_path: Path):
        cfg = ConfigFile(path="{name}/x.yml", content="x")
        write_config_file(cfg, tmp_path, relative_path="tool/x.yml")
        assert (tmp_path / "tool" / "x.yml").is_file()

    def test_owner_on_new_directory(self, tmp_path: Path):
        cfg = ConfigFile(path="tool/tool.yml", content="x")
        with patch("shutil.chown") as chown:
            write_config_file(cfg, tmp_path, owner=("tool", "tool"))
        chowned = [c.args[0] for c in chown.call_args_list]
        assert tmp_path / "tool" in chowned
        assert len(chowned) == 2


class TestEnsureServiceAccount:
    def test_existing_account_runs_nothing(self):
        with patch(f"{ACCOUNTS}._group_exists", return_value=True), \
             patch(f"{ACCOUNTS}._user_exists", return_value=True), \
             patch("subprocess.run") as run:
            assert ensure_service_account("tool", "tool", OsFamily.DEBIAN) is False
        run.assert_not_called()

    def test_debian_commands(self):
        with patch(f"{ACCOUNTS}._group_exists", return_value=False), \
             patch(f"{ACCOUNTS}._user_exists", return_value=False), \
             patch("subprocess.run", return_value=completed()) as run:
            assert ensure_service_account("tool", "tool", OsFamily.DEBIAN) is True
        argv = [c.args[0] for c in run.call_args_list]
        assert argv[0] == ["groupadd", "--system", "tool"]
        assert argv[1][:2] == ["useradd", "--system"]
        assert "--no-create-home" in argv[1]
        assert argv[1][-1] == "tool"

    def test_alpine_commands(self):
        with patch(f"{ACCOUNTS}._group_exists", return_value=False), \
             patch(f"{ACCOUNTS}._user_exists", return_value=False), \
             patch("subprocess.run", return_value=completed()) as run:
            ensure_service_account("tool", "tool", OsFamily.ALPINE)
        argv = [c.args[0] for c in run.call_args_list]
        assert argv[0] == ["addgroup", "-S", "tool"]
        assert argv[1] == ["adduser", "-D", "-S", "-H", "-s", "/bin/false", "-G", "tool", "tool"]

    def test_failure_is_installation_error(self):
        with patch(f"{ACCOUNTS}._group_exists", return_value=True), \
             patch(f"{ACCOUNTS}._user_exists", return_value=False), \
             patch("subprocess.run", return_value=completed(returncode=9, stderr="useradd: exists")):
            with pytest.raises(InstallationError, match="useradd: exists"):
                ensure_service_account("tool", "tool", OsFamily.DEBIAN)
