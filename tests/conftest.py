"""
Shared test fixtures and configuration.

Nothing here touches the real system: every path an install writes to
is redirected into ``tmp_path``, network access goes through
``FakeUrlopen`` and commands through a patched ``subprocess.run``.
"""

import contextlib
import http.client
import io
import subprocess
import tarfile
import textwrap
import urllib.error
from pathlib import Path
from unittest.mock import patch

import pytest

ACCOUNTS = "release_installer.core.services.artifact_install.execution.accounts"

DEBIAN_OS_RELEASE = textwrap.dedent("""\
    PRETTY_NAME="Debian GNU/Linux 12 (bookworm)"
    NAME="Debian GNU/Linux"
    VERSION_ID="12"
    ID=debian
""")

ALPINE_OS_RELEASE = textwrap.dedent("""\
    NAME="Alpine Linux"
    ID=alpine
    VERSION_ID=3.19.1
    PRETTY_NAME="Alpine Linux v3.19"
""")

UBUNTU_OS_RELEASE = textwrap.dedent("""\
    NAME="Ubuntu"
    ID=ubuntu
    ID_LIKE=debian
    PRETTY_NAME="Ubuntu 22.04.4 LTS"
""")


class FakeResponse(io.BytesIO):
    """Minimal stand-in for the object ``urlopen`` returns."""

    def __init__(self, body: bytes = b"", status: int = 200, headers: dict | None = None):
        super().__init__(body)
        self.status = status
        self.headers = headers or {}


class CutShortResponse(FakeResponse):
    """A response whose body read fails part-way through."""

    def read(self, size=-1):
        raise http.client.IncompleteRead(b"0123456789", 990)


class FakeUrlopen:
    """Route ``urlopen`` calls by URL.

    ``routes`` maps a URL (or a URL prefix ending in ``*``) to bytes, an
    int HTTP error code, or an exception instance.  Every requested URL
    is recorded in ``calls``.
    """

    def __init__(self, routes: dict):
        self.routes = routes
        self.calls: list[str] = []

    def _lookup(self, url: str):
        if url in self.routes:
            return self.routes[url]
        for key, value in self.routes.items():
            if key.endswith("*") and url.startswith(key[:-1]):
                return value
        raise urllib.error.URLError(f"no route for {url}")

    def __call__(self, req, timeout=None):
        url = req.full_url if hasattr(req, "full_url") else req
        self.calls.append(url)
        value = self._lookup(url)
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, int):
            raise urllib.error.HTTPError(url, value, "error", {}, None)
        return FakeResponse(value)


def completed(cmd=None, returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(cmd or [], returncode, stdout=stdout, stderr=stderr)


def make_tarball(path: Path, members: dict[str, bytes]) -> Path:
    """Write a tar.gz at ``path`` with the given ``{name: content}`` members."""
    with tarfile.open(path, "w:gz") as tar:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            info.mode = 0o755
            tar.addfile(info, io.BytesIO(data))
    return path


def tarball_bytes(tmp_path: Path, members: dict[str, bytes]) -> bytes:
    return make_tarball(tmp_path / "bundle.tar.gz", members).read_bytes()


@pytest.fixture
def install_root(tmp_path: Path) -> Path:
    """Root directory standing in for ``/`` during an install."""
    root = tmp_path / "root"
    root.mkdir()
    return root


@pytest.fixture
def write_config(install_root: Path, tmp_path: Path):
    """Write an installer.yml with every path under ``install_root``.

    Returns a function ``(os_release_text, extra_yaml="") -> Path``.
    """

    def _write(os_release_text: str = DEBIAN_OS_RELEASE, extra: str = "") -> Path:
        os_release = tmp_path / "os-release"
        os_release.write_text(os_release_text)
        content = textwrap.dedent(f"""\
            require_root: false
            paths:
              bin_dir: {install_root}/usr/local/bin
              config_dir: {install_root}/etc
              systemd_unit_dir: {install_root}/etc/systemd/system
              openrc_init_dir: {install_root}/etc/init.d
              openrc_conf_dir: {install_root}/etc/conf.d
              log_dir: {install_root}/var/log
              run_dir: {install_root}/var/run
              tmp_dir: {tmp_path}/work
              os_release: {os_release}
            verification:
              initial_delay: 0
              max_wait: 2
              interval: 1
              timeout: 1
        """) + textwrap.dedent(extra)
        config = tmp_path / "installer.yml"
        config.write_text(content)
        return config

    return _write


# ── A user-defined profile served by a fake release index ──────────

TOOL_API = "https://api.github.com/repos/acme/tool/releases/latest"
TOOL_HEALTH = "http://127.0.0.1:9999/metrics"

TOOL_PROFILE = """\
default_profile: tool
profiles:
  tool:
    repo: acme/tool
    asset_template: "tool-{version}.linux-{arch}.tar.gz"
    binary_name: tool
    account: tool
    service:
      description: Test tool
      listen_address: "127.0.0.1:9999"
      args: ["--web.listen-address={listen_address}"]
      health_marker: tool_build_info
    usage_hints:
      - "curl http://{listen_address}/metrics"
"""


def tool_asset_url(version: str, arch: str = "amd64") -> str:
    return (
        f"https://github.com/acme/tool/releases/download/v{version}/"
        f"tool-{version}.linux-{arch}.tar.gz"
    )


@contextlib.contextmanager
def fake_host(routes: dict, *, machine: str = "x86_64", run_result=None):
    """Patch network, machine type, accounts, chown and subprocess.

    Yields ``(FakeUrlopen, subprocess.run mock)``.
    """
    fake = FakeUrlopen(routes)
    with contextlib.ExitStack() as stack:
        stack.enter_context(patch("urllib.request.urlopen", new=fake))
        stack.enter_context(patch("platform.machine", return_value=machine))
        stack.enter_context(patch(f"{ACCOUNTS}._group_exists", return_value=True))
        stack.enter_context(patch(f"{ACCOUNTS}._user_exists", return_value=True))
        stack.enter_context(patch("shutil.chown"))
        run = stack.enter_context(
            patch("subprocess.run", return_value=run_result or completed(stdout="active\n"))
        )
        yield fake, run
