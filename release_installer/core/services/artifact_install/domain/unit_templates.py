"""
L1 Domain — Service descriptor rendering (pure).

Turns a ``ServiceSpec`` into the text of a systemd unit, an OpenRC init
script, or an OpenRC conf.d file.  No I/O, no clock, no environment:
identical specs always render to byte-identical text.
"""

from __future__ import annotations

import re
import shlex

from release_installer.core.models.service import RestartPolicy, ServiceSpec

MANAGED_MARKER = "# Managed by release-installer. Re-running the installer rewrites this file."

RESTART_DELAY_SECONDS = 5

_SYSTEMD_UNIT_TEMPLATE = """\
{marker}
[Unit]
Description={description}
Wants=network-online.target
After=network-online.target

[Service]
Type=simple
User={user}
Group={group}
ExecStart={exec_start}
{restart_block}{log_block}
[Install]
WantedBy=multi-user.target
"""

_OPENRC_SCRIPT_TEMPLATE = """\
#!/sbin/openrc-run
{marker}

name="{name}"
description="{description}"
command="{command}"
command_args="{command_args}"
command_user="{user}:{group}"
pidfile="{pid_file}"
{log_block}{supervisor_block}
depend() {{
    need net
    after firewall
}}

start_pre() {{
    checkpath --directory --mode 0755 "$(dirname "$pidfile")"
{log_checkpath}}}
"""

_SYSTEMD_NEEDS_QUOTES = re.compile(r"""[\s"'\\;]""")


def _systemd_quote(arg: str) -> str:
    """Quote one ExecStart word.

    ``%`` and ``$`` are doubled so systemd passes them through literally.
    """
    escaped = arg.replace("%", "%%").replace("$", "$$")
    if escaped and not _SYSTEMD_NEEDS_QUOTES.search(escaped):
        return escaped
    escaped = escaped.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _sh_double_quoted(value: str) -> str:
    """Escape ``value`` for use between double quotes in a POSIX shell."""
    for ch in ("\\", '"', "$", "`"):
        value = value.replace(ch, "\\" + ch)
    return value


def _description(spec: ServiceSpec) -> str:
    return spec.description or spec.name


def render_systemd_unit(spec: ServiceSpec) -> str:
    """Render ``/etc/systemd/system/<name>.service``.

    systemd tracks the main PID itself, so ``spec.pid_file`` is not
    used here.  Output goes to ``spec.log_file`` when set, else the journal.
    """
    if spec.restart_policy is RestartPolicy.ALWAYS:
        restart_block = f"Restart=always\nRestartSec={RESTART_DELAY_SECONDS}\n"
    else:
        restart_block = "Restart=no\n"

    log_block = ""
    if spec.log_file:
        log_block = (
            f"StandardOutput=append:{spec.log_file}\n"
            f"StandardError=append:{spec.log_file}\n"
        )

    return _SYSTEMD_UNIT_TEMPLATE.format(
        marker=MANAGED_MARKER,
        description=_description(spec),
        user=spec.user,
        group=spec.group,
        exec_start=" ".join(_systemd_quote(a) for a in spec.command_line),
        restart_block=restart_block,
        log_block=log_block,
    )


def render_openrc_script(spec: ServiceSpec) -> str:
    """Render ``/etc/init.d/<name>``.

    Arguments come from ``$<NAME>_OPTS``, set in ``/etc/conf.d/<name>``
    (see ``render_openrc_conf``), which OpenRC sources before the script.

    ``always`` runs under supervise-daemon, which respawns the process;
    ``none`` backgrounds it once through start-stop-daemon.
    """
    if spec.restart_policy is RestartPolicy.ALWAYS:
        supervisor_block = (
            'supervisor="supervise-daemon"\n'
            f"respawn_delay={RESTART_DELAY_SECONDS}\n"
            "respawn_max=0\n"
        )
    else:
        supervisor_block = 'command_background="yes"\n'

    log_block = ""
    log_checkpath = ""
    if spec.log_file:
        log_block = (
            f'output_log="{_sh_double_quoted(spec.log_file)}"\n'
            f'error_log="{_sh_double_quoted(spec.log_file)}"\n'
        )
        log_checkpath = (
            "    checkpath --file --mode 0640 "
            f'--owner {spec.user}:{spec.group} "$output_log"\n'
        )

    pid_file = spec.pid_file or f"/var/run/{spec.name}.pid"

    return _OPENRC_SCRIPT_TEMPLATE.format(
        marker=MANAGED_MARKER,
        name=_sh_double_quoted(spec.name),
        description=_sh_double_quoted(_description(spec)),
        command=_sh_double_quoted(spec.exec_path),
        command_args=f"${{{openrc_opts_variable(spec.name)}}}",
        user=spec.user,
        group=spec.group,
        pid_file=_sh_double_quoted(pid_file),
        log_block=log_block,
        supervisor_block=supervisor_block,
        log_checkpath=log_checkpath,
    )


def openrc_opts_variable(name: str) -> str:
    """``node_exporter`` → ``NODE_EXPORTER_OPTS``."""
    return re.sub(r"[^A-Za-z0-9]", "_", name).upper() + "_OPTS"


def render_openrc_conf(spec: ServiceSpec) -> str:
    """Render ``/etc/conf.d/<name>`` holding the service's arguments."""
    return (
        f"{MANAGED_MARKER}\n"
        f'{openrc_opts_variable(spec.name)}="{_sh_double_quoted(shlex.join(spec.args))}"\n'
    )
