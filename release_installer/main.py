"""
release-installer — CLI entrypoint.

Usage:
    release-installer --help
    release-installer install                  # default profile
    release-installer install blackbox_exporter --release v0.25.0
    release-installer config check
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from release_installer import __version__
from release_installer.core.errors import EXIT_CONFIG_ERROR, EXIT_INTERRUPTED, EXIT_UNEXPECTED
from release_installer.core.observability.logging_config import resolve_level, setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="release-installer")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to installer.yml (default: RI_CONFIG or auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """release-installer — install release binaries as supervised services."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    setup_logging(
        level=resolve_level(
            debug=debug,
            verbose=verbose,
            quiet=quiet,
            env_level=os.environ.get("RI_LOG_LEVEL"),
        ),
        log_file=os.environ.get("RI_LOG_FILE"),
        log_file_level=os.environ.get("RI_LOG_FILE_LEVEL"),
    )


def _fail_line(stage: str | None, category: str | None, message: str | None) -> str:
    prefix = f"[{stage}] " if stage else ""
    label = f"{category}: " if category else ""
    return f"❌ {prefix}{label}{message}"


@cli.command()
@click.argument("profile", required=False)
@click.option("--release", "release_tag", default=None, help="Install this release tag instead of the latest.")
@click.option("--dry-run", is_flag=True, help="Plan but don't change anything.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    profile: str | None,
    release_tag: str | None,
    dry_run: bool,
    as_json: bool,
) -> None:
    """Install PROFILE (default: the configured default profile).

    Examples:

        release-installer install

        release-installer install blackbox_exporter

        release-installer install node_exporter --release v1.8.2 --dry-run
    """
    from release_installer.core.use_cases.install import run_install

    try:
        run = run_install(
            profile,
            config_path=ctx.obj.get("config_path"),
            release_tag=release_tag,
            dry_run=dry_run,
        )
    except KeyboardInterrupt:
        click.secho("\n❌ Interrupted — temporary files removed", fg="red", err=True)
        sys.exit(EXIT_INTERRUPTED)
    except Exception as e:
        if ctx.obj.get("debug"):
            raise
        click.secho(f"❌ Unexpected error: {e}", fg="red", err=True)
        click.echo("   Re-run with --debug for a traceback.", err=True)
        sys.exit(EXIT_UNEXPECTED)

    if as_json:
        click.echo(json.dumps(run.to_dict(), indent=2))
        sys.exit(run.exit_code)

    if run.error:
        click.secho(_fail_line(run.failure_stage, run.error_type, run.error), fg="red", err=True)
        if run.result:
            for warn in run.result.warnings:
                click.secho(f"⚠️  {warn}", fg="yellow", err=True)
        sys.exit(run.exit_code)

    if run.plan is not None:
        _print_plan(run.plan)
        return

    result = run.result
    if result is None:
        click.secho("❌ Install finished without a result", fg="red", err=True)
        sys.exit(EXIT_UNEXPECTED)
    quiet = ctx.obj.get("quiet", False)

    if result.already_installed:
        click.secho(f"✅ {result.profile} already installed at {result.binary_path}", fg="green", bold=True)
    else:
        click.secho(
            f"✅ Installed {result.profile} {result.installed_version} → {result.binary_path}",
            fg="green",
            bold=True,
        )

    if not quiet:
        if result.platform:
            p = result.platform
            click.echo(f"   Platform: {p['os_family']}/{p['arch']} ({p['service_manager']})")
        if result.unit_path:
            state = "active" if result.service_active else "not active"
            click.echo(f"   Service:  {result.unit_path} ({state})")
        if result.verification_endpoint:
            click.echo(f"   Endpoint: {result.verification_endpoint}")

    for warn in result.warnings:
        click.secho(f"⚠️  {warn}", fg="yellow")

    if run.usage_hints and not quiet:
        click.echo()
        for hint in run.usage_hints:
            click.echo(f"   {hint}")

    click.echo()


def _print_plan(plan: dict) -> None:
    p = plan["platform"]
    click.secho(f"\n📋 [dry-run] {plan['profile']}", fg="cyan", bold=True)
    click.echo(f"   Platform: {p['os_family']}/{p['arch']} ({p['service_manager']})")
    click.echo(f"   Binary:   {plan['binary_path']}")
    if plan["already_installed"]:
        click.secho("   Already installed — download would be skipped", fg="yellow")
    else:
        click.echo(f"   Version:  {plan['version']}")
        click.echo(f"   Download: {plan['download_url']}")
    if plan["account"]:
        click.echo(f"   Account:  {plan['account']}")
    if plan["verification_endpoint"]:
        click.echo(f"   Verify:   {plan['verification_endpoint']}")
    for desc in plan["descriptors"]:
        click.echo()
        click.secho(f"   ── {desc['path']} (mode {desc['mode']})", fg="white", bold=True)
        for line in desc["content"].splitlines():
            click.echo(f"     │ {line}")
    click.echo()


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def detect(ctx: click.Context, as_json: bool) -> None:
    """Detect the OS family, architecture and service manager."""
    from release_installer.core.use_cases.detect import run_detect

    result = run_detect(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    platform = result.platform
    if result.error or platform is None:
        click.secho(f"❌ {result.error or 'Platform not detected'}", fg="red", err=True)
        sys.exit(result.exit_code or EXIT_UNEXPECTED)

    override = " (from config)" if result.manager_overridden else ""
    click.secho("\n🔍 Platform", fg="cyan", bold=True)
    click.echo(f"   OS family:       {platform.os_family}")
    click.echo(f"   Architecture:    {platform.arch}")
    click.echo(f"   Service manager: {platform.service_manager}{override}")
    click.echo(f"   Source:          {result.os_release_path}")
    click.echo()


@cli.command()
@click.argument("profile", required=False)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def status(ctx: click.Context, profile: str | None, as_json: bool) -> None:
    """Show what is installed for PROFILE and whether its service runs."""
    from release_installer.core.use_cases.status import get_status

    result = get_status(profile, config_path=ctx.obj.get("config_path"))
    has_service = result.unit_path is not None
    exit_code = result.exit_code or (1 if has_service and not result.active else 0)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(exit_code)

    click.secho(f"\n📋 {result.profile}", fg="cyan", bold=True)
    mark = "✓" if result.binary_present else "✗"
    click.echo(f"   {mark} binary  {result.binary_path}")
    if has_service:
        mark = "✓" if result.unit_present else "✗"
        click.echo(f"   {mark} unit    {result.unit_path}")
        if result.service:
            color = "green" if result.active else "red"
            click.secho(f"   Service: {result.service['state']}", fg=color)
        else:
            click.secho("   Service: not installed", fg="yellow")
    click.echo()
    sys.exit(exit_code)


@cli.group()
def config() -> None:
    """Installer configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate installer.yml configuration."""
    from release_installer.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else EXIT_CONFIG_ERROR)

    if result.valid and result.config is not None:
        source = result.config_path or "(defaults)"
        click.secho("✅ Configuration is valid", fg="green", bold=True)
        click.echo(f"   Source: {source}")
        click.echo(f"   Default profile: {result.config.default_profile}")
        click.echo(f"   Profiles: {len(result.config.profiles)}")
    else:
        click.secho("❌ Configuration errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    if not result.valid:
        click.echo()
        sys.exit(EXIT_CONFIG_ERROR)

    click.echo()


# ── Register commands from release_installer/ui/cli/ ─────────────

from release_installer.ui.cli.profiles import profiles, render  # noqa: E402

cli.add_command(profiles)
cli.add_command(render)


if __name__ == "__main__":
    cli()
