"""
CLI commands for artifact profiles.

Thin wrappers over ``release_installer.core.use_cases.profiles``.
"""

from __future__ import annotations

import json
import sys

import click

from release_installer.core.models.platform import ServiceManager


@click.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def profiles(ctx: click.Context, as_json: bool) -> None:
    """List the artifact profiles that can be installed."""
    from release_installer.core.use_cases.profiles import list_profiles

    result = list_profiles(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    click.secho(f"\n📦 Profiles: {len(result.profiles)}", fg="cyan", bold=True)
    for p in result.profiles:
        default = " (default)" if p["name"] == result.default_profile else ""
        listen = f"  → {p['listen_address']}" if p["listen_address"] else ""
        click.secho(f"   • {p['name']}{default}", fg="white", bold=True, nl=False)
        click.echo(f"  [{p['repo']}]{listen}")
        if p["description"] and ctx.obj.get("verbose"):
            click.echo(f"       {p['description']}")
    click.echo()


@click.command()
@click.argument("profile")
@click.option(
    "--manager",
    type=click.Choice([m.value for m in ServiceManager]),
    default=None,
    help="Service manager to render for (default: detected).",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def render(ctx: click.Context, profile: str, manager: str | None, as_json: bool) -> None:
    """Print the service descriptor(s) PROFILE would install."""
    from release_installer.core.use_cases.profiles import render_profile

    result = render_profile(
        profile,
        ServiceManager(manager) if manager else None,
        config_path=ctx.obj.get("config_path"),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(result.exit_code)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red", err=True)
        sys.exit(result.exit_code)

    for i, f in enumerate(result.files):
        if i:
            click.echo()
        click.secho(f"# {f['path']} (mode {f['mode']})", fg="cyan", err=True)
        click.echo(f["content"], nl=False)
