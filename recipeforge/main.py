"""
recipeforge — CLI entrypoint.

Usage:
    recipeforge --help
    recipeforge recipes
    recipeforge plan python3 --platform linux/x86_64
    recipeforge build python3 --version 3.6.7
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from recipeforge import __version__
from recipeforge.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="recipeforge")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False),
    default=None,
    help="Path to recipeforge.yml (default: auto-detect).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
) -> None:
    """recipeforge — build embedded components from declarative recipes."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    # ── Logging setup (once, at process start) ──────────────────
    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("RF_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("RF_LOG_FILE"),
        log_file_level=os.environ.get("RF_LOG_FILE_LEVEL"),
        quiet_third_party=not debug,
    )


# ── Helpers ─────────────────────────────────────────────────────


def _load(ctx: click.Context):
    """Load settings and the recipe registry, or exit with a message."""
    from recipeforge.core.config.loader import ConfigError, load_settings
    from recipeforge.core.config.recipe_loader import load_into_registry
    from recipeforge.core.services.recipe_build import RecipeError, default_registry

    try:
        settings = load_settings(ctx.obj.get("config_path"))
        registry = default_registry()
        if settings.recipes_dir is not None:
            load_into_registry(registry, settings.recipes_dir)
    except (ConfigError, RecipeError) as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)
    return settings, registry


def _get_recipe(registry, name: str):
    recipe = registry.get(name)
    if recipe is None:
        click.secho(
            f"❌ Unknown recipe: {name} (available: {', '.join(registry.names())})",
            fg="red", err=True,
        )
        sys.exit(1)
    return recipe


def _parse_platform_option(value: str | None):
    from recipeforge.core.services.recipe_build import parse_platform

    if value is None:
        return None
    try:
        return parse_platform(value)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="--platform") from e


_build_options = [
    click.argument("name"),
    click.option("--version", "version", default=None, help="Version to build (default: recipe default)."),
    click.option(
        "--platform", "platform_str", default=None,
        help="Target platform as os[/arch[/libc]] (default: this host).",
    ),
    click.option(
        "--strict/--no-strict", default=None,
        help="Fail on platforms without a profile instead of building nothing.",
    ),
    click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON."),
]


def build_options(func):
    for option in reversed(_build_options):
        func = option(func)
    return func


# ── Commands ────────────────────────────────────────────────────


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def recipes(ctx: click.Context, as_json: bool) -> None:
    """List known recipes and their versions."""
    _settings, registry = _load(ctx)

    rows = []
    for name in registry.names():
        recipe = registry.get(name)
        rows.append({
            "name": recipe.name,
            "license": recipe.license,
            "default_version": recipe.default_version,
            "versions": recipe.supported_versions,
            "platforms": [c.value for c in recipe.categories],
        })

    if as_json:
        click.echo(json.dumps(rows, indent=2))
        return

    for row in rows:
        click.secho(f"📦 {row['name']}", fg="cyan", bold=True, nl=False)
        click.echo(f"  {row['default_version']}  [{row['license'] or 'no license'}]")
        click.echo(f"     versions:  {', '.join(row['versions'])}")
        click.echo(f"     platforms: {', '.join(row['platforms'])}")


@cli.command()
@build_options
@click.pass_context
def plan(
    ctx: click.Context,
    name: str,
    version: str | None,
    platform_str: str | None,
    strict: bool | None,
    as_json: bool,
) -> None:
    """Show the steps a build would run, without running them."""
    from recipeforge.core.services.recipe_build import RecipeError, prepare_build

    settings, registry = _load(ctx)
    recipe = _get_recipe(registry, name)
    platform = _parse_platform_option(platform_str)

    try:
        build_plan = prepare_build(
            recipe, settings, platform=platform, version=version, strict=strict,
        )
    except RecipeError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(build_plan.to_dict(), indent=2))
        return

    click.secho(
        f"\n📋 {build_plan.component} {build_plan.version} ({build_plan.category})",
        fg="cyan", bold=True,
    )
    click.echo(f"   install root: {build_plan.install_root}")
    if build_plan.dependencies:
        click.echo(f"   dependencies: {', '.join(build_plan.dependencies)}")
    if not build_plan.steps:
        click.secho("   Nothing to build on this platform.", fg="yellow")
        return

    click.echo()
    for i, step in enumerate(build_plan.steps, 1):
        marker = " (best effort)" if step.best_effort else ""
        click.echo(f"   {i}. [{step.stage.value}] {step.label}{marker}")
        if step.command and not ctx.obj.get("quiet"):
            click.echo(f"        $ {' '.join(step.command)}")


@cli.command()
@build_options
@click.pass_context
def build(
    ctx: click.Context,
    name: str,
    version: str | None,
    platform_str: str | None,
    strict: bool | None,
    as_json: bool,
) -> None:
    """Fetch, verify, configure, compile, and install a component."""
    from recipeforge.core.services.recipe_build import RecipeError, build_component

    settings, registry = _load(ctx)
    recipe = _get_recipe(registry, name)
    platform = _parse_platform_option(platform_str)

    try:
        result = build_component(
            recipe, settings, platform=platform, version=version, strict=strict,
        )
    except RecipeError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    for receipt in result.receipts:
        icon = {"ok": "✅", "warning": "⚠️ ", "failed": "❌"}[receipt.status]
        click.echo(f"   {icon} {receipt.label or receipt.step_id} ({receipt.duration_ms}ms)")

    for warning in result.warnings:
        click.secho(f"   ⚠ {warning}", fg="yellow")

    if result.ok:
        click.secho(f"\n✅ {result.component} {result.version} installed", fg="green", bold=True)
        return

    click.secho(
        f"\n❌ {result.component} {result.version} failed at "
        f"{result.failed_at.value if result.failed_at else '?'} "
        f"(step {result.failed_step}, exit {result.exit_code})",
        fg="red", bold=True,
    )
    if result.error:
        click.echo(f"   {result.error}")
    if result.output and not ctx.obj.get("quiet"):
        click.echo(result.output.rstrip())
    sys.exit(1)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
