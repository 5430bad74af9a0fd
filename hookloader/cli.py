"""
CLI for hookloader.

Provides the `hookloader` command for inspecting activation fingerprints and
package configuration, and for running scripts with the loader bootstrapped.
"""

import json
import logging
import runpy
import sys
from pathlib import Path
from types import ModuleType

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .context import LoaderContext
from .context import reset_context
from .env import LoaderEnv
from .exceptions import HookLoaderError
from .fingerprint import compute_fingerprint
from .package import PackageRegistry

console = Console()


def _module_for(path: str) -> ModuleType:
    """Stand-in module object for a file that has not been imported."""
    resolved = Path(path).resolve()
    module = ModuleType(resolved.stem)
    module.__file__ = str(resolved)
    return module


def _parse_options(raw: str | None):
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--options") from e


@click.group()
@click.version_option(version=__version__, prog_name="hookloader")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """hookloader - activation and hook orchestration tools."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("module_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--options", "-o", "raw_options", help="Loader options as JSON")
def fingerprint(module_path: str, raw_options: str | None) -> None:
    """Print the activation fingerprint for MODULE_PATH.

    Without --options the fingerprint comes from the module's package
    configuration; nothing is printed to stdout if there is none.
    """
    options = _parse_options(raw_options)
    try:
        result = compute_fingerprint(
            _module_for(module_path), options, PackageRegistry()
        )
    except HookLoaderError as e:
        raise click.ClickException(str(e)) from e

    if result is None:
        click.secho("No package configuration found", fg="yellow", err=True)
        sys.exit(1)
    click.echo(result)


@cli.command()
@click.argument("module_path", type=click.Path(exists=True, dir_okay=False))
def options(module_path: str) -> None:
    """Show the effective package configuration for MODULE_PATH."""
    try:
        config = PackageRegistry().lookup(_module_for(module_path))
    except HookLoaderError as e:
        raise click.ClickException(str(e)) from e

    if config is None:
        click.secho("No package configuration found", fg="yellow")
        return

    table = Table(title=f"Loader options ({config.source or 'persisted'})")
    table.add_column("Option", style="cyan", no_wrap=True)
    table.add_column("Value")
    for name, value in config.options.model_dump(by_alias=True).items():
        table.add_row(name, json.dumps(value))
    console.print(table)


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("script", type=click.Path(exists=True, dir_okay=False))
@click.argument("script_args", nargs=-1, type=click.UNPROCESSED)
@click.option(
    "--preload",
    "-r",
    "preloads",
    multiple=True,
    help="Module or file to load before SCRIPT (repeatable)",
)
def run(script: str, script_args: tuple[str, ...], preloads: tuple[str, ...]) -> None:
    """Run SCRIPT with the loader bootstrapped.

    Examples:

        hookloader run app.py

        hookloader run -r ./setup_hooks.py app.py --port 8000
    """
    env = LoaderEnv.from_environ()
    env = env.model_copy(
        update={
            "cli": True,
            "preload_modules": [*env.preload_modules, *preloads],
            "preloaded": env.preloaded or bool(preloads),
        }
    )

    context = LoaderContext(env=env)
    reset_context(context)
    try:
        context.activator.bootstrap()
    except HookLoaderError as e:
        raise click.ClickException(str(e)) from e

    sys.argv = [script, *script_args]
    runpy.run_path(script, run_name="__main__")


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
