"""CLI entry point for prism.

Commands:
  review  — review a list of changed files and print the PR comment
  models  — list the models offered by the configured provider
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console
from rich.logging import RichHandler

from prism_cli.commands.models import models_cmd
from prism_cli.commands.review import review_cmd

console = Console(stderr=True)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("prism-review"),
    prog_name="prism",
)
@click.option(
    "--config",
    "config_path",
    default=None,
    help="Path to the configuration file. Defaults to .prism.yml / .prism.yaml / .prismrc.json in the cwd.",
    envvar="PRISM_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log requests and retries.")
@click.pass_context
def main(ctx: click.Context, config_path: str | None, verbose: bool):
    """AI pull-request reviewer with pluggable LLM backends."""
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


main.add_command(review_cmd)
main.add_command(models_cmd)
