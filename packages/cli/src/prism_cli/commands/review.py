"""review command — review a set of changed files and print the PR comment."""

from __future__ import annotations

import asyncio
import json

import click
from rich.console import Console

from prism_core.config import PrismConfig, load_config
from prism_core.engine import run_review
from prism_core.errors import ConfigurationError, ProviderError
from prism_core.models import PullRequestFile

console = Console(stderr=True)


def load_cli_config(ctx: click.Context, overrides: dict | None = None) -> PrismConfig:
    """Load the config named by the group's --config option, turning errors into usage errors."""
    config_path = ctx.obj.get("config_path") if ctx.obj else None
    try:
        return load_config(config_path, cli_overrides=overrides)
    except ConfigurationError as e:
        raise click.UsageError(str(e))


def read_files(stream) -> list[PullRequestFile]:
    """Parse a JSON array of changed files (GitHub's pulls/{n}/files shape works as-is)."""
    try:
        data = json.load(stream)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}", param_hint="--files")
    if isinstance(data, dict):
        data = data.get("files", [])
    if not isinstance(data, list):
        raise click.BadParameter("expected a JSON array of changed files", param_hint="--files")
    try:
        return [PullRequestFile.from_dict(item) for item in data]
    except (AttributeError, TypeError, ValueError) as e:
        raise click.BadParameter(str(e), param_hint="--files")


@click.command("review")
@click.option(
    "--files",
    "files_stream",
    type=click.File("r"),
    required=True,
    help="JSON file listing the changed files (path/filename, patch, additions, deletions). Use - for stdin.",
)
@click.option(
    "--provider",
    type=click.Choice(["openai", "anthropic", "openai-compat", "ollama"]),
    default=None,
    help="LLM backend. Overrides config file.",
)
@click.option("--model", default=None, help="Model identifier. Overrides config file.")
@click.option(
    "--profile",
    type=click.Choice(["balanced", "security", "performance", "strict"]),
    default=None,
    help="Review stance. Overrides config file.",
)
@click.option("--base-url", default=None, help="Base URL of the backend. Required for openai-compat.")
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["markdown", "json"]),
    default="markdown",
    show_default=True,
    help="markdown prints the comment; json adds status, hash, truncation flag and the structured review.",
)
@click.pass_context
def review_cmd(
    ctx,
    files_stream,
    provider: str | None,
    model: str | None,
    profile: str | None,
    base_url: str | None,
    output_format: str,
):
    """Review the changed files of a pull request.

    The rendered comment starts with a hidden marker so a CI step can find
    and replace the previous PRism comment instead of posting a new one.

    \b
    Credentials are read from the environment variable named by api_key_env:
      OPENAI_API_KEY       default for --provider openai
      ANTHROPIC_API_KEY    default for --provider anthropic
    """
    config = load_cli_config(
        ctx,
        {"provider": provider, "model": model, "profile": profile, "base_url": base_url},
    )
    files = read_files(files_stream)

    console.print(f"[dim]Reviewing {len(files)} changed file(s) with {config.provider}/{config.model}...[/dim]")
    try:
        result = asyncio.run(run_review(config, files))
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    except (ProviderError, ImportError) as e:
        raise click.ClickException(str(e))

    if result.truncated:
        console.print("[yellow]Diff exceeded max_diff_bytes; later files were not reviewed.[/yellow]")

    if output_format == "json":
        payload = {
            "status": result.status,
            "hash": result.hash,
            "truncated": result.truncated,
            "files_reviewed": result.files_reviewed,
            "comment": result.comment,
            "review": result.review.model_dump() if result.review else None,
        }
        click.echo(json.dumps(payload, indent=2, ensure_ascii=False))
    else:
        click.echo(result.comment)
