"""models command — list the models offered by the configured provider."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import click
from rich.console import Console
from rich.table import Table

from prism_cli.commands.review import load_cli_config
from prism_core.errors import ConfigurationError
from prism_core.providers.factory import create_provider
from prism_core.providers.ollama import OLLAMA_RECOMMENDED_MODELS

console = Console()


def _format_created(created: float | None) -> str:
    if not created:
        return ""
    return datetime.fromtimestamp(created, tz=timezone.utc).strftime("%Y-%m-%d")


@click.command("models")
@click.option(
    "--provider",
    type=click.Choice(["openai", "anthropic", "openai-compat", "ollama"]),
    default=None,
    help="LLM backend. Overrides config file.",
)
@click.option("--base-url", default=None, help="Base URL of the backend.")
@click.option("--limit", default=30, show_default=True, help="Maximum number of models to show.")
@click.pass_context
def models_cmd(ctx, provider: str | None, base_url: str | None, limit: int):
    """List models available from the configured provider."""
    config = load_cli_config(ctx, {"provider": provider, "base_url": base_url})
    try:
        backend = create_provider(config)
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    except ImportError as e:
        raise click.ClickException(str(e))

    models = asyncio.run(backend.list_models())

    if not models:
        console.print(f"[yellow]No models reported by {config.provider}.[/yellow]")
        if config.provider == "ollama":
            console.print("Pull one of the recommended models, e.g. `ollama pull llama3.1:8b`:")
            for name in OLLAMA_RECOMMENDED_MODELS:
                console.print(f"  {name}")
        return

    table = Table(title=f"Models: {config.provider}", show_header=True, header_style="bold cyan")
    table.add_column("Model", style="bold")
    table.add_column("Name")
    table.add_column("Owner")
    table.add_column("Created", width=12)

    for m in models[:limit]:
        model_id = f"★ {m.id}" if m.featured else m.id
        if m.id == config.model:
            model_id = f"[green]{model_id}[/green]"
        table.add_row(model_id, m.name, m.owned_by or "", _format_created(m.created))

    console.print(table)
