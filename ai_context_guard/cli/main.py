"""
CLI interface for AI Context Guard.

Provides command-line access to token estimates and context budgets.
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ai_context_guard.config.loader import GuardConfig, load_guard_config
from ai_context_guard.core.accounting import count_request_tokens
from ai_context_guard.core.budget import (
    BudgetReport,
    check_budget,
    find_fitting_model,
    remaining_prompt_tokens,
)
from ai_context_guard.core.errors import TokenAccountingError
from ai_context_guard.core.schema import ChatCompletionRequest
from ai_context_guard.core.token_counter import TokenCounter, get_token_counter

app = typer.Typer()
console = Console()

# Exit codes - an overflow only fails the command when --enforced is given
EXIT_CODE_PASS = 0
EXIT_CODE_FAIL = 1


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="YAML file with calibration, model and tokenizer overrides"
    ),
    backend: Optional[str] = typer.Option(
        None,
        "--backend",
        help="Tokenizer backend: tiktoken or subprocess"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable debug logging"
    )
):
    """AI Context Guard CLI."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True))],
        )
    ctx.obj = {"config": config, "backend": backend}
    if ctx.invoked_subcommand is None:
        console.print("AI Context Guard - Use --help to see available commands")


def _load_config(ctx: typer.Context) -> GuardConfig:
    path = (ctx.obj or {}).get("config")
    if path is None:
        return GuardConfig()
    return load_guard_config(str(path))


def _create_counter(ctx: typer.Context, config: GuardConfig) -> TokenCounter:
    backend = (ctx.obj or {}).get("backend") or config.tokenizer.backend
    return get_token_counter(
        backend,
        python=config.tokenizer.python,
        timeout=config.tokenizer.timeout,
    )


def _read_request(path: Path) -> ChatCompletionRequest:
    """Read a chat completion request body from a JSON file."""
    with open(path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in request file {path}: {e}")
    if not isinstance(data, dict):
        raise ValueError("Request file must contain a JSON object")
    return ChatCompletionRequest.from_dict(data)


def _fail(error: Exception) -> None:
    console.print(f"[red]Error:[/] {error}")
    sys.exit(EXIT_CODE_FAIL)


@app.command()
def models(ctx: typer.Context):
    """List supported models and their context lengths."""
    try:
        config = _load_config(ctx)
    except (OSError, ValueError) as e:
        _fail(e)

    table = Table(title="Supported models")
    table.add_column("Model")
    table.add_column("Context", justify="right")
    table.add_column("Encoding")
    table.add_column("Chat")
    table.add_column("Upgrade")

    for model in config.registry.models():
        spec = config.registry.get_spec(model)
        table.add_row(
            spec.model,
            f"{spec.context_length:,}",
            spec.encoding,
            "yes" if spec.per_message_overhead is not None else "no",
            spec.upgrade or "-",
        )
    console.print(table)


@app.command()
def count(
    ctx: typer.Context,
    request_file: Path = typer.Argument(..., help="JSON chat completion request body")
):
    """Estimate the prompt tokens of a chat completion request."""
    try:
        config = _load_config(ctx)
        request = _read_request(request_file)
        counter = _create_counter(ctx, config)
        total = count_request_tokens(request, counter, config.registry, config.calibration)
    except (OSError, ValueError, TokenAccountingError) as e:
        _fail(e)

    console.print(f"[bold]Model:[/bold] {request.model}")
    console.print(f"Prompt tokens: {total:,}")


@app.command()
def remaining(
    ctx: typer.Context,
    request_file: Path = typer.Argument(..., help="JSON chat completion request body"),
    reserve: Optional[int] = typer.Option(
        None,
        "--reserve",
        "-r",
        help="Tokens to keep free for the response (defaults to max_tokens)"
    ),
    enforced: bool = typer.Option(
        False,
        "--enforced",
        "-e",
        help="Exit with error code if the request does not fit"
    )
):
    """Show how many tokens remain in the model's context window."""
    try:
        config = _load_config(ctx)
        request = _read_request(request_file)
        counter = _create_counter(ctx, config)
        report = check_budget(request, counter, reserve, config.registry, config.calibration)
        fitting_model = None
        if not report.fits and report.upgrade:
            fitting_model = find_fitting_model(
                request, counter, reserve, config.registry, config.calibration
            )
    except (OSError, ValueError, TokenAccountingError) as e:
        _fail(e)

    _display_report(report, fitting_model)

    if enforced and not report.fits:
        sys.exit(EXIT_CODE_FAIL)
    sys.exit(EXIT_CODE_PASS)


@app.command()
def prompt(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Raw prompt text"),
    model: str = typer.Option(..., "--model", "-m", help="Model identifier")
):
    """Estimate tokens and remaining context for a raw text prompt."""
    try:
        config = _load_config(ctx)
        counter = _create_counter(ctx, config)
        context = config.registry.context_length(model)
        left = remaining_prompt_tokens(text, model, counter, config.registry, config.calibration)
    except (OSError, ValueError, TokenAccountingError) as e:
        _fail(e)

    console.print(f"[bold]Model:[/bold] {model}")
    console.print(f"Prompt tokens: {context - left:,}")
    console.print(f"Remaining tokens: {left:,}")


def _display_report(report: BudgetReport, fitting_model: Optional[str]) -> None:
    """Display a budget report."""
    console.print("\n[bold]Context Budget[/bold]")
    console.print("-" * 40)
    console.print(f"Model: {report.model}")
    console.print(f"Context length: {report.context_length:,}")
    console.print(f"Prompt tokens: {report.prompt_tokens:,}")
    console.print(f"Remaining tokens: {report.remaining:,}")
    if report.reserve:
        console.print(f"Reserved for response: {report.reserve:,}")

    if report.fits:
        console.print("\n[bold]Verdict:[/bold] [green]FITS[/]")
        return

    console.print("\n[bold]Verdict:[/bold] [red]OVERFLOW[/]")
    if fitting_model:
        console.print(f"Suggested model: {fitting_model}")
    elif report.upgrade:
        console.print(f"No model on the upgrade path of {report.model} fits this request")


if __name__ == "__main__":
    app()
