"""Main CLI entry point for grantflow."""

import typer
from rich.console import Console

from grantflow.cli.commands import authorize

app = typer.Typer(
    name="grantflow",
    help="grantflow CLI - run OAuth 2.0 authorization flows from the terminal",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("authorize")(authorize.authorize)
app.command("url")(authorize.url)


@app.command()
def version() -> None:
    """Show version information."""
    from grantflow import __version__

    console = Console()
    console.print(f"[bold cyan]grantflow[/bold cyan] version [green]{__version__}[/green]")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """grantflow CLI."""
    from grantflow.core.logging import configure_root_logging

    configure_root_logging("DEBUG" if verbose else None)


if __name__ == "__main__":
    app()
