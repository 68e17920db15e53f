"""Authorization commands for grantflow."""

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from grantflow.core.config import ConfigError, config
from grantflow.core.oauth import (
    AuthorizationConfig,
    AuthorizationError,
    ConsoleRedirectAdapter,
    GrantType,
    HttpClientConfig,
    HttpxHttpClient,
    LoopbackRedirectAdapter,
    OAuth2Authorization,
    OAuthError,
    RedirectCaptureAdapter,
    TokenInfo,
)

# Options shared by `authorize` and `url`
CONFIG_FILE_OPTION = typer.Option(
    None, "--config", "-c", help="JSON file with the authorization configuration"
)
GRANT_TYPE_OPTION = typer.Option(None, "--grant-type", "-g", help="Grant type")
CLIENT_ID_OPTION = typer.Option(None, "--client-id", help="Client identifier")
AUTHORIZATION_URI_OPTION = typer.Option(
    None, "--authorization-uri", help="Authorization endpoint"
)
REDIRECT_URI_OPTION = typer.Option(
    None, "--redirect-uri", help="Redirect URI (defaults to the local callback listener)"
)
SCOPE_OPTION = typer.Option(None, "--scope", "-s", help="Scope to request (repeatable)")
STATE_OPTION = typer.Option(None, "--state", help="Request state (generated when omitted)")
PKCE_OPTION = typer.Option(False, "--pkce", help="Use PKCE with the authorization code grant")


def default_redirect_uri() -> str:
    return f"http://{config.callback_host}:{config.callback_port}/callback"


def load_authorization_config(
    config_file: Path | None, overrides: dict[str, Any]
) -> AuthorizationConfig:
    """Merge a JSON config file with command line overrides.

    Options given on the command line win over the file. Interactive grants
    without a redirect URI use the local callback listener.

    Raises:
        ValidationError: If the merged configuration is invalid
        ValueError: If the file is not a JSON object
    """
    data: dict[str, Any] = {}
    if config_file is not None:
        loaded = json.loads(config_file.read_text(encoding="utf-8"))
        if not isinstance(loaded, dict):
            raise ValueError(f"{config_file} does not contain a JSON object")
        data.update(loaded)

    for key, value in overrides.items():
        if value is None or value is False or value == []:
            continue
        data[key] = tuple(value) if isinstance(value, list) else value

    grant_type = data.get("grant_type", data.get("grantType"))
    if grant_type in GrantType.INTERACTIVE and not (
        data.get("redirect_uri") or data.get("redirectUri")
    ):
        data["redirect_uri"] = default_redirect_uri()

    return AuthorizationConfig.from_dict(data)


def _redirect_adapter(console: Console, paste: bool, no_browser: bool) -> RedirectCaptureAdapter:
    def show_url(url: str) -> None:
        console.print(
            Panel(url, title="Open this URL to authorize", border_style="cyan", expand=False)
        )

    if paste:
        return ConsoleRedirectAdapter(on_url=show_url)
    return LoopbackRedirectAdapter(
        open_browser=config.open_browser and not no_browser,
        on_url=show_url,
    )


def _token_table(token: TokenInfo) -> Table:
    table = Table(title="Token")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Access Token", token.access_token or "")
    table.add_row("Token Type", token.token_type)
    table.add_row(
        "Expires In",
        f"{token.expires_in}s" + (" (assumed)" if token.expires_assumed else ""),
    )
    table.add_row("Expires At", str(token.expires_at))
    table.add_row("Scope", " ".join(token.scope) or "-")
    if token.refresh_token:
        table.add_row("Refresh Token", token.refresh_token)
    if token.id_token:
        table.add_row("ID Token", token.id_token)
    for key, value in token.extra.items():
        table.add_row(key, str(value))
    table.add_row("State", token.state or "")
    return table


def authorize(
    config_file: Path = CONFIG_FILE_OPTION,
    grant_type: str = GRANT_TYPE_OPTION,
    client_id: str = CLIENT_ID_OPTION,
    client_secret: str = typer.Option(None, "--client-secret", help="Client secret"),
    authorization_uri: str = AUTHORIZATION_URI_OPTION,
    access_token_uri: str = typer.Option(None, "--token-uri", help="Token endpoint"),
    redirect_uri: str = REDIRECT_URI_OPTION,
    scope: list[str] = SCOPE_OPTION,
    state: str = STATE_OPTION,
    pkce: bool = PKCE_OPTION,
    username: str = typer.Option(None, "--username", help="Resource owner name"),
    password: str = typer.Option(None, "--password", help="Resource owner password"),
    assertion: str = typer.Option(None, "--assertion", help="JWT bearer assertion"),
    device_code: str = typer.Option(None, "--device-code", help="Device code"),
    delivery_method: str = typer.Option(
        None, "--delivery", help="Client credentials delivery: body, header or query"
    ),
    paste: bool = typer.Option(
        False, "--paste", help="Paste the redirect URL instead of using a local listener"
    ),
    no_browser: bool = typer.Option(False, "--no-browser", help="Do not open a browser"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON"),
) -> None:
    """Run an authorization flow and print the token.

    Example:
        grantflow authorize -g client_credentials --token-uri https://auth.example.com/token \\
            --client-id cid --client-secret secret --delivery header
    """
    console = Console()

    try:
        settings = load_authorization_config(
            config_file,
            {
                "grant_type": grant_type,
                "client_id": client_id,
                "client_secret": client_secret,
                "authorization_uri": authorization_uri,
                "access_token_uri": access_token_uri,
                "redirect_uri": redirect_uri,
                "scopes": scope,
                "state": state,
                "pkce": pkce,
                "username": username,
                "password": password,
                "assertion": assertion,
                "device_code": device_code,
                "delivery_method": delivery_method,
            },
        )
        http_client = HttpxHttpClient(HttpClientConfig(timeout=config.http_timeout))
        adapter = _redirect_adapter(console, paste, no_browser)
    except (OAuthError, ConfigError, ValueError, OSError) as e:
        console.print(
            Panel(
                f"[red]The authorization configuration is invalid.[/red]\n\nError: {e}",
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(1) from None

    orchestrator = OAuth2Authorization(settings, http_client=http_client, redirect_adapter=adapter)
    if not as_json:
        console.print(f"[cyan]Starting {settings.grant_type} authorization...[/cyan]")

    try:
        token = orchestrator.authorize()
    except AuthorizationError as e:
        if as_json:
            typer.echo(json.dumps(e.to_dict(), indent=2))
        else:
            console.print(
                Panel(
                    f"[red]{e.message}[/red]\n\nCode: {e.code}",
                    title="Authorization Failed",
                    border_style="red",
                )
            )
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Authorization cancelled[/yellow]")
        raise typer.Exit(1) from None
    finally:
        http_client.close()

    if as_json:
        typer.echo(json.dumps(token.to_dict(), indent=2))
        return
    console.print(_token_table(token))


def url(
    config_file: Path = CONFIG_FILE_OPTION,
    grant_type: str = GRANT_TYPE_OPTION,
    client_id: str = CLIENT_ID_OPTION,
    authorization_uri: str = AUTHORIZATION_URI_OPTION,
    redirect_uri: str = REDIRECT_URI_OPTION,
    scope: list[str] = SCOPE_OPTION,
    state: str = STATE_OPTION,
    pkce: bool = PKCE_OPTION,
) -> None:
    """Print the authorization URL of an implicit or authorization code flow.

    Example:
        grantflow url -g authorization_code --pkce --client-id cid \\
            --authorization-uri https://auth.example.com/authorize
    """
    console = Console()

    try:
        settings = load_authorization_config(
            config_file,
            {
                "grant_type": grant_type,
                "client_id": client_id,
                "authorization_uri": authorization_uri,
                "redirect_uri": redirect_uri,
                "scopes": scope,
                "state": state,
                "pkce": pkce,
            },
        )
        orchestrator = OAuth2Authorization(settings)
    except (OAuthError, ConfigError, ValueError, OSError) as e:
        console.print(
            Panel(
                f"[red]The authorization configuration is invalid.[/red]\n\nError: {e}",
                title="Configuration Error",
                border_style="red",
            )
        )
        raise typer.Exit(1) from None

    authorization_url = orchestrator.build_authorization_url()
    if authorization_url is None:
        console.print(
            f"[red]Error: grant type {settings.grant_type!r} has no authorization URL[/red]"
        )
        raise typer.Exit(1) from None

    typer.echo(authorization_url)
    console.print(f"State: {orchestrator.state}", style="dim")
    if orchestrator.code_verifier:
        console.print(f"Code verifier: {orchestrator.code_verifier}", style="dim")
