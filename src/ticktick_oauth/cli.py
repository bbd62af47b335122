"""ticktick-oauth 명령줄 도구.

OAuth 코어 위의 운영용 명령어: client 설정 저장, 브라우저 인증 시작,
인증 코드(또는 콜백 URL) 교환, 토큰 확인/갱신, 동작 확인용 태스크 생성.

사용 예::

    ticktick-oauth configure --client-id ID --client-secret SECRET
    ticktick-oauth login
    ticktick-oauth exchange "http://127.0.0.1:3000/callback?code=...&state=..."
    ticktick-oauth add-task "Buy milk"
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ticktick_oauth import __version__
from ticktick_oauth.auth.exceptions import (
    AuthenticationError,
    CredentialStorageError,
    MissingConfigurationError,
)
from ticktick_oauth.auth.flows.authorization import looks_like_url, parse_callback_url
from ticktick_oauth.auth.providers.ticktick_provider import TickTickProvider
from ticktick_oauth.auth.storage.credential_store import CredentialStore
from ticktick_oauth.clients.task_client import TaskClient, build_task_title

EXIT_AUTH_FAILURE = 1
EXIT_CONFIG_ERROR = 2

app = typer.Typer(no_args_is_help=True, help="TickTick OAuth (PKCE) helper.")
console = Console()


def _provider(open_browser: bool = True) -> TickTickProvider:
    return TickTickProvider(
        CredentialStore(), console=console, open_browser=open_browser
    )


def _fail(exc: AuthenticationError) -> typer.Exit:
    """예외를 사용자에게 보고하고 종료 코드 결정."""
    console.print(f"[bold red][ERROR][/bold red] {exc}")
    if isinstance(exc, MissingConfigurationError):
        if exc.missing:
            console.print(f"[dim]Missing: {', '.join(exc.missing)}[/dim]")
        return typer.Exit(code=EXIT_CONFIG_ERROR)
    if isinstance(exc, CredentialStorageError):
        console.print("[dim]Check TICKTICK_OAUTH_BACKEND (file | keyring).[/dim]")
        return typer.Exit(code=EXIT_CONFIG_ERROR)
    return typer.Exit(code=EXIT_AUTH_FAILURE)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"ticktick-oauth {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    version: Optional[bool] = typer.Option(
        None, "--version", callback=_version_callback, is_eager=True
    ),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command("configure")
def configure(
    client_id: Optional[str] = typer.Option(None, help="TickTick client ID."),
    client_secret: Optional[str] = typer.Option(None, help="TickTick client secret."),
    redirect_uri: Optional[str] = typer.Option(
        None, help="Redirect URI registered in the TickTick developer portal."
    ),
) -> None:
    """Store client settings."""
    changes = {
        name: value.strip()
        for name, value in (
            ("client_id", client_id),
            ("client_secret", client_secret),
            ("redirect_uri", redirect_uri),
        )
        if value is not None
    }
    if not changes:
        console.print("[yellow]Nothing to update.[/yellow]")
        return
    try:
        CredentialStore().update(**changes)
    except AuthenticationError as e:
        raise _fail(e) from None
    console.print(f"[bold green][OK][/bold green] Updated: {', '.join(sorted(changes))}")


@app.command("login")
def login(
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the URL instead of opening a browser."
    ),
) -> None:
    """Start the authorization flow."""
    try:
        _provider(open_browser=not no_browser).start_auth_flow()
    except AuthenticationError as e:
        raise _fail(e) from None
    console.print(
        "[dim]After approving, run: ticktick-oauth exchange <code or callback URL>[/dim]"
    )


@app.command("exchange")
def exchange(
    code_or_url: str = typer.Argument(help="Authorization code or full callback URL."),
    state: Optional[str] = typer.Option(None, help="State returned with the code."),
) -> None:
    """Exchange an authorization code for tokens."""
    try:
        if looks_like_url(code_or_url):
            code, url_state = parse_callback_url(code_or_url)
            state = state or url_state
        else:
            code = code_or_url.strip()
        asyncio.run(_provider().exchange_auth_code_for_token(code, state=state))
    except AuthenticationError as e:
        raise _fail(e) from None


@app.command("refresh")
def refresh() -> None:
    """Refresh the access token now."""
    try:
        asyncio.run(_provider().refresh_access_token())
    except AuthenticationError as e:
        raise _fail(e) from None


@app.command("status")
def status() -> None:
    """Show the stored authentication state."""
    try:
        provider = _provider()
    except AuthenticationError as e:
        raise _fail(e) from None
    creds = provider.credentials

    expiry = "-"
    if creds.token_expiry is not None:
        expiry = datetime.fromtimestamp(creds.token_expiry / 1000).isoformat(
            timespec="seconds"
        )

    table = Table(title="TickTick OAuth", show_header=False)
    table.add_row("Status", provider.status().value)
    table.add_row("Client ID", creds.client_id or "-")
    table.add_row("Client secret", "set" if creds.client_secret else "-")
    table.add_row("Redirect URI", creds.redirect_uri)
    table.add_row("Access token", "set" if creds.access_token else "-")
    table.add_row("Refresh token", "set" if creds.refresh_token else "-")
    table.add_row("Expires", expiry)
    console.print(table)


@app.command("expire")
def expire() -> None:
    """Force the stored token to be treated as expired."""
    try:
        _provider().force_expiry()
    except AuthenticationError as e:
        raise _fail(e) from None
    console.print("Token expiry forced")


@app.command("add-task")
def add_task(
    text: str = typer.Argument(help="Task text; the title is derived from it."),
    content: Optional[str] = typer.Option(None, help="Task body (defaults to the text)."),
) -> None:
    """Create a TickTick task, refreshing the token first if needed."""
    try:
        client = TaskClient(_provider())
        ok = asyncio.run(client.create_task(build_task_title(text), content or text))
    except AuthenticationError as e:
        raise _fail(e) from None

    if not ok:
        console.print("[bold red]Failed to create TickTick task.[/bold red]")
        raise typer.Exit(code=EXIT_AUTH_FAILURE)
    console.print("[bold green][OK] TickTick task created successfully![/bold green]")


@app.command("logout")
def logout() -> None:
    """Forget stored tokens (client settings are kept)."""
    try:
        CredentialStore().clear_tokens()
    except AuthenticationError as e:
        raise _fail(e) from None
    console.print("[bold green][OK][/bold green] Tokens removed.")


if __name__ == "__main__":
    app()
