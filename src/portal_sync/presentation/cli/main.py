from pathlib import Path

import typer

from portal_sync.bootstrap import build_container
from portal_sync.config import settings
from portal_sync.domain.errors import PortalAuthError
from portal_sync.infrastructure.adapters.locations.sqlite_provider import SQLiteLocationConfigProvider
from portal_sync.logging_setup import configure_logging

app = typer.Typer(help="Portal session CLI")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v")) -> None:
    configure_logging("DEBUG" if verbose else settings.log_level)


def _fail(e: PortalAuthError) -> None:
    typer.echo(f"Error: {e}", err=True)
    raise typer.Exit(code=1)


@app.command()
def status(location_id: str) -> None:
    """Probe the stored cookies of a location without logging in."""
    dto = build_container(settings).status.execute(location_id)
    typer.echo(f"authenticated={dto.authenticated} state={dto.state} cookies={dto.cookie_count}")
    if dto.last_auth_at:
        typer.echo(f"last_auth_at={dto.last_auth_at.isoformat()}")


@app.command()
def refresh(location_id: str) -> None:
    """Force a fresh portal login."""
    try:
        dto = build_container(settings).refresh.execute(location_id)
    except PortalAuthError as e:
        _fail(e)
        return
    typer.echo(f"Logged in: {dto.cookie_count} cookies")


@app.command()
def header(location_id: str, show: bool = typer.Option(False, "--show", help="Print the header itself")) -> None:
    """Valid Cookie header for the location, logging in if needed."""
    try:
        value = build_container(settings).headers.build_header(location_id)
    except PortalAuthError as e:
        _fail(e)
        return
    typer.echo(value if show else f"Cookie header ready ({len(value)} chars)")


@app.command("set-credentials")
def set_credentials(
    location_id: str,
    name: str = typer.Option(..., "--name"),
    username: str = typer.Option(..., "--username"),
    password: str = typer.Option(..., "--password", prompt=True, hide_input=True),
) -> None:
    """Store SSO credentials for a location."""
    SQLiteLocationConfigProvider(db_path=settings.database_path).upsert(
        location_id, name=name, sso_username=username, sso_password=password
    )
    typer.echo(f"Saved SSO credentials for {location_id}")


@app.command()
def fetch(
    location_id: str,
    path: str,
    post: str = typer.Option(None, "--post", help="urlencoded body; switches to POST"),
    out: Path = typer.Option(None, "--out", "-o"),
) -> None:
    """Authenticated request to a portal path."""
    try:
        resp = build_container(settings).portal.fetch(location_id, path, data=post)
    except PortalAuthError as e:
        _fail(e)
        return
    if out:
        out.write_bytes(resp.content)
        typer.echo(str(out))
    else:
        typer.echo(resp.text)


if __name__ == "__main__":
    app()
