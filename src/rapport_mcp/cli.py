from __future__ import annotations

import json
from pathlib import Path
from typing import NoReturn

import typer

from canvas_validators import ValidatorLimits, get_svg_stats, load_limits, validate_svg

from .credentials import CredentialStore
from .errors import RapportError
from .settings import Settings

app = typer.Typer(
    add_completion=False,
    help="Rapport MCP: authenticate, serve canvas tools, or validate SVG files.",
)


def _fail(exc: RapportError) -> NoReturn:
    typer.echo(f"ERROR {exc.code}: {exc.message}", err=True)
    typer.echo(f"HINT: {exc.hint}", err=True)
    raise typer.Exit(code=1)


def _load_settings() -> Settings:
    try:
        return Settings.from_env()
    except RapportError as exc:
        _fail(exc)


def _load_limits(limits: Path | None) -> ValidatorLimits | None:
    if limits is None:
        return None
    try:
        return load_limits(limits)
    except (OSError, ValueError) as exc:
        typer.echo(f"ERROR E1002_LIMITS_ERROR: Failed to load limits: {exc}", err=True)
        typer.echo("HINT: Check that the limits YAML is present and valid.", err=True)
        raise typer.Exit(code=1)


@app.command()
def login() -> None:
    """Authenticate with Rapport through the browser."""
    from .login import login as run_login

    settings = _load_settings()
    store = CredentialStore(settings.credentials_path)
    typer.echo("Starting Rapport MCP authentication...")
    try:
        credentials = run_login(settings, store, echo=typer.echo)
    except RapportError as exc:
        _fail(exc)
    except OSError as exc:
        typer.echo(f"ERROR E1104_CALLBACK_SERVER: {exc}", err=True)
        typer.echo(
            f"HINT: Free port {settings.callback_port} or set RAPPORT_CALLBACK_PORT.", err=True
        )
        raise typer.Exit(code=1)
    typer.echo("Authentication successful!")
    typer.echo(f"User ID: {credentials.user_id}")
    typer.echo(f"Tokens saved to: {store.path}")


@app.command()
def status() -> None:
    """Check authentication status."""
    settings = _load_settings()
    store = CredentialStore(settings.credentials_path)
    credentials = store.load()
    if not credentials.authenticated:
        typer.echo("Not authenticated")
        typer.echo("Run `rapport-mcp login` to authenticate")
        return
    typer.echo("Authenticated")
    typer.echo(f"User ID: {credentials.user_id}")
    typer.echo(f"Config: {store.path}")


@app.command()
def logout() -> None:
    """Clear saved authentication."""
    settings = _load_settings()
    if CredentialStore(settings.credentials_path).clear():
        typer.echo("Logged out successfully")
    else:
        typer.echo("Already logged out")


@app.command()
def serve(
    limits: Path | None = typer.Option(
        None,
        "--limits",
        "-l",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Optional validator limits YAML.",
    ),
) -> None:
    """Run the MCP server over stdio."""
    from . import server

    settings = _load_settings()
    server.set_validator_limits(_load_limits(limits))
    server.main(settings.log_level)


@app.command()
def validate(
    input_svg: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        readable=True,
        help="Path to the SVG to validate.",
    ),
    limits: Path | None = typer.Option(
        None,
        "--limits",
        "-l",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Optional validator limits YAML.",
    ),
    report: Path | None = typer.Option(
        None,
        "--report",
        "-o",
        dir_okay=False,
        help="Optional path to write the JSON report.",
    ),
    sanitized_out: Path | None = typer.Option(
        None,
        "--sanitized-out",
        "-s",
        dir_okay=False,
        help="Optional path to write the sanitized SVG when validation passes.",
    ),
) -> None:
    """Validate an SVG file and emit a JSON report."""
    svg_text = input_svg.read_text(encoding="utf-8")
    result = validate_svg(svg_text, _load_limits(limits))
    data = result.to_dict()
    sanitized = data.pop("sanitized", None)
    data["stats"] = get_svg_stats(svg_text).to_dict()
    payload = json.dumps(data, indent=2, sort_keys=True)
    if report is not None:
        report.write_text(payload)
    if sanitized_out is not None and sanitized is not None:
        sanitized_out.write_text(sanitized, encoding="utf-8")
    typer.echo(payload)
    raise typer.Exit(code=0 if result.valid else 1)


def main() -> None:
    app(prog_name="rapport-mcp")


if __name__ == "__main__":
    main()
