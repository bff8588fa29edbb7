"""
Twitch Notifier CLI.

Runs the service under uvicorn for development and production.
"""

import subprocess
import sys

import typer

from twitch_notifier.core.config.settings import settings

app = typer.Typer(help="Twitch EventSub notifier CLI")

APP_FACTORY = "twitch_notifier.main:create_app"


def _uvicorn_command(host: str, port: int, *extra: str) -> list[str]:
    return [
        sys.executable,
        "-m",
        "uvicorn",
        APP_FACTORY,
        "--factory",
        "--host",
        host,
        "--port",
        str(port),
        "--log-level",
        settings.log_level.lower(),
        *extra,
    ]


def _serve(cmd: list[str], label: str) -> None:
    try:
        subprocess.run(cmd, check=True)
    except subprocess.CalledProcessError as e:
        typer.echo(f"❌ {label} server failed to start (exit code: {e.returncode})", err=True)
        typer.echo(f"• Port already in use? Store backend: {settings.store_backend}", err=True)
        raise typer.Exit(1) from e
    except KeyboardInterrupt:
        typer.echo(f"👋 {label} server stopped")


@app.command()
def dev(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to bind to"),
):
    """
    Run development server with auto-reload.

    Examples:
        twitch-notifier dev
        twitch-notifier dev --port 8080
    """
    typer.echo("🚀 Starting Twitch Notifier development server...")
    typer.echo(f"🌐 Server: http://{host}:{port}")
    typer.echo(f"📝 Docs: http://{host}:{port}/docs")
    if settings.uses_mock_twitch:
        typer.echo("🧪 CLIENT_ID not set - Twitch calls are mocked")
    typer.echo("💡 Press CTRL+C to stop")
    _serve(_uvicorn_command(host, port, "--reload"), "Development")


@app.command()
def prod(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to bind to"),
    workers: int = typer.Option(
        1, "--workers", "-w", help="Number of worker processes"
    ),
):
    """
    Run production server (no auto-reload).

    More than one worker needs STORE_BACKEND=redis so workers share records.
    """
    if workers > 1 and settings.store_backend != "redis":
        typer.echo(
            "⚠️ Multiple workers with the memory store: each worker has its own records",
            err=True,
        )
    typer.echo(f"🚀 Starting Twitch Notifier production server ({workers} workers)...")
    _serve(_uvicorn_command(host, port, "--workers", str(workers)), "Production")


@app.command()
def version():
    """Print the installed version."""
    typer.echo(f"twitch-notifier {settings.version}")


if __name__ == "__main__":
    app()
