"""Doctor command for environment diagnostics."""

from __future__ import annotations

import asyncio
import stat
import sys

import typer
from rich.console import Console
from rich.table import Table

from adapters.auth_gates import hash_passcode, is_valid_passcode_hash
from adapters.button_store import JsonButtonStore
from adapters.http_client import build_async_client
from adapters.secret_stores import JsonFileSecretStore
from core.config import AppSettings, write_user_env_vars
from core.errors import QikpostError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


async def _check_http(url: str, settings: AppSettings) -> tuple[bool, str]:
    try:
        async with build_async_client(settings) as client:
            response = await client.get(url)
        return True, f"HTTP {response.status_code}"
    except Exception as exc:
        return False, str(exc)


def _check_secrets(settings: AppSettings) -> tuple[str, str]:
    path = settings.secrets_path
    try:
        count = len(JsonFileSecretStore(path).list())
    except QikpostError as exc:
        return "FAIL", str(exc)
    if not path.exists():
        return "OK", "No secrets yet"
    mode = stat.S_IMODE(path.stat().st_mode)
    if sys.platform != "win32" and mode & 0o077:
        return "WARN", f"{count} secrets, file mode {oct(mode)} (expected 0o600)"
    return "OK", f"{count} secrets in {path}"


def _check_buttons(settings: AppSettings) -> tuple[str, str]:
    try:
        buttons = JsonButtonStore(settings.buttons_path).all()
    except QikpostError as exc:
        return "FAIL", str(exc)
    missing_otp = [b.title for b in buttons if b.request.otp_enabled and not b.request.otp_secret.strip()]
    if missing_otp:
        return "WARN", f"OTP enabled without secret: {', '.join(missing_otp)}"
    return "OK", f"{len(buttons)} buttons"


@app.command()
def run(
    url: str = typer.Option("https://example.com", "--url", help="URL for the connectivity check."),
    offline: bool = typer.Option(False, "--offline", help="Skip the connectivity check."),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()

    table = Table(title="qikpost Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Config
    table.add_row("Data dir", "OK", str(settings.resolved_data_dir()))
    table.add_row("OTP", "OK", f"{settings.otp_digits} digits / {settings.otp_time_step_seconds}s")
    if is_valid_passcode_hash(settings.passcode_hash):
        table.add_row("Passcode", "OK", "Auth-gated buttons enabled")
    else:
        table.add_row("Passcode", "OPTIONAL", "Not set -> auth-gated buttons fail. Run `doctor set-passcode`.")

    # Stores
    table.add_row("Secrets", *_check_secrets(settings))
    table.add_row("Buttons", *_check_buttons(settings))

    # Connectivity (best-effort)
    if not offline:
        ok_http, detail_http = asyncio.run(_check_http(url, settings))
        table.add_row("HTTP connectivity", "OK" if ok_http else "FAIL", detail_http)

    _console.print(table)


@app.command(name="set-passcode")
def set_passcode() -> None:
    """Set the local passcode used for auth-gated buttons (stored hashed in the user .env)."""

    passcode = typer.prompt("New passcode", hide_input=True, confirmation_prompt=True)
    if len(passcode) < 4:
        raise typer.BadParameter("Passcode must be at least 4 characters")

    env_path = write_user_env_vars({"QIKPOST_PASSCODE_HASH": hash_passcode(passcode)})
    _console.print(f"[green]Saved passcode hash to:[/green] {env_path}")
