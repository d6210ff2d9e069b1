"""CLI principal (Typer).

Por qué Typer:
- Subcomandos tipados sin boilerplate; la lógica vive en `core/`, aquí solo se
  construyen los adaptadores concretos y se presenta el resultado con Rich.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console

from adapters.auth_gates import PasscodeAuthGate
from adapters.button_store import JsonButtonStore
from adapters.console_prompts import ConsoleConfirmer, make_passcode_prompt
from adapters.http_client import HttpxTransport
from adapters.json_exporter import export_backup_json, load_backup_json
from adapters.secret_stores import JsonFileSecretStore
from cli import doctor
from cli.ui_components import (
    build_button_panel,
    build_buttons_table,
    build_outcome_panel,
    build_secrets_table,
    print_banner,
)
from core.config import AppSettings
from core.domain.models import (
    DEFAULT_CONFIRMATION_MESSAGE,
    ButtonConfig,
    HTTPHeader,
    RequestDefinition,
    SecretEntry,
)
from core.errors import QikpostError
from core.interfaces.transport import Transport
from core.logging_setup import configure_logging
from core.services import otp_engine, secret_decoder
from core.services.backup import build_backup, merge_buttons
from core.services.dispatch_pipeline import dispatch
from core.services.placeholders import OTP_TOKEN, find_placeholders, resolve_secrets

app = typer.Typer(no_args_is_help=True, help="Guarded HTTP POST buttons with OTP and secrets.")
buttons_app = typer.Typer(no_args_is_help=True, help="Manage stored buttons.")
secrets_app = typer.Typer(no_args_is_help=True, help="Manage {{NAME}} secrets.")
app.add_typer(buttons_app, name="buttons")
app.add_typer(secrets_app, name="secrets")
app.add_typer(doctor.app, name="doctor")

_console = Console()


def build_transport(settings: AppSettings) -> Transport:
    """Punto de inyección del transporte (los tests lo sustituyen)."""

    return HttpxTransport(settings)


def _settings() -> AppSettings:
    return AppSettings()


def _fail(message: str) -> typer.Exit:
    _console.print(f"[red]{message}[/red]")
    return typer.Exit(code=1)


def _button_store(settings: AppSettings) -> JsonButtonStore:
    return JsonButtonStore(settings.buttons_path, seed_example=True)


def _secret_store(settings: AppSettings) -> JsonFileSecretStore:
    return JsonFileSecretStore(settings.secrets_path)


def _parse_header(raw: str) -> HTTPHeader:
    if ":" not in raw:
        raise typer.BadParameter(f"Header must look like 'Name: value', got {raw!r}")
    name, value = raw.split(":", 1)
    return HTTPHeader(name=name.strip(), value=value.strip())


def _missing_secrets(button: ButtonConfig, known: set[str]) -> list[str]:
    req = button.request
    texts = [req.body, req.otp_secret, *(h.value for h in req.headers)]
    missing: list[str] = []
    for text in texts:
        for name in find_placeholders(text):
            if name and name != "OTP" and name not in known and name not in missing:
                missing.append(name)
    return missing


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logs to stderr."),
    log_json: bool = typer.Option(False, "--log-json", help="Logs as JSON lines."),
) -> None:
    settings = _settings()
    configure_logging(verbose=verbose or settings.verbose, log_json=log_json or settings.log_json)


@app.command()
def send(
    button_ref: str = typer.Argument(..., metavar="BUTTON", help="Button id or title."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer the confirmation prompt with yes."),
    json_output: bool = typer.Option(False, "--json", help="Print the outcome as JSON."),
) -> None:
    """Send a stored button through the guarded pipeline."""

    settings = _settings()
    try:
        button = _button_store(settings).get(button_ref)
        secrets = _secret_store(settings)
    except QikpostError as exc:
        raise _fail(str(exc)) from exc

    auth_gate = PasscodeAuthGate(settings.passcode_hash, make_passcode_prompt(_console))
    outcome = asyncio.run(
        dispatch(
            button.request,
            secrets=secrets,
            transport=build_transport(settings),
            auth_gate=auth_gate,
            confirmer=ConsoleConfirmer(_console, assume_yes=yes),
            settings=settings,
            title=button.title,
        )
    )

    if json_output:
        payload = {**outcome.model_dump(mode="json"), "ok": outcome.ok}
        typer.echo(json.dumps(payload, ensure_ascii=False))
    elif button.show_response or not outcome.ok:
        _console.print(build_outcome_panel(outcome, title=button.title))

    if not outcome.ok:
        raise typer.Exit(code=1)


@app.command()
def otp(
    secret: str = typer.Argument(..., help="Secret (Base32, hex or text) or a {{NAME}} reference."),
    digits: Optional[int] = typer.Option(None, "--digits", min=1, max=10),
    step: Optional[int] = typer.Option(None, "--step", min=1, help="Time step in seconds."),
) -> None:
    """Preview the current TOTP for a secret."""

    settings = _settings()
    try:
        resolved = resolve_secrets(secret, _secret_store(settings))
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    if not resolved.strip():
        raise _fail("OTP secret is empty.")
    unresolved = [n for n in find_placeholders(resolved) if n]
    if unresolved:
        raise _fail(f"Unknown secret '{unresolved[0]}'.")

    time_step = step or settings.otp_time_step_seconds
    code = otp_engine.generate_totp(
        secret_decoder.decode(resolved),
        time_step=time_step,
        digits=digits or settings.otp_digits,
    )
    encoding = secret_decoder.detect_encoding(resolved)
    remaining = otp_engine.seconds_remaining(None, time_step)
    _console.print(f"[bold green]{code}[/bold green]  [dim]({encoding.value}, {remaining}s left)[/dim]")


@app.command(name="export")
def export_cmd(output: Path = typer.Argument(..., help="Backup file to write.")) -> None:
    """Export buttons (OTP secrets scrubbed, secret names only)."""

    settings = _settings()
    try:
        document = build_backup(_button_store(settings).all(), _secret_store(settings).list())
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    path = export_backup_json(document=document, output_path=output)
    _console.print(f"[green]Exported {len(document.buttons)} buttons to:[/green] {path}")


@app.command(name="import")
def import_cmd(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="Backup file to read."),
    replace: bool = typer.Option(False, "--replace", help="Drop existing buttons first."),
) -> None:
    """Import buttons from a backup file."""

    settings = _settings()
    try:
        document = load_backup_json(source)
        store = _button_store(settings)
        store.replace_all(merge_buttons(store.all(), document.buttons, replace=replace))
        known = {e.name for e in _secret_store(settings).list()}
    except QikpostError as exc:
        raise _fail(str(exc)) from exc

    _console.print(f"[green]Imported {len(document.buttons)} buttons.[/green]")
    missing = [n for n in document.secret_names if n not in known]
    if missing:
        _console.print(f"[yellow]Secrets to recreate:[/yellow] {', '.join(missing)}")
    blank = [b.title for b in document.buttons if b.request.otp_enabled and not b.request.otp_secret]
    if blank:
        _console.print(f"[yellow]Buttons needing an OTP secret:[/yellow] {', '.join(blank)}")


@buttons_app.command("list")
def buttons_list() -> None:
    try:
        buttons = _button_store(_settings()).all()
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(build_buttons_table(buttons))


@buttons_app.command("show")
def buttons_show(button_ref: str = typer.Argument(..., metavar="BUTTON")) -> None:
    settings = _settings()
    try:
        button = _button_store(settings).get(button_ref)
        known = {e.name for e in _secret_store(settings).list()}
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(build_button_panel(button, missing=_missing_secrets(button, known)))
    if button.request.otp_enabled and OTP_TOKEN not in button.request.body:
        _console.print("[dim]Note: OTP is enabled but the body has no {{OTP}} placeholder.[/dim]")


@buttons_app.command("add")
def buttons_add(
    title: str = typer.Option(..., "--title", "-t"),
    url: str = typer.Option(..., "--url", "-u"),
    header: list[str] = typer.Option([], "--header", "-H", help="'Name: value' (repeatable)."),
    body: str = typer.Option("", "--body", "-d"),
    body_file: Optional[Path] = typer.Option(None, "--body-file", exists=True, dir_okay=False),
    otp_secret: Optional[str] = typer.Option(None, "--otp-secret", help="Enables OTP; may be {{NAME}}."),
    require_auth: bool = typer.Option(False, "--require-auth"),
    confirm: bool = typer.Option(False, "--confirm"),
    confirm_message: str = typer.Option(DEFAULT_CONFIRMATION_MESSAGE, "--confirm-message"),
    page: Optional[str] = typer.Option(None, "--page"),
    color: str = typer.Option("007AFF", "--color", help="Hex color, e.g. FF3B30."),
    hide_response: bool = typer.Option(False, "--hide-response"),
) -> None:
    """Add a button."""

    if body_file is not None:
        body = body_file.read_text(encoding="utf-8")
    try:
        button = ButtonConfig(
            title=title,
            page=page,
            color_hex=color,
            show_response=not hide_response,
            request=RequestDefinition(
                url=url,
                headers=tuple(_parse_header(h) for h in header),
                body=body,
                otp_enabled=otp_secret is not None,
                otp_secret=otp_secret or "",
                require_auth=require_auth,
                require_confirmation=confirm,
                confirmation_message=confirm_message,
            ),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        _button_store(_settings()).add(button)
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(f"[green]Added button[/green] {button.title} [dim]({button.id})[/dim]")


@buttons_app.command("remove")
def buttons_remove(button_ref: str = typer.Argument(..., metavar="BUTTON")) -> None:
    try:
        removed = _button_store(_settings()).delete(button_ref)
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(f"[green]Removed[/green] {removed.title}")


@buttons_app.command("move")
def buttons_move(
    button_ref: str = typer.Argument(..., metavar="BUTTON"),
    index: int = typer.Argument(..., min=0, help="New position (0-based)."),
) -> None:
    try:
        _button_store(_settings()).move(button_ref, index)
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(f"[green]Moved[/green] {button_ref} to {index}")


@secrets_app.command("list")
def secrets_list() -> None:
    try:
        entries = _secret_store(_settings()).list()
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(build_secrets_table(entries))


@secrets_app.command("set")
def secrets_set(
    name: str = typer.Argument(..., help="Used literally as {{NAME}}."),
    value: Optional[str] = typer.Option(None, "--value", help="Omit to be prompted (hidden)."),
) -> None:
    if not name.strip():
        raise typer.BadParameter("Secret name cannot be empty")
    if value is None:
        value = typer.prompt("Value", hide_input=True)
    try:
        _secret_store(_settings()).put(SecretEntry(name=name, value=value))
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(f"[green]Saved[/green] {{{{{name}}}}}")


@secrets_app.command("delete")
def secrets_delete(name: str = typer.Argument(...)) -> None:
    try:
        _secret_store(_settings()).delete(name)
    except QikpostError as exc:
        raise _fail(str(exc)) from exc
    _console.print(f"[green]Deleted[/green] {name}")


@app.command()
def banner() -> None:
    """Show the banner."""

    print_banner(_console)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
