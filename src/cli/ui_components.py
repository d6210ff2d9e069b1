"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en múltiples comandos.
"""

from __future__ import annotations

from typing import Iterable

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import ButtonConfig, DispatchOutcome, SecretEntry


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida.

    Por qué aquí:
    - Evita dependencias circulares (main <-> doctor).
    - Permite desactivar banner en modos no interactivos (JSON/pipelines).
    """

    title = Text("qikpost", style="bold cyan")
    subtitle = Text("HTTP POST buttons • OTP • Secrets", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def _flags(button: ButtonConfig) -> str:
    req = button.request
    flags = []
    if req.require_confirmation:
        flags.append("confirm")
    if req.require_auth:
        flags.append("auth")
    if req.otp_enabled:
        flags.append("otp")
    return ", ".join(flags) or "-"


def build_buttons_table(buttons: Iterable[ButtonConfig]) -> Table:
    table = Table(title="Buttons")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Title", style="cyan")
    table.add_column("Page", style="white")
    table.add_column("URL", style="magenta")
    table.add_column("Gates", style="yellow")
    table.add_column("Id", style="dim")
    for index, button in enumerate(buttons):
        table.add_row(
            str(index),
            button.title,
            button.page or "-",
            button.request.url,
            _flags(button),
            button.id,
        )
    return table


def mask_value(value: str) -> str:
    if not value:
        return "(empty)"
    return "•" * min(len(value), 8)


def build_secrets_table(entries: Iterable[SecretEntry]) -> Table:
    table = Table(title="Secrets")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Placeholder", style="green")
    table.add_column("Value", style="dim")
    for entry in entries:
        table.add_row(entry.name, "{{" + entry.name + "}}", mask_value(entry.value))
    return table


def build_button_panel(button: ButtonConfig, *, missing: Iterable[str] = ()) -> Panel:
    req = button.request
    body = Text()
    body.append("URL: ", style="bold")
    body.append(req.url + "\n")
    if req.headers:
        body.append("Headers:\n", style="bold")
        for header in req.headers:
            body.append(f"  {header.name}: {header.value}\n")
    body.append("Body:\n", style="bold")
    body.append((req.body or "(empty)") + "\n")
    body.append(f"\nGates: {_flags(button)}")
    if req.require_confirmation:
        body.append(f"\nConfirmation: {req.confirmation_message}")
    if req.otp_enabled:
        body.append("\nOTP secret: ")
        body.append("(set)" if req.otp_secret else "(empty)", style="dim")
    missing = list(missing)
    if missing:
        body.append("\n\nMissing secrets: ", style="bold red")
        body.append(", ".join(missing), style="red")
    return Panel(body, title=Text(button.title, style="bold cyan"), border_style="cyan")


def build_outcome_panel(outcome: DispatchOutcome, *, title: str | None = None) -> Panel:
    """Panel con el resultado de un envío (sin secretos, solo status y cuerpo)."""

    heading = title or "Result"
    if outcome.kind == "sent":
        style = "green" if outcome.ok else "red"
        body = Text(f"Status: {outcome.status}\n\nResponse:\n{outcome.body}")
        return Panel(body, title=Text(heading, style=f"bold {style}"), border_style=style)
    if outcome.kind == "confirmation_declined":
        return Panel(Text("Cancelled."), title=Text(heading, style="bold yellow"), border_style="yellow")
    if outcome.kind == "authentication_failed":
        body = Text(f"Authentication Failed:\n{outcome.reason}")
    elif outcome.kind == "otp_generation_failed":
        body = Text(f"OTP Generation Failed:\n{outcome.reason}")
    else:
        body = Text(f"Request Failed:\n{outcome.reason}")
    return Panel(body, title=Text(heading, style="bold red"), border_style="red")
