"""Reglas de exportación/importación de backups.

Por qué se limpia el contenido:
- Los backups se comparten entre dispositivos, así que nunca llevan material
  secreto: de los secretos solo se exportan los nombres.
- El `otp_secret` en crudo de un botón se vacía, salvo que sea una única
  referencia `{{NAME}}`, que apunta al store en vez de contener la clave.
"""

from __future__ import annotations

from typing import Iterable

from core.domain.models import BackupDocument, ButtonConfig, SecretEntry
from core.errors import BackupFormatError
from core.services.placeholders import is_placeholder_reference

BACKUP_VERSION = 1


def scrub_otp_secret(value: str) -> str:
    if is_placeholder_reference(value):
        return value
    return ""


def scrub_button(button: ButtonConfig) -> ButtonConfig:
    scrubbed = button.request.model_copy(update={"otp_secret": scrub_otp_secret(button.request.otp_secret)})
    return button.model_copy(update={"request": scrubbed})


def build_backup(buttons: Iterable[ButtonConfig], secrets: Iterable[SecretEntry] = ()) -> BackupDocument:
    return BackupDocument(
        version=BACKUP_VERSION,
        buttons=[scrub_button(b) for b in buttons],
        secret_names=sorted({s.name for s in secrets if s.name}),
    )


def check_backup(document: BackupDocument) -> BackupDocument:
    if document.version != BACKUP_VERSION:
        raise BackupFormatError(f"Unsupported backup version: {document.version}")
    return document


def merge_buttons(
    existing: list[ButtonConfig],
    incoming: Iterable[ButtonConfig],
    *,
    replace: bool = False,
) -> list[ButtonConfig]:
    """Mezcla por id; gana el botón importado. `replace` descarta el resto."""

    if replace:
        return list(incoming)
    merged = {b.id: b for b in existing}
    order = [b.id for b in existing]
    for button in incoming:
        if button.id not in merged:
            order.append(button.id)
        merged[button.id] = button
    return [merged[i] for i in order]
