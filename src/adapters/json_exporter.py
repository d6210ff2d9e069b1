"""Exportación/importación JSON de backups.

Por qué JSON:
- Portable entre dispositivos y legible para revisar qué se exporta.
- El scrub de secretos ya viene hecho por `core.services.backup`; aquí solo se
  serializa con formato estable.
"""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import ValidationError

from core.domain.models import BackupDocument
from core.errors import BackupFormatError
from core.services.backup import check_backup


def export_backup_json(*, document: BackupDocument, output_path: Path) -> Path:
    """Exporta `BackupDocument` a JSON UTF-8 con formato estable."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    payload = document.model_dump(mode="json")
    output_path.write_text(
        json.dumps(payload, ensure_ascii=False, indent=2, sort_keys=True) + "\n",
        encoding="utf-8",
    )
    return output_path


def load_backup_json(path: Path) -> BackupDocument:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        document = BackupDocument.model_validate(data)
    except (OSError, ValueError, ValidationError) as exc:
        raise BackupFormatError(f"Invalid backup file {path}: {exc.__class__.__name__}") from exc
    return check_backup(document)
