"""Tests for backup JSON export/import."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from adapters.json_exporter import export_backup_json, load_backup_json
from core.domain.models import ButtonConfig, RequestDefinition, SecretEntry
from core.errors import BackupFormatError
from core.services.backup import build_backup


def test_export_then_load(tmp_path: Path) -> None:
    buttons = [
        ButtonConfig(
            title="Door",
            request=RequestDefinition(url="https://x.test", otp_enabled=True, otp_secret="RAWKEY"),
        ),
        ButtonConfig(
            title="Gate",
            request=RequestDefinition(url="https://x.test", otp_enabled=True, otp_secret="{{GATE_KEY}}"),
        ),
    ]
    document = build_backup(buttons, [SecretEntry(name="GATE_KEY", value="JBSWY3DPEHPK3PXP")])
    path = export_backup_json(document=document, output_path=tmp_path / "out" / "backup.json")

    text = path.read_text(encoding="utf-8")
    assert "RAWKEY" not in text
    assert "JBSWY3DPEHPK3PXP" not in text
    assert json.loads(text)["secret_names"] == ["GATE_KEY"]

    loaded = load_backup_json(path)
    assert [b.id for b in loaded.buttons] == [b.id for b in buttons]
    assert [b.request.otp_secret for b in loaded.buttons] == ["", "{{GATE_KEY}}"]


def test_unknown_fields_are_ignored(tmp_path: Path) -> None:
    path = tmp_path / "backup.json"
    path.write_text(json.dumps({"version": 1, "buttons": [], "app": "other"}), encoding="utf-8")
    assert load_backup_json(path).buttons == []


@pytest.mark.parametrize(
    "content",
    [
        "not json",
        json.dumps({"version": 1, "buttons": [{"title": "no request"}]}),
        json.dumps({"version": 7, "buttons": []}),
    ],
)
def test_invalid_backup(tmp_path: Path, content: str) -> None:
    path = tmp_path / "backup.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(BackupFormatError):
        load_backup_json(path)
