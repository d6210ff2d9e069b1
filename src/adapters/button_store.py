"""Almacén de botones en JSON.

Formato:
    {"buttons": [ButtonConfig, ...]}

Es un blob plano por clave (el orden de la lista es el orden en pantalla); no
pretende ser un motor de almacenamiento. Los `otp_secret` se guardan tal cual
porque este fichero es local al usuario; el scrub aplica solo a backups.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from core.domain.models import ButtonConfig, HTTPHeader, RequestDefinition
from core.errors import ButtonNotFoundError, StoreError

logger = logging.getLogger(__name__)


class ButtonsFile(BaseModel):
    buttons: list[ButtonConfig] = Field(default_factory=list)


def example_button(page: str | None = None) -> ButtonConfig:
    return ButtonConfig(
        title="Example API Call",
        page=page,
        request=RequestDefinition(
            url="https://jsonplaceholder.typicode.com/posts",
            headers=(
                HTTPHeader(name="Content-Type", value="application/json"),
                HTTPHeader(name="Accept", value="application/json"),
            ),
            body='{\n    "title": "Test Post",\n    "body": "This is a test",\n    "userId": 1\n}',
        ),
    )


class JsonButtonStore:
    def __init__(self, path: Path, *, seed_example: bool = False) -> None:
        self._path = path
        self._buttons = self._load()
        if seed_example and not self._path.exists() and not self._buttons:
            self._buttons = [example_button()]
            self._save()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> list[ButtonConfig]:
        if not self._path.exists():
            return []
        try:
            raw = self._path.read_text(encoding="utf-8")
            data = json.loads(raw)
            return ButtonsFile.model_validate(data).buttons
        except (OSError, ValueError, ValidationError) as exc:
            raise StoreError(f"Cannot read buttons file {self._path}: {exc.__class__.__name__}") from exc

    def _save(self) -> None:
        payload = ButtonsFile(buttons=self._buttons).model_dump(mode="json")
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
            os.chmod(tmp, 0o600)
            os.replace(tmp, self._path)
        except OSError as exc:
            raise StoreError(f"Cannot write buttons file {self._path}: {exc}") from exc
        logger.debug("saved %d buttons to %s", len(self._buttons), self._path)

    def all(self) -> list[ButtonConfig]:
        return list(self._buttons)

    def get(self, ref: str) -> ButtonConfig:
        """Busca por id exacto o, si no, por título (sin distinguir mayúsculas)."""

        for button in self._buttons:
            if button.id == ref:
                return button
        wanted = ref.strip().casefold()
        for button in self._buttons:
            if button.title.casefold() == wanted:
                return button
        raise ButtonNotFoundError(ref)

    def add(self, button: ButtonConfig) -> ButtonConfig:
        self._buttons.append(button)
        self._save()
        return button

    def update(self, button: ButtonConfig) -> None:
        for index, existing in enumerate(self._buttons):
            if existing.id == button.id:
                self._buttons[index] = button
                self._save()
                return
        raise ButtonNotFoundError(button.id)

    def delete(self, ref: str) -> ButtonConfig:
        button = self.get(ref)
        self._buttons = [b for b in self._buttons if b.id != button.id]
        self._save()
        return button

    def move(self, ref: str, index: int) -> None:
        button = self.get(ref)
        rest = [b for b in self._buttons if b.id != button.id]
        index = max(0, min(index, len(rest)))
        rest.insert(index, button)
        self._buttons = rest
        self._save()

    def replace_all(self, buttons: list[ButtonConfig]) -> None:
        self._buttons = list(buttons)
        self._save()
