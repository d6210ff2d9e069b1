"""Implementaciones de `SecretStore`.

- `InMemorySecretStore`: dict protegido por lock; útil en tests y como base.
- `JsonFileSecretStore`: persiste en un JSON con permisos 0600 en el
  directorio de datos del usuario. Escribe de forma atómica (tmp + replace)
  para que un lector nunca vea un fichero a medias.

Los valores nunca se registran en logs; solo nombres y conteos.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from pydantic import TypeAdapter, ValidationError

from core.domain.models import SecretEntry
from core.errors import StoreError

logger = logging.getLogger(__name__)

_ENTRIES = TypeAdapter(list[SecretEntry])


class InMemorySecretStore:
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._lock = threading.RLock()
        self._data: dict[str, str] = dict(initial or {})

    def get(self, name: str) -> str | None:
        with self._lock:
            return self._data.get(name)

    def list(self) -> list[SecretEntry]:
        with self._lock:
            return [SecretEntry(name=k, value=self._data[k]) for k in sorted(self._data)]

    def put(self, entry: SecretEntry) -> None:
        with self._lock:
            self._commit({**self._data, entry.name: entry.value})

    def delete(self, name: str) -> None:
        with self._lock:
            if name in self._data:
                self._commit({k: v for k, v in self._data.items() if k != name})

    def snapshot(self) -> Mapping[str, str]:
        with self._lock:
            return MappingProxyType(dict(self._data))

    def _commit(self, updated: dict[str, str]) -> None:
        # Primero se persiste; si falla, el mapa en memoria queda como estaba.
        self._persist(updated)
        self._data = updated

    def _persist(self, data: dict[str, str]) -> None:
        """Hook para subclases con almacenamiento; en memoria no hace nada."""


class JsonFileSecretStore(InMemorySecretStore):
    def __init__(self, path: Path) -> None:
        super().__init__()
        self._path = path
        self._data = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            entries = _ENTRIES.validate_python(raw.get("secrets", []) if isinstance(raw, dict) else raw)
        except (OSError, ValueError, ValidationError) as exc:
            raise StoreError(f"Cannot read secrets file {self._path}: {exc.__class__.__name__}") from exc
        logger.debug("loaded %d secrets from %s", len(entries), self._path)
        return {e.name: e.value for e in entries}

    def _persist(self, data: dict[str, str]) -> None:
        payload = {"secrets": [{"name": name, "value": data[name]} for name in sorted(data)]}
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(json.dumps(payload, ensure_ascii=False, indent=2) + "\n")
            os.chmod(tmp, 0o600)
            os.replace(tmp, self._path)
        except OSError as exc:
            raise StoreError(f"Cannot write secrets file {self._path}: {exc}") from exc
        logger.debug("saved %d secrets to %s", len(data), self._path)
