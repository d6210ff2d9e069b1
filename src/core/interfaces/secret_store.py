"""Contrato del almacén de secretos.

Por qué Protocol:
- El pipeline recibe el store explícitamente (nada de estado global), así que
  basta con un contrato estructural para poder usar un dict en memoria en tests
  y un fichero en la CLI.
"""

from __future__ import annotations

from typing import Mapping, Protocol, runtime_checkable

from core.domain.models import SecretEntry


@runtime_checkable
class SecretStore(Protocol):
    """Mapa lógico nombre -> valor.

    Reglas:
    - Nombres únicos y sensibles a mayúsculas; `put` sobre un nombre existente
      lo sobrescribe.
    - `snapshot` devuelve una copia inmutable: una pasada de resolución ve un
      estado consistente aunque otro escritor edite el store a la vez.
    """

    def get(self, name: str) -> str | None: ...

    def list(self) -> list[SecretEntry]: ...

    def put(self, entry: SecretEntry) -> None: ...

    def delete(self, name: str) -> None: ...

    def snapshot(self) -> Mapping[str, str]: ...
