"""Contrato de la confirmación previa al envío."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Confirmer(Protocol):
    async def confirm(self, message: str) -> bool:
        """Devuelve True si el usuario acepta enviar."""

        ...
