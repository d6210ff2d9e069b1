"""Contrato del transporte HTTP.

Por qué separado del cliente httpx:
- El pipeline solo necesita "un POST y su respuesta"; así los tests inyectan
  un transporte falso y cuentan llamadas.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class TransportResponse:
    status: int
    body: str


class TransportFailure(Exception):
    """Fallo de conexión (DNS, TLS, timeout, URL inválida). Mensaje legible."""


@runtime_checkable
class Transport(Protocol):
    async def post(
        self,
        url: str,
        headers: Sequence[tuple[str, str]],
        body: str,
    ) -> TransportResponse:
        """Envía un único POST. Lanza `TransportFailure` si no hay respuesta HTTP."""

        ...
