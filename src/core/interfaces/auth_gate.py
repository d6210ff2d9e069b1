"""Contrato de verificación de identidad del dispositivo."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import AuthOutcome


@runtime_checkable
class AuthGate(Protocol):
    """Capacidad opaca de verificación (biometría, passcode, ...).

    Reglas de diseño:
    - `challenge` es asíncrono porque espera interacción del usuario.
    - Una cancelación del usuario se devuelve como `Denied`; nunca se queda
      colgado ni lanza.
    """

    def is_available(self) -> bool: ...

    async def challenge(self, reason: str) -> AuthOutcome: ...
