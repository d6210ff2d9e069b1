"""Implementaciones de `AuthGate`.

En escritorio/terminal no hay Face ID: la verificación de identidad es un
passcode local cuyo hash vive en la config (`QIKPOST_PASSCODE_HASH`).

- `StaticAuthGate`: devuelve siempre el mismo resultado (modo headless, tests).
- `PasscodeAuthGate`: pide el passcode mediante un callable inyectado (que se
  ejecuta en un hilo para no bloquear el event loop) y lo compara con el hash.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from typing import Callable

from adapters.console_prompts import run_prompt
from core.domain.models import AuthOutcome

logger = logging.getLogger(__name__)

PASSCODE_SCHEME = "pbkdf2_sha256"
DEFAULT_ITERATIONS = 390_000


def hash_passcode(passcode: str, *, iterations: int = DEFAULT_ITERATIONS, salt: bytes | None = None) -> str:
    """Devuelve `pbkdf2_sha256$<iter>$<salt hex>$<hash hex>`."""

    salt = salt if salt is not None else secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", passcode.encode("utf-8"), salt, iterations)
    return f"{PASSCODE_SCHEME}${iterations}${salt.hex()}${digest.hex()}"


def verify_passcode(passcode: str, encoded: str) -> bool:
    try:
        scheme, iterations, salt_hex, hash_hex = encoded.split("$")
        if scheme != PASSCODE_SCHEME:
            return False
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
        rounds = int(iterations)
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", passcode.encode("utf-8"), salt, rounds)
    return hmac.compare_digest(digest, expected)


def is_valid_passcode_hash(encoded: str | None) -> bool:
    if not encoded:
        return False
    parts = encoded.split("$")
    return len(parts) == 4 and parts[0] == PASSCODE_SCHEME and parts[1].isdigit()


class StaticAuthGate:
    def __init__(self, outcome: AuthOutcome, *, available: bool = True) -> None:
        self._outcome = outcome
        self._available = available
        self.calls = 0

    def is_available(self) -> bool:
        return self._available

    async def challenge(self, reason: str) -> AuthOutcome:
        self.calls += 1
        return self._outcome


class PasscodeAuthGate:
    """Passcode con hasta `max_attempts` intentos.

    `prompt(reason)` devuelve el texto introducido; `EOFError` o
    `KeyboardInterrupt` cuentan como cancelación del usuario (`Denied`).
    """

    def __init__(
        self,
        passcode_hash: str | None,
        prompt: Callable[[str], str],
        *,
        max_attempts: int = 3,
    ) -> None:
        # Hash vacío = no configurado (o con formato inválido).
        self._hash: str = passcode_hash if passcode_hash and is_valid_passcode_hash(passcode_hash) else ""
        self._prompt = prompt
        self._max_attempts = max(1, max_attempts)

    def is_available(self) -> bool:
        return bool(self._hash)

    async def challenge(self, reason: str) -> AuthOutcome:
        if not self.is_available():
            return AuthOutcome.unavailable("No passcode configured. Run `qikpost doctor set-passcode`.")

        for attempt in range(1, self._max_attempts + 1):
            try:
                entered = await run_prompt(self._prompt, reason)
            except (EOFError, KeyboardInterrupt):
                return AuthOutcome.denied("Authentication cancelled.")
            if verify_passcode(entered, self._hash):
                return AuthOutcome.approved()
            logger.info("passcode rejected (attempt %d/%d)", attempt, self._max_attempts)
        return AuthOutcome.denied("Incorrect passcode.")
