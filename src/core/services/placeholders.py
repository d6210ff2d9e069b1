"""Sustitución de `{{NAME}}` / `{{OTP}}` en el texto de la petición.

Por qué reemplazo literal y no un motor de plantillas:
- Los tokens desconocidos se quedan tal cual y no hay escape para un `{{`
  literal, así que un cuerpo JSON con llaves nunca se rompe.
- Los valores resueltos se devuelven, nunca se guardan.
"""

from __future__ import annotations

import re
from typing import Mapping

from core.interfaces.secret_store import SecretStore

OTP_TOKEN = "{{OTP}}"

_TOKEN_RE = re.compile(r"\{\{(.*?)\}\}")
_REFERENCE_RE = re.compile(r"\{\{([^{}]+)\}\}")


def token_for(name: str) -> str:
    return "{{" + name + "}}"


def _as_mapping(secrets: SecretStore | Mapping[str, str]) -> Mapping[str, str]:
    if isinstance(secrets, Mapping):
        return secrets
    return secrets.snapshot()


def resolve_secrets(text: str, secrets: SecretStore | Mapping[str, str]) -> str:
    """Sustituye cada `{{name}}` cuyo nombre es conocido.

    Los nombres más largos se aplican primero para que el resultado no dependa
    del orden del store. Los nombres vacíos nunca se sustituyen.
    """

    if "{{" not in text:
        return text
    mapping = _as_mapping(secrets)
    result = text
    for name in sorted(mapping, key=lambda n: (-len(n), n)):
        if not name:
            continue
        result = result.replace(token_for(name), mapping[name])
    return result


def resolve_otp(text: str, otp: str | None) -> str:
    if otp is None:
        return text
    return text.replace(OTP_TOKEN, otp)


def find_placeholders(text: str) -> list[str]:
    """Nombres referenciados como `{{...}}` en `text`, por orden de aparición."""

    seen: dict[str, None] = {}
    for match in _TOKEN_RE.finditer(text):
        seen.setdefault(match.group(1), None)
    return list(seen)


def is_placeholder_reference(value: str) -> bool:
    """True si `value` es exactamente un token `{{NAME}}` (ignora espacios alrededor)."""

    return _REFERENCE_RE.fullmatch(value.strip()) is not None
