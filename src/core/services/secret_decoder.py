"""Decodificación tolerante de los secretos OTP que pega el usuario.

Por qué no se pregunta el formato:
- Las claves llegan en Base32 (lo habitual en autenticadores), en hex o como
  texto plano; el decodificador prueba en un orden fijo y nunca falla:

1. Base32 (sin espacios, sin distinguir mayúsculas, padding opcional).
2. Hex, si la cadena sin espacios tiene longitud par.
3. Los bytes UTF-8 de la cadena original.

Desempate: una cadena válida en Base32 y en hex (solo `A-F`, `2-7`, longitud
par) se lee como Base32, salvo que venga en minúsculas (`"deadbeef"`), que es
como se suelen pegar los volcados hex.
"""

from __future__ import annotations

import string
from enum import Enum

BASE32_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"

_BASE32_INDEX = {ch: i for i, ch in enumerate(BASE32_ALPHABET)}
_HEX_DIGITS = frozenset(string.hexdigits)


class SecretEncoding(str, Enum):
    BASE32 = "base32"
    HEX = "hex"
    RAW = "raw"


def _strip_spaces(secret: str) -> str:
    return secret.replace(" ", "")


def _is_base32(cleaned: str) -> bool:
    return all(ch in _BASE32_INDEX for ch in cleaned.upper())


def _is_hex(cleaned: str) -> bool:
    return len(cleaned) % 2 == 0 and all(ch in _HEX_DIGITS for ch in cleaned)


def detect_encoding(secret: str) -> SecretEncoding:
    cleaned = _strip_spaces(secret)
    base32 = _is_base32(cleaned)
    hexa = _is_hex(cleaned)
    if base32 and hexa and any(ch.islower() for ch in cleaned):
        return SecretEncoding.HEX
    if base32:
        return SecretEncoding.BASE32
    if hexa:
        return SecretEncoding.HEX
    return SecretEncoding.RAW


def base32_decode(cleaned: str) -> bytes:
    """Base32 sin padding; descarta los bits finales que no completan un byte."""

    out = bytearray()
    buffer = 0
    bits = 0
    for ch in cleaned.upper():
        buffer = ((buffer << 5) | _BASE32_INDEX[ch]) & 0xFFFF
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
    return bytes(out)


def decode(secret: str) -> bytes:
    """Decodifica `secret` a bytes de clave. Total: toda entrada produce bytes."""

    encoding = detect_encoding(secret)
    if encoding is SecretEncoding.BASE32:
        return base32_decode(_strip_spaces(secret))
    if encoding is SecretEncoding.HEX:
        return bytes.fromhex(_strip_spaces(secret))
    return secret.encode("utf-8")
