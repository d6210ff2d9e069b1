"""Generación HOTP/TOTP (RFC 4226 / RFC 6238, HMAC-SHA1).

Por qué funciones puras:
- Sin I/O ni estado; solo se lee el reloj si el llamador omite `reference_time`.
- Los tests pasan siempre un instante fijo y comprueban los vectores de los RFC.
"""

from __future__ import annotations

import hashlib
import hmac
import struct
import time
from datetime import datetime

DEFAULT_TIME_STEP = 30
DEFAULT_DIGITS = 6
MAX_DIGITS = 10


def _validate(digits: int, time_step: float | None = None) -> None:
    if not 1 <= digits <= MAX_DIGITS:
        raise ValueError(f"digits must be between 1 and {MAX_DIGITS}")
    if time_step is not None and time_step <= 0:
        raise ValueError("time_step must be positive")


def _unix_seconds(reference_time: datetime | float | None) -> float:
    if reference_time is None:
        return time.time()
    if isinstance(reference_time, datetime):
        return reference_time.timestamp()
    return float(reference_time)


def generate_hotp(secret_bytes: bytes, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    _validate(digits)
    if counter < 0:
        raise ValueError("counter must be a non-negative integer")

    mac = hmac.new(secret_bytes, struct.pack(">Q", counter), hashlib.sha1).digest()
    offset = mac[-1] & 0x0F
    (value,) = struct.unpack(">I", mac[offset : offset + 4])
    value &= 0x7FFFFFFF
    return str(value % 10**digits).zfill(digits)


def time_counter(reference_time: datetime | float | None, time_step: float = DEFAULT_TIME_STEP) -> int:
    _validate(DEFAULT_DIGITS, time_step)
    return int(_unix_seconds(reference_time) // time_step)


def generate_totp(
    secret_bytes: bytes,
    reference_time: datetime | float | None = None,
    time_step: float = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
) -> str:
    """Devuelve el TOTP para `reference_time` (`None` = ahora)."""

    _validate(digits, time_step)
    return generate_hotp(secret_bytes, time_counter(reference_time, time_step), digits)


def seconds_remaining(reference_time: datetime | float | None, time_step: float = DEFAULT_TIME_STEP) -> int:
    """Segundos hasta que cambie el código actual."""

    _validate(DEFAULT_DIGITS, time_step)
    elapsed = _unix_seconds(reference_time) % time_step
    return int(time_step - elapsed)
