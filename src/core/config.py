"""Configuración del Core.

Por qué aquí:
- Centraliza variables de entorno (pydantic-settings) sin contaminar la CLI.
- Permite que adaptadores (HTTP, stores, auth) lean config de forma consistente.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def get_user_config_dir() -> Path:
    """Directorio de configuración por usuario (cross-platform, sin dependencias)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "qikpost"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "qikpost"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "qikpost"
    return Path.home() / ".config" / "qikpost"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def _parse_env_lines(text: str) -> dict[str, str]:
    """Lee `KEY=value` (acepta `export KEY=value` y comillas simples/dobles)."""

    parsed: dict[str, str] = {}
    for line in map(str.strip, text.splitlines()):
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep or not key or key.startswith("#"):
            continue
        parsed[key] = value.strip().strip('"').strip("'")
    return parsed


def write_user_env_vars(values: dict[str, str], *, env_path: Path | None = None) -> Path:
    """Escribe/actualiza variables en el .env global del usuario."""

    env_path = env_path or get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = _parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# qikpost user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Configuración central de la aplicación.

    Por qué pydantic-settings:
    - Tipado + validación en el borde (env vars) sin ensuciar el Core con lógica.
    - Un único contrato de configuración para CLI/adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="QIKPOST_",
        extra="ignore",
        case_sensitive=False,
        # Orden: proyecto primero (dev), luego config global de usuario.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Timeout por request (segundos).",
    )
    user_agent: str = Field(
        default="qikpost/0.8",
        min_length=1,
        description="User-Agent por defecto (las cabeceras del botón lo pueden sobrescribir).",
    )
    follow_redirects: bool = Field(
        default=True,
        description="Seguir redirecciones HTTP al enviar un botón.",
    )

    otp_time_step_seconds: int = Field(
        default=30,
        ge=1,
        le=3600,
        description="Ventana TOTP (segundos).",
    )
    otp_digits: int = Field(
        default=6,
        ge=1,
        le=10,
        description="Número de dígitos del OTP.",
    )

    auth_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Tiempo máximo esperando la verificación de identidad.",
    )
    passcode_hash: str | None = Field(
        default=None,
        description="Hash del passcode local (pbkdf2_sha256$iter$salt$hash).",
    )

    data_dir: Path | None = Field(
        default=None,
        description="Directorio de datos (secrets.json, buttons.json). Por defecto, el de config.",
    )

    log_json: bool = Field(
        default=False,
        description="Logs como líneas JSON en stderr.",
    )
    verbose: bool = Field(
        default=False,
        description="Activa logs DEBUG del namespace de la aplicación.",
    )

    def resolved_data_dir(self) -> Path:
        return self.data_dir or get_user_config_dir()

    @property
    def secrets_path(self) -> Path:
        return self.resolved_data_dir() / "secrets.json"

    @property
    def buttons_path(self) -> Path:
        return self.resolved_data_dir() / "buttons.json"
