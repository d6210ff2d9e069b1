"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Nos da validación estricta y documentación autocontenida (Field) sin acoplar
  el Core a librerías de I/O.
- Los mismos modelos sirven para persistir botones y para exportar backups.

Nota:
- Estos modelos describen *qué* se envía y *qué* resultó, no *cómo*.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict

DEFAULT_CONFIRMATION_MESSAGE = "Confirm to send ?"


class HTTPHeader(BaseModel):
    """Cabecera HTTP de un botón. El valor puede contener placeholders."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Nombre de la cabecera.")
    value: str = Field(default="", description="Valor (admite `{{NAME}}`).")


class RequestDefinition(BaseModel):
    """Definición inmutable de un envío.

    Por qué frozen:
    - El pipeline la toma prestada durante un único envío; nadie debe mutarla
      a mitad de camino.
    """

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="URL destino del POST (sin placeholders).")
    headers: tuple[HTTPHeader, ...] = Field(
        default=(),
        description="Cabeceras en orden; los valores admiten placeholders.",
    )
    body: str = Field(
        default="",
        description="Cuerpo en texto plano; admite `{{NAME}}` y `{{OTP}}`.",
    )
    otp_enabled: bool = Field(default=False, description="Generar TOTP antes de enviar.")
    otp_secret: str = Field(
        default="",
        repr=False,
        description="Secreto TOTP (Base32/hex/raw) o referencia `{{NAME}}`.",
    )
    require_auth: bool = Field(default=False, description="Exigir verificación de identidad.")
    require_confirmation: bool = Field(default=False, description="Pedir confirmación al usuario.")
    confirmation_message: str = Field(
        default=DEFAULT_CONFIRMATION_MESSAGE,
        description="Texto de la confirmación.",
    )


class SecretEntry(BaseModel):
    """Secreto con nombre. El valor nunca aparece en repr ni en logs."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Clave única, sensible a mayúsculas.")
    value: str = Field(default="", repr=False, description="Valor opaco.")


class OTPParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    secret_bytes: bytes = Field(default=b"", repr=False)
    time_step: int = Field(default=30, ge=1)
    digits: int = Field(default=6, ge=1, le=10)


class AuthDecision(str, Enum):
    APPROVED = "approved"
    DENIED = "denied"
    UNAVAILABLE = "unavailable"


class AuthOutcome(BaseModel):
    """Resultado de una verificación de identidad."""

    model_config = ConfigDict(frozen=True)

    decision: AuthDecision
    detail: str = ""

    @classmethod
    def approved(cls) -> "AuthOutcome":
        return cls(decision=AuthDecision.APPROVED)

    @classmethod
    def denied(cls, detail: str = "Authentication cancelled or rejected.") -> "AuthOutcome":
        return cls(decision=AuthDecision.DENIED, detail=detail)

    @classmethod
    def unavailable(cls, detail: str) -> "AuthOutcome":
        return cls(decision=AuthDecision.UNAVAILABLE, detail=detail)

    @property
    def is_approved(self) -> bool:
        return self.decision is AuthDecision.APPROVED


class PipelineStage(str, Enum):
    IDLE = "idle"
    CONFIRMATION_PENDING = "confirmation_pending"
    AUTH_PENDING = "auth_pending"
    OTP_GENERATING = "otp_generating"
    RESOLVING = "resolving"
    SENDING = "sending"
    TERMINAL = "terminal"


class Sent(BaseModel):
    """La petición salió y hubo respuesta HTTP (cualquier status)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["sent"] = "sent"
    status: int
    body: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status <= 299


class ConfirmationDeclined(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["confirmation_declined"] = "confirmation_declined"

    @property
    def ok(self) -> bool:
        return False


class AuthenticationFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["authentication_failed"] = "authentication_failed"
    reason: str = ""

    @property
    def ok(self) -> bool:
        return False


class OTPGenerationFailed(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["otp_generation_failed"] = "otp_generation_failed"
    reason: str = "Invalid secret key. Please check your secret format."

    @property
    def ok(self) -> bool:
        return False


class TransportError(BaseModel):
    """Fallo a nivel de conexión (DNS, TLS, timeout, URL inválida)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["transport_error"] = "transport_error"
    reason: str = ""

    @property
    def ok(self) -> bool:
        return False


DispatchOutcome = Annotated[
    Union[Sent, ConfirmationDeclined, AuthenticationFailed, OTPGenerationFailed, TransportError],
    Field(discriminator="kind"),
]


class ButtonConfig(BaseModel):
    """Botón almacenado: una `RequestDefinition` más datos de presentación.

    Por qué separado de `RequestDefinition`:
    - El pipeline solo necesita la definición del envío; título, página y color
      son cosa del colaborador que gestiona botones.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(default="New Button", min_length=1, max_length=128)
    page: str | None = Field(default=None, description="Página/pestaña (solo agrupación).")
    request: RequestDefinition
    show_response: bool = Field(default=True, description="Mostrar la respuesta tras enviar.")
    response_timeout: int = Field(
        default=0,
        ge=0,
        description="Autocierre del resultado en segundos (0 = manual).",
    )
    color_hex: str = Field(default="007AFF", pattern=r"^[0-9A-Fa-f]{6}$")


class BackupDocument(BaseModel):
    """Formato del backup exportado.

    Solo contiene nombres de secretos, nunca valores; los `otp_secret` en
    crudo se vacían al exportar (ver `core.services.backup`).
    """

    model_config = ConfigDict(extra="ignore")

    version: int = Field(default=1, ge=1)
    exported_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    buttons: list[ButtonConfig] = Field(default_factory=list)
    secret_names: list[str] = Field(default_factory=list)
