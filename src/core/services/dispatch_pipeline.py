"""Envío protegido del POST de un botón.

El pipeline recorre una secuencia fija de puertas antes de que nada salga de
la máquina:

    confirmar -> autenticar -> generar OTP -> resolver placeholders -> enviar

Por qué este orden:
- La confirmación va primero: nunca se pide identidad para un envío que el
  usuario no quería.
- La autenticación va antes del OTP y de resolver secretos: un challenge
  rechazado nunca toca material secreto.

Por qué se inyectan los colaboradores:
- Store, transporte, auth gate y confirmador llegan por parámetro; la CLI y los
  tests recorren el mismo camino.
- Los resultados son valores `DispatchOutcome`; aquí nada lanza excepciones
  por un fallo esperado.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Mapping, TypeVar
from urllib.parse import urlsplit

from core.config import AppSettings
from core.domain.models import (
    DEFAULT_CONFIRMATION_MESSAGE,
    AuthenticationFailed,
    AuthOutcome,
    ConfirmationDeclined,
    DispatchOutcome,
    OTPGenerationFailed,
    PipelineStage,
    RequestDefinition,
    Sent,
    TransportError,
)
from core.interfaces.auth_gate import AuthGate
from core.interfaces.confirmer import Confirmer
from core.interfaces.secret_store import SecretStore
from core.interfaces.transport import Transport, TransportFailure
from core.services import otp_engine, secret_decoder
from core.services.placeholders import find_placeholders, resolve_otp, resolve_secrets

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PipelineHooks:
    """Callbacks opcionales para la UI (spinners, líneas de estado)."""

    stage_changed: Callable[[PipelineStage], None] | None = None


@dataclass
class PreparedRequest:
    """Petición ya resuelta. Contiene secretos: no registrar en logs."""

    url: str
    headers: list[tuple[str, str]] = field(default_factory=list)
    body: str = ""


class _StageInterrupted(Exception):
    def __init__(self, *, timed_out: bool) -> None:
        super().__init__("timed out" if timed_out else "cancelled")
        self.timed_out = timed_out


def _host(url: str) -> str:
    try:
        return urlsplit(url).hostname or "?"
    except ValueError:
        return "?"


async def _await_stage(
    awaitable: Awaitable[T],
    *,
    cancel: asyncio.Event | None,
    timeout: float | None = None,
) -> T:
    """Espera una etapa suspendible; la abandona en cuanto hay cancelación o timeout."""

    task = asyncio.ensure_future(awaitable)
    if cancel is None and timeout is None:
        return await task

    waiters: set[asyncio.Future] = {task}
    cancel_waiter: asyncio.Future | None = None
    if cancel is not None:
        cancel_waiter = asyncio.ensure_future(cancel.wait())
        waiters.add(cancel_waiter)

    try:
        done, _ = await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return task.result()
    raise _StageInterrupted(timed_out=not (cancel is not None and cancel.is_set()))


class DispatchPipeline:
    """Un envío protegido. Una instancia por petición en curso."""

    def __init__(
        self,
        *,
        secrets: SecretStore,
        transport: Transport,
        auth_gate: AuthGate | None = None,
        confirmer: Confirmer | None = None,
        settings: AppSettings | None = None,
        clock: Callable[[], float] = time.time,
        hooks: PipelineHooks | None = None,
    ) -> None:
        self._secrets = secrets
        self._transport = transport
        self._auth_gate = auth_gate
        self._confirmer = confirmer
        self._settings = settings or AppSettings()
        self._clock = clock
        self._hooks = hooks or PipelineHooks()
        self.stage = PipelineStage.IDLE
        self.history: list[PipelineStage] = [PipelineStage.IDLE]

    def _enter(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.history.append(stage)
        logger.debug("dispatch stage %s", stage.value)
        if self._hooks.stage_changed:
            self._hooks.stage_changed(stage)

    def _finish(self, outcome: DispatchOutcome, url: str) -> DispatchOutcome:
        self._enter(PipelineStage.TERMINAL)
        status = getattr(outcome, "status", None)
        logger.info("dispatch finished host=%s outcome=%s status=%s", _host(url), outcome.kind, status)
        return outcome

    async def send(
        self,
        request: RequestDefinition,
        *,
        title: str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> DispatchOutcome:
        if self.stage is not PipelineStage.IDLE:
            raise RuntimeError("DispatchPipeline instances are single-use")

        if request.require_confirmation:
            self._enter(PipelineStage.CONFIRMATION_PENDING)
            if not await self._confirm(request, title=title, cancel=cancel):
                return self._finish(ConfirmationDeclined(), request.url)

        if request.require_auth:
            self._enter(PipelineStage.AUTH_PENDING)
            auth = await self._authenticate(title=title, cancel=cancel)
            if not auth.is_approved:
                return self._finish(AuthenticationFailed(reason=auth.detail), request.url)

        # Los secretos solo se leen pasada la auth, una vez por envío.
        snapshot = self._secrets.snapshot()

        otp: str | None = None
        if request.otp_enabled:
            self._enter(PipelineStage.OTP_GENERATING)
            generated = self._generate_otp(request.otp_secret, snapshot)
            if isinstance(generated, OTPGenerationFailed):
                return self._finish(generated, request.url)
            otp = generated

        self._enter(PipelineStage.RESOLVING)
        prepared = self.prepare(request, snapshot, otp)

        self._enter(PipelineStage.SENDING)
        try:
            response = await _await_stage(
                self._transport.post(prepared.url, prepared.headers, prepared.body),
                cancel=cancel,
            )
        except TransportFailure as exc:
            return self._finish(TransportError(reason=str(exc)), request.url)
        except _StageInterrupted:
            return self._finish(TransportError(reason="Request cancelled."), request.url)

        return self._finish(Sent(status=response.status, body=response.body), request.url)

    async def _confirm(
        self,
        request: RequestDefinition,
        *,
        title: str | None,
        cancel: asyncio.Event | None,
    ) -> bool:
        if self._confirmer is None:
            logger.warning("confirmation required but no confirmer configured; declining")
            return False
        message = request.confirmation_message.strip() or DEFAULT_CONFIRMATION_MESSAGE
        if title:
            message = f"{title}: {message}"
        try:
            return await _await_stage(self._confirmer.confirm(message), cancel=cancel)
        except _StageInterrupted:
            return False

    async def _authenticate(self, *, title: str | None, cancel: asyncio.Event | None) -> AuthOutcome:
        gate = self._auth_gate
        if gate is None or not gate.is_available():
            return AuthOutcome.unavailable("Authentication not available on this device.")

        reason = f'Authenticate to send "{title}"' if title else "Authenticate to send request"
        try:
            outcome = await _await_stage(
                gate.challenge(reason),
                cancel=cancel,
                timeout=self._settings.auth_timeout_seconds,
            )
        except _StageInterrupted as exc:
            detail = "Authentication timed out." if exc.timed_out else "Authentication cancelled."
            return AuthOutcome.denied(detail)

        if not outcome.is_approved and not outcome.detail:
            return AuthOutcome(decision=outcome.decision, detail="Authentication failed.")
        return outcome

    def _generate_otp(self, otp_secret: str, snapshot: Mapping[str, str]) -> str | OTPGenerationFailed:
        secret = resolve_secrets(otp_secret, snapshot)
        if not secret.strip():
            return OTPGenerationFailed(reason="OTP secret is empty.")

        unresolved = [name for name in find_placeholders(secret) if name]
        if unresolved:
            return OTPGenerationFailed(reason=f"OTP secret references unknown secret '{unresolved[0]}'.")

        key = secret_decoder.decode(secret)
        if not key:
            return OTPGenerationFailed(reason="OTP secret decodes to no usable bytes.")
        logger.debug("otp secret decoded as %s", secret_decoder.detect_encoding(secret).value)

        try:
            return otp_engine.generate_totp(
                key,
                self._clock(),
                time_step=self._settings.otp_time_step_seconds,
                digits=self._settings.otp_digits,
            )
        except ValueError as exc:
            return OTPGenerationFailed(reason=str(exc))

    @staticmethod
    def prepare(
        request: RequestDefinition,
        secrets: Mapping[str, str],
        otp: str | None,
    ) -> PreparedRequest:
        """Resuelve `{{OTP}}` y luego `{{NAME}}` en el cuerpo y en cada cabecera.

        La URL se envía tal cual.
        """

        headers = [
            (header.name, resolve_secrets(resolve_otp(header.value, otp), secrets))
            for header in request.headers
        ]
        body = resolve_secrets(resolve_otp(request.body, otp), secrets)
        return PreparedRequest(url=request.url, headers=headers, body=body)


async def dispatch(
    request: RequestDefinition,
    *,
    secrets: SecretStore,
    transport: Transport,
    auth_gate: AuthGate | None = None,
    confirmer: Confirmer | None = None,
    settings: AppSettings | None = None,
    title: str | None = None,
    cancel: asyncio.Event | None = None,
    hooks: PipelineHooks | None = None,
) -> DispatchOutcome:
    pipeline = DispatchPipeline(
        secrets=secrets,
        transport=transport,
        auth_gate=auth_gate,
        confirmer=confirmer,
        settings=settings,
        hooks=hooks,
    )
    return await pipeline.send(request, title=title, cancel=cancel)
