"""Wrapper de httpx.

Por qué un wrapper:
- Estandariza timeouts, headers por defecto y redirecciones.
- Traduce los errores de conexión de httpx a `TransportFailure`, que es lo único
  que el pipeline entiende.
- Facilita testeo: se puede sustituir el transporte por `httpx.MockTransport`.
"""

from __future__ import annotations

from typing import Sequence

import httpx

from core.config import AppSettings
from core.interfaces.transport import TransportFailure, TransportResponse


def build_async_client(
    settings: AppSettings | None = None,
    *,
    extra_headers: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Crea un `httpx.AsyncClient` con defaults seguros.

    Por qué un builder:
    - Centraliza timeouts/headers para que todos los envíos se comporten igual.
    - `transport` permite inyectar `httpx.MockTransport` en tests.
    """

    settings = settings or AppSettings()
    headers: dict[str, str] = {
        "User-Agent": settings.user_agent,
    }
    if extra_headers:
        headers.update(extra_headers)
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=settings.follow_redirects,
        headers=headers,
        transport=transport,
    )


def describe_http_error(exc: Exception) -> str:
    """Mensaje legible para un fallo de red (sin URL completa ni cuerpo)."""

    if isinstance(exc, httpx.TimeoutException):
        return "Request timed out."
    if isinstance(exc, httpx.ConnectError):
        return f"Could not connect: {exc}"
    if isinstance(exc, httpx.UnsupportedProtocol):
        return "The button has an invalid URL (unsupported scheme)."
    if isinstance(exc, httpx.InvalidURL):
        return "The button has an invalid URL."
    return f"Network error: {exc.__class__.__name__}"


class HttpxTransport:
    """`Transport` sobre httpx: un POST, sin reintentos.

    Las cabeceras del botón se aplican tal cual (incluido `Content-Type`);
    el cuerpo se envía como texto UTF-8 sin validar.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._client = client

    async def post(
        self,
        url: str,
        headers: Sequence[tuple[str, str]],
        body: str,
    ) -> TransportResponse:
        content = body.encode("utf-8") if body else None
        # httpx codifica los `str` de cabecera como ASCII; un secreto resuelto
        # puede no serlo.
        raw_headers = [(name, value.encode("utf-8")) for name, value in headers]
        try:
            if self._client is not None:
                response = await self._client.post(url, headers=raw_headers, content=content)
            else:
                async with build_async_client(self._settings) as client:
                    response = await client.post(url, headers=raw_headers, content=content)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportFailure(describe_http_error(exc)) from exc
        except UnicodeEncodeError as exc:
            raise TransportFailure("A header name is not valid ASCII.") from exc

        return TransportResponse(
            status=response.status_code,
            body=response.text if response.content else "No response body",
        )
