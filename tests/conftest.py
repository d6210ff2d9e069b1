"""Shared pytest fixtures and fakes for qikpost tests."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

import pytest

from adapters.secret_stores import InMemorySecretStore
from core.config import AppSettings
from core.interfaces.transport import TransportFailure, TransportResponse

# RFC 6238 Appendix B / RFC 4226 Appendix D shared secret.
RFC_SECRET = b"12345678901234567890"


class FakeTransport:
    """Records every POST; returns a canned response or raises."""

    def __init__(self, status: int = 200, body: str = "ok", error: str | None = None) -> None:
        self.status = status
        self.body = body
        self.error = error
        self.calls: list[tuple[str, list[tuple[str, str]], str]] = []

    async def post(self, url: str, headers: Sequence[tuple[str, str]], body: str) -> TransportResponse:
        self.calls.append((url, list(headers), body))
        if self.error is not None:
            raise TransportFailure(self.error)
        return TransportResponse(status=self.status, body=self.body)


class FakeConfirmer:
    def __init__(self, answer: bool) -> None:
        self.answer = answer
        self.messages: list[str] = []

    async def confirm(self, message: str) -> bool:
        self.messages.append(message)
        return self.answer


class CountingSecretStore(InMemorySecretStore):
    """In-memory store that counts reads, to prove secrets were not touched."""

    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        super().__init__(initial)
        self.reads = 0

    def get(self, name: str) -> str | None:
        self.reads += 1
        return super().get(name)

    def snapshot(self) -> Mapping[str, str]:
        self.reads += 1
        return super().snapshot()


@pytest.fixture
def settings(tmp_path: Path) -> AppSettings:
    """Settings isolated from the user's .env files."""
    return AppSettings(_env_file=None, data_dir=tmp_path)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def secret_store() -> CountingSecretStore:
    return CountingSecretStore({"TOKEN": "abc", "TOTP_KEY": "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"})


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the CLI at a temp data dir and away from any real .env."""
    for key in ("QIKPOST_PASSCODE_HASH", "QIKPOST_VERBOSE", "QIKPOST_LOG_JSON"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("QIKPOST_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.chdir(tmp_path)
    return tmp_path / "data"
