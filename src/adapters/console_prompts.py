"""Prompts de consola (Rich) para confirmación y passcode.

Por qué un hilo daemon propio (y no `asyncio.to_thread`):
- Los prompts bloquean leyendo stdin y no se pueden interrumpir.
- Si el pipeline cancela o agota el tiempo, `asyncio.run` esperaría al hilo del
  executor por defecto antes de salir; un hilo daemon que nadie espera deja que
  `qikpost send` termine en cuanto hay resultado.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Callable, TypeVar

from rich.console import Console
from rich.prompt import Confirm, Prompt

T = TypeVar("T")


async def run_prompt(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Ejecuta un prompt bloqueante en un hilo daemon y espera su resultado."""

    loop = asyncio.get_running_loop()
    future: asyncio.Future[T] = loop.create_future()

    def settle(result: Any, error: BaseException | None) -> None:
        if future.done():
            return
        if error is not None:
            future.set_exception(error)
        else:
            future.set_result(result)

    def worker() -> None:
        result: Any = None
        error: BaseException | None = None
        try:
            result = func(*args, **kwargs)
        except (Exception, KeyboardInterrupt) as exc:
            error = exc
        try:
            loop.call_soon_threadsafe(settle, result, error)
        except RuntimeError:
            # El loop ya cerró: nadie espera este prompt.
            pass

    threading.Thread(target=worker, name="qikpost-prompt", daemon=True).start()
    return await future


class ConsoleConfirmer:
    def __init__(self, console: Console | None = None, *, assume_yes: bool = False) -> None:
        self._console = console or Console()
        self._assume_yes = assume_yes

    async def confirm(self, message: str) -> bool:
        if self._assume_yes:
            return True
        try:
            return await run_prompt(Confirm.ask, message, console=self._console, default=False)
        except (EOFError, KeyboardInterrupt):
            return False


def make_passcode_prompt(console: Console | None = None) -> Callable[[str], str]:
    console = console or Console()

    def prompt(reason: str) -> str:
        return Prompt.ask(f"{reason}\nPasscode", console=console, password=True)

    return prompt
