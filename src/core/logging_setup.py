"""Configuración de logging (structlog sobre logging estándar).

Dos modos de salida:
- Humano (por defecto): renderer de consola con colores a stderr.
- JSON (`--log-json`): una línea JSON por evento a stderr.

Los módulos siguen usando `logging.getLogger(__name__)`; structlog solo
formatea. Nunca se registran valores de secretos ni códigos OTP.
"""

from __future__ import annotations

import logging
import sys

import structlog

APP_LOGGER = "qikpost"

# Los paquetes del proyecto viven como top-level en src/.
_APP_NAMESPACES = (APP_LOGGER, "core", "adapters", "cli")


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    app_level = logging.DEBUG if verbose else logging.WARNING

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if log_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.WARNING)

    for name in _APP_NAMESPACES:
        logging.getLogger(name).setLevel(app_level)
    # httpx registra URLs completas a INFO; las queries pueden llevar tokens.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
