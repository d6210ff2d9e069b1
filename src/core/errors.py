"""Errores del Core.

Por qué una jerarquía propia:
- Los resultados del pipeline son valores (`DispatchOutcome`), nunca excepciones.
- Lo que sí puede fallar (stores corruptos, backups inválidos, botones
  inexistentes) se señaliza con estas excepciones para que la CLI las traduzca
  a mensajes legibles y códigos de salida.
"""

from __future__ import annotations


class QikpostError(Exception):
    """Base de todos los errores propios de la aplicación."""


class StoreError(QikpostError):
    """Un store (secretos/botones) no se pudo leer o escribir."""


class ButtonNotFoundError(QikpostError):
    def __init__(self, ref: str) -> None:
        super().__init__(f"Button not found: {ref}")
        self.ref = ref


class BackupFormatError(QikpostError):
    """El fichero de backup no tiene un formato/versión soportado."""
