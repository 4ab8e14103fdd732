"""Taxonomía de errores del Core.

Por qué una jerarquía propia:
- La CLI decide el exit code según la clase (abortar vs. registrar y seguir).
- Los adaptadores traducen errores HTTP a `TransientRemoteError` /
  `FatalRemoteError` para que el Core no interprete cuerpos de respuesta.
"""

from __future__ import annotations


class AliasForgeError(Exception):
    """Base de todos los errores de la aplicación."""


class CapacityExhaustedError(AliasForgeError):
    """El espacio de nombres o secretos se agotó dentro del límite de intentos."""


class InvalidParameterError(AliasForgeError, ValueError):
    """Parámetro inválido (longitud de secreto, count, bundle mal definido...)."""


class SnapshotFormatError(InvalidParameterError):
    """Un export previo en disco no se puede interpretar."""

    def __init__(self, path: object, reason: str) -> None:
        super().__init__(f"Malformed snapshot {path}: {reason}")
        self.path = path
        self.reason = reason


class ConfigurationError(AliasForgeError):
    """Falta configuración obligatoria (token, dominio, zona...)."""


class RemoteError(AliasForgeError):
    """Fallo reportado por el gateway remoto."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransientRemoteError(RemoteError):
    """Rate limit, 5xx o red: se puede reintentar."""


class FatalRemoteError(RemoteError):
    """Autorización, request malformado o rechazo explícito: no se reintenta."""


class RetryExhaustedError(RemoteError):
    """Se agotaron los reintentos ante errores transitorios."""

    def __init__(self, last_error: TransientRemoteError, retries: int) -> None:
        super().__init__(
            f"{last_error.message} (gave up after {retries} retries)",
            status_code=last_error.status_code,
        )
        self.last_error = last_error
        self.retries = retries
