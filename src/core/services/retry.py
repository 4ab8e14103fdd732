"""Política de reintentos con backoff exponencial.

Diseño:
- Bucle explícito con contador de intentos (sin recursión): la condición de
  parada es `attempt >= max_retries`.
- Solo `TransientRemoteError` se reintenta; `FatalRemoteError` sale al primer
  intento.
- La espera es bloqueante: el proceso es secuencial de punta a punta.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, TypeVar

from core.errors import RetryExhaustedError, TransientRemoteError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    """Envuelve una llamada al gateway con reintentos acotados."""

    def __init__(
        self,
        *,
        max_retries: int = 3,
        base_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = max_retries
        self.base_delay = base_delay
        self._sleep = sleep
        self.retries_used = 0

    def delay_for(self, attempt: int) -> float:
        return self.base_delay * (2**attempt)

    def call(self, fn: Callable[[], T], *, label: str = "request") -> T:
        self.retries_used = 0
        attempt = 0
        while True:
            try:
                return fn()
            except TransientRemoteError as exc:
                if attempt >= self.max_retries:
                    raise RetryExhaustedError(exc, retries=attempt) from exc
                delay = self.delay_for(attempt)
                logger.warning(
                    "%s: %s. Retrying in %.2fs (attempt %d/%d)",
                    label,
                    exc.message,
                    delay,
                    attempt + 1,
                    self.max_retries,
                )
                self._sleep(delay)
                attempt += 1
                self.retries_used = attempt
