"""Generador pseudoaleatorio con semilla (Mulberry32).

Por qué no `random.Random`:
- Mulberry32 es el algoritmo con el que se generaron los batches históricos;
  con la misma semilla reproduce exactamente los mismos alias.
- Estado de 32 bits, sin estado global: cada instancia es independiente y su
  salida es idéntica en cualquier plataforma.
"""

from __future__ import annotations

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_TWO_32 = 4294967296.0


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK32


class SeededRandom:
    """Secuencia reproducible de floats uniformes en [0, 1)."""

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._state = self.seed & _MASK32

    def reseed(self, seed: int | None = None) -> None:
        """Reinicia la secuencia (con la semilla original si no se pasa otra)."""

        if seed is not None:
            self.seed = int(seed)
        self._state = self.seed & _MASK32

    def random(self) -> float:
        self._state = (self._state + _INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t = (t ^ ((t + _imul(t ^ (t >> 7), t | 61)) & _MASK32)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_32

    def randrange(self, n: int) -> int:
        """Índice uniforme en [0, n)."""

        if n <= 0:
            raise ValueError("randrange() needs a positive bound")
        return int(self.random() * n)
