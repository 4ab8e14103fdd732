"""Síntesis de nombres `prefix.suffix` a partir de un bundle temático.

Reglas:
- Cada intento elige un índice uniforme de prefijo y otro de sufijo; las
  palabras pueden repetirse entre nombres, solo la combinación debe ser única
  dentro del batch.
- Tras `MAX_NAME_ATTEMPTS` colisiones seguidas se aborta con
  `CapacityExhaustedError` (el count pedido excede el espacio práctico).
- Todo el batch comparte un `SeededRandom`, así que (seed, bundle, count)
  reproduce la misma lista ordenada.
"""

from __future__ import annotations

import logging

from core.domain.bundles import WordBundle
from core.errors import CapacityExhaustedError, InvalidParameterError
from core.services.seeded_random import SeededRandom

logger = logging.getLogger(__name__)

MAX_NAME_ATTEMPTS = 1000
NAME_SEPARATOR = "."


def generate_unique_name(bundle: WordBundle, rng: SeededRandom, used: set[str]) -> str:
    """Genera un identificador no presente en `used` y lo añade al set."""

    for _ in range(MAX_NAME_ATTEMPTS):
        prefix = bundle.prefixes[rng.randrange(len(bundle.prefixes))]
        suffix = bundle.suffixes[rng.randrange(len(bundle.suffixes))]
        name = f"{prefix}{NAME_SEPARATOR}{suffix}"
        if name not in used:
            used.add(name)
            return name

    raise CapacityExhaustedError(
        f"Failed to generate a unique name after {MAX_NAME_ATTEMPTS} attempts "
        f"(bundle {bundle.key!r}, {len(used)} names in use). "
        "Try a different bundle or reduce the alias count."
    )


def generate_alias_names(count: int, seed: int, bundle: WordBundle) -> list[str]:
    """Batch reproducible de `count` identificadores únicos."""

    if count < 1:
        raise InvalidParameterError("Alias count must be at least 1")
    if count > bundle.capacity:
        logger.warning(
            "Requested %d names but bundle %s only has %d combinations",
            count,
            bundle.key,
            bundle.capacity,
        )

    rng = SeededRandom(seed)
    used: set[str] = set()
    names = [generate_unique_name(bundle, rng, used) for _ in range(count)]
    logger.debug("Generated %d names from %s with seed %d", len(names), bundle.key, seed)
    return names


def build_address(name: str, domain: str) -> str:
    return f"{name}@{domain.strip().lower()}"
