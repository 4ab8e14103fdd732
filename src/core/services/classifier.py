"""Heurística para reconocer alias generados por esta herramienta.

Limitación conocida:
- Solo mira el string. Un alias creado a mano con forma `palabra.palabra`
  cuyas palabras estén en los bundles se clasifica como generado. Por eso el
  cleanup siempre ofrece `--dry-run` y pide confirmación antes de borrar.
"""

from __future__ import annotations

from typing import Iterable, Mapping

from core.domain.bundles import BUNDLES, WordBundle
from core.domain.models import RoutingRule
from core.services.name_synthesizer import NAME_SEPARATOR


class AliasClassifier:
    """Test de pertenencia contra el vocabulario de todos los bundles."""

    def __init__(self, bundles: Mapping[str, WordBundle] | None = None) -> None:
        bundles = BUNDLES if bundles is None else bundles
        prefixes: set[str] = set()
        suffixes: set[str] = set()
        for bundle in bundles.values():
            prefixes.update(bundle.prefixes)
            suffixes.update(bundle.suffixes)
        self._prefixes = frozenset(prefixes)
        self._suffixes = frozenset(suffixes)

    def is_generated(self, address: str) -> bool:
        # El prefijo y el sufijo pueden venir de bundles distintos.
        local_part = (address or "").split("@", 1)[0].strip().lower()
        segments = local_part.split(NAME_SEPARATOR)
        if len(segments) != 2 or not all(segments):
            return False
        prefix, suffix = segments
        return prefix in self._prefixes and suffix in self._suffixes


def is_generated_alias(address: str, bundles: Mapping[str, WordBundle] | None = None) -> bool:
    """True si el local-part es `prefijo.sufijo` con palabras de algún bundle."""

    return AliasClassifier(bundles).is_generated(address)


def select_generated_rules(
    rules: Iterable[RoutingRule],
    domain: str,
    bundles: Mapping[str, WordBundle] | None = None,
) -> list[RoutingRule]:
    """Reglas del dominio cuyo alias parece generado (orden original)."""

    classifier = AliasClassifier(bundles)
    target = domain.strip().lower()
    return [r for r in rules if r.domain == target and classifier.is_generated(r.address)]
