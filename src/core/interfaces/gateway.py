"""Contrato del gateway remoto de alias.

Por qué Protocol:
- Define un contrato estructural (duck typing) sin herencia rígida.
- Permite que el adaptador de Cloudflare y los fakes de test sean
  intercambiables sin acoplar el Core al cliente HTTP.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from core.domain.models import RoutingRule


@runtime_checkable
class AliasGateway(Protocol):
    """Operaciones mínimas sobre las reglas de reenvío del proveedor.

    Reglas de diseño:
    - Las llamadas son síncronas y bloqueantes (el batch es secuencial).
    - Los fallos se lanzan como `TransientRemoteError` o `FatalRemoteError`;
      el Core no interpreta cuerpos de respuesta.
    """

    def create(self, address: str, destination: str) -> str:
        """Crea la regla `address -> destination` y devuelve su rule id."""

        ...

    def list(self, domain_filter: str | None = None) -> list[RoutingRule]:
        """Reglas existentes (filtradas por dominio si se indica)."""

        ...

    def delete(self, rule_id: str) -> None:
        """Borra la regla indicada."""

        ...
