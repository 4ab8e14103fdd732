"""Modelos del dominio (Pydantic v2).

Por qué Pydantic en el dominio:
- Validación estricta y documentación autocontenida (Field) sin acoplar el Core
  a librerías de I/O.
- Los aliases de campo (`alias`, `ruleId`, `createdAt`, ...) mantienen el
  formato en disco de los exports existentes.

Nota:
- Estos modelos describen *qué* es la información, no *cómo* se obtiene.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AliasStatus(str, Enum):
    """Ciclo de vida de un alias: pending -> success | failed."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not AliasStatus.PENDING


class AliasRecord(BaseModel):
    """Unidad de trabajo y de exportación.

    Por qué existe:
    - Registra el resultado de exactamente una llamada terminal al gateway.
    - Es la fila canónica de los tres formatos de export.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    address: str = Field(
        ...,
        alias="alias",
        min_length=3,
        description="Dirección completa (identificador@dominio).",
    )
    rule_id: str | None = Field(
        default=None,
        alias="ruleId",
        description="ID de la regla asignado por el proveedor (solo tras éxito).",
    )
    created_at: datetime = Field(
        default_factory=utc_now,
        alias="createdAt",
        description="Momento de creación (UTC).",
    )
    status: AliasStatus = Field(
        default=AliasStatus.PENDING,
        description="Estado del alias.",
    )
    error: str | None = Field(
        default=None,
        description="Mensaje de error remoto si la creación falló.",
    )
    theme: str | None = Field(
        default=None,
        alias="bundle",
        description="Bundle temático usado para generar el nombre.",
    )
    secret: str | None = Field(
        default=None,
        alias="password",
        description="Contraseña asignada (si ya se generó).",
    )

    @property
    def local_part(self) -> str:
        return self.address.split("@", 1)[0]

    @property
    def domain(self) -> str:
        return self.address.split("@", 1)[1] if "@" in self.address else ""

    @property
    def is_success(self) -> bool:
        return self.status is AliasStatus.SUCCESS

    def mark_success(self, rule_id: str) -> None:
        if self.status.is_terminal:
            raise ValueError(f"{self.address} already terminal ({self.status.value})")
        self.rule_id = rule_id
        self.status = AliasStatus.SUCCESS

    def mark_failed(self, error: str) -> None:
        if self.status.is_terminal:
            raise ValueError(f"{self.address} already terminal ({self.status.value})")
        self.error = error or "Unknown error"
        self.status = AliasStatus.FAILED

    def to_export(self) -> dict[str, Any]:
        """Fila JSON con las claves históricas (`alias`, `ruleId`, ...)."""

        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CredentialPair(BaseModel):
    """Dirección + contraseña recién generada."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., min_length=3)
    secret: str = Field(..., min_length=8)


class RoutingRule(BaseModel):
    """Regla remota vista por la operación `list` del gateway."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)

    @property
    def domain(self) -> str:
        return self.address.split("@", 1)[1].lower() if "@" in self.address else ""
