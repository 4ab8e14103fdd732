"""Reporte compacto (TOON) del snapshot de un dominio.

Por qué está en adapters:
- Es un formato de presentación (para humanos/LLMs), no un estado reconciliado.
- Es append-only: cada ejecución añade una sección fechada; nunca se reescribe
  el historial.

Formato (Token-Oriented Object Notation):
- Bloques `clave:` con pares indentados.
- Tablas `nombre[N]{col1,col2}:` con una fila separada por comas por línea.
- Los valores con coma, dos puntos, comillas o espacios en los extremos van
  entre comillas dobles.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

from core.domain.bundles import WordBundle
from core.domain.models import AliasRecord, CredentialPair

SECTION_SEPARATOR = "\n\n"
_NEEDS_QUOTES = (",", ":", '"', "\\")


def toon_value(value: object) -> str:
    text = "" if value is None else str(value)
    if not text or text != text.strip() or any(ch in text for ch in _NEEDS_QUOTES):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    return text


def _timestamp(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def render_batch_report(
    records: Sequence[AliasRecord],
    *,
    domain: str,
    destination: str,
    bundle: WordBundle | None,
    seed: int | None,
    generated_at: datetime | None = None,
) -> str:
    """Sección TOON de un batch de creación."""

    generated_at = generated_at or datetime.now(timezone.utc)
    successful = [r for r in records if r.is_success]
    failed = [r for r in records if not r.is_success]
    total = len(records)
    bundle_name = bundle.name if bundle else "unknown"

    lines: list[str] = [
        "# Email Aliases Export (TOON Format)",
        f"# Generated: {generated_at.isoformat(timespec='seconds')}",
        "",
        "metadata:",
        f"  bundle_id: {toon_value(bundle.key if bundle else 'unknown')}",
        f"  bundle_name: {toon_value(bundle_name)}",
        f"  domain: {toon_value(domain)}",
        f"  destination: {toon_value(destination)}",
        f"  seed: {seed if seed is not None else 'unknown'}",
        f"  total_count: {total}",
        f"  success_count: {len(successful)}",
        f"  failure_count: {len(failed)}",
        "",
    ]

    if successful:
        lines.append(f"successful_aliases[{len(successful)}]{{alias,rule_id,created_at}}:")
        for r in successful:
            row = (r.address, r.rule_id or "", _timestamp(r.created_at))
            lines.append("  " + ",".join(toon_value(v) for v in row))
        lines.append("")

    if failed:
        lines.append(f"failed_aliases[{len(failed)}]:")
        for r in failed:
            lines.append(f"  - alias: {toon_value(r.address)}")
            lines.append(f"    error: {toon_value(r.error or 'Unknown error')}")
            lines.append(f"    created_at: {toon_value(_timestamp(r.created_at))}")
        lines.append("")

    rate = (len(successful) / total * 100) if total else 0.0
    lines.extend(
        [
            "summary:",
            f"  success_rate: {rate:.2f}%",
            f"  total_aliases: {total}",
            f"  bundle_used: {toon_value(bundle_name)}",
        ]
    )
    return "\n".join(lines)


def render_credentials_update(
    credentials: Sequence[CredentialPair],
    *,
    generated_at: datetime | None = None,
) -> str:
    """Sección TOON con las contraseñas generadas en esta ejecución."""

    generated_at = generated_at or datetime.now(timezone.utc)
    lines = [
        "# Credentials Update (TOON Format)",
        f"# Generated: {generated_at.isoformat(timespec='seconds')}",
        "",
        f"credentials_update[{len(credentials)}]{{email,password}}:",
    ]
    lines.extend(f"  {toon_value(c.address)},{toon_value(c.secret)}" for c in credentials)
    return "\n".join(lines)


def append_report(path: Path, sections: Iterable[str]) -> Path:
    """Añade secciones al final del reporte (lo crea si no existe)."""

    body = SECTION_SEPARATOR.join(s.rstrip("\n") for s in sections if s.strip())
    if not body:
        return path

    path.parent.mkdir(parents=True, exist_ok=True)
    existing = path.read_text(encoding="utf-8") if path.exists() else ""
    prefix = ""
    if existing.strip():
        # Una línea en blanco entre secciones.
        prefix = "\n" if existing.endswith("\n") else SECTION_SEPARATOR
    with path.open("a", encoding="utf-8") as handle:
        handle.write(prefix + body + "\n")
    return path
