"""Lista estructurada (JSON) del snapshot de un dominio.

Por qué un adaptador de lectura explícito:
- En disco conviven dos formas históricas: un array "pelado" de registros, o
  un objeto `{metadata, results|aliases}`. Aquí se normalizan ambas a
  `AliasRecord` y siempre se escribe la forma con metadata.
- Un fichero previo ilegible NO se trata como vacío: se lanza
  `SnapshotFormatError` para no perder rule ids ya registrados.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from core.domain.models import AliasRecord, AliasStatus
from core.errors import SnapshotFormatError


def normalize_legacy_entry(entry: dict[str, Any]) -> dict[str, Any]:
    """Adapta claves antiguas: `email` -> `alias`, `status` implícito."""

    data = dict(entry)
    if "alias" not in data and "address" not in data and "email" in data:
        data["alias"] = data.pop("email")
    if "status" not in data:
        data["status"] = AliasStatus.FAILED.value if data.get("error") else AliasStatus.SUCCESS.value
    return data


def _extract_entries(data: Any, path: Path) -> list[Any]:
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("results", "aliases"):
            if key in data:
                entries = data[key]
                if not isinstance(entries, list):
                    raise SnapshotFormatError(path, f"'{key}' must be an array")
                return entries
    raise SnapshotFormatError(path, "expected an array or an object with 'results'/'aliases'")


def read_structured_snapshot(path: Path) -> list[AliasRecord]:
    """Lee y normaliza el JSON previo. Fichero inexistente o vacío -> []."""

    if not path.exists():
        return []
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return []
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SnapshotFormatError(path, f"invalid JSON ({exc.msg} at line {exc.lineno})") from exc

    records: list[AliasRecord] = []
    for index, entry in enumerate(_extract_entries(data, path)):
        if not isinstance(entry, dict):
            raise SnapshotFormatError(path, f"entry {index} is not an object")
        try:
            records.append(AliasRecord.model_validate(normalize_legacy_entry(entry)))
        except ValidationError as exc:
            first = exc.errors()[0]
            where = ".".join(str(p) for p in first.get("loc", ())) or "entry"
            raise SnapshotFormatError(path, f"entry {index} ({where}): {first.get('msg')}") from exc
    return records


def build_structured_payload(records: Iterable[AliasRecord], *, domain: str) -> dict[str, Any]:
    rows = [r.to_export() for r in records]
    return {
        "metadata": {
            "domain": domain,
            "updated_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "count": len(rows),
            "secure": any("password" in row for row in rows),
        },
        "results": rows,
    }


def write_structured_snapshot(path: Path, records: Iterable[AliasRecord], *, domain: str) -> Path:
    """Exporta los registros a JSON UTF-8 con formato estable (reemplazo atómico)."""

    path.parent.mkdir(parents=True, exist_ok=True)
    payload = build_structured_payload(records, domain=domain)
    tmp_path = path.with_name(path.name + ".tmp")
    tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")
    os.replace(tmp_path, path)
    return path
