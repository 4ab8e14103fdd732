"""Lista plana (`.txt`): una línea `address` o `address:secret` por alias."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping


def parse_flat_list(text: str) -> dict[str, str]:
    # Se corta en el primer ':' (los símbolos de la contraseña pueden incluir ':').
    entries: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or "@" not in line:
            continue
        address, _, secret = line.partition(":")
        address = address.strip()
        if address:
            entries[address] = secret
    return entries


def read_flat_snapshot(path: Path) -> dict[str, str]:
    if not path.exists():
        return {}
    return parse_flat_list(path.read_text(encoding="utf-8"))


def render_flat_list(entries: Mapping[str, str]) -> str:
    lines = [f"{address}:{secret}" if secret else address for address, secret in entries.items()]
    return "".join(f"{line}\n" for line in lines)


def write_flat_snapshot(path: Path, entries: Mapping[str, str]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_flat_list(entries), encoding="utf-8")
    return path
