"""Reconciliación de batches con el snapshot en disco de un dominio.

Invariantes:
- Ninguna dirección ya registrada desaparece por una ejecución posterior: la
  lista estructurada y la lista plana son la unión (clave = dirección).
- Las contraseñas siguen "la última gana": una `CredentialPair` nueva
  sobrescribe la anterior; sin credencial nueva se conserva la previa.
- Un registro fallido nunca reemplaza a uno exitoso de la misma dirección.
- El reporte compacto solo crece (secciones fechadas).
- La lista estructurada previa se valida antes de escribir nada: si está
  corrupta se aborta sin escrituras parciales.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from adapters.json_exporter import read_structured_snapshot, write_structured_snapshot
from adapters.report_exporter import append_report, render_batch_report, render_credentials_update
from adapters.text_exporter import read_flat_snapshot, write_flat_snapshot
from core.config import domain_slug
from core.domain.bundles import WordBundle
from core.domain.models import AliasRecord, CredentialPair
from core.errors import InvalidParameterError
from core.services.alias_pipeline import BatchResult
from core.services.secret_synthesizer import DEFAULT_SECRET_LENGTH, generate_unique_secrets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SnapshotPaths:
    """Los tres ficheros hermanos del snapshot de un dominio."""

    structured: Path
    flat: Path
    report: Path

    @classmethod
    def for_domain(cls, export_dir: Path, domain: str) -> "SnapshotPaths":
        return cls.from_stem(Path(export_dir) / domain_slug(domain))

    @classmethod
    def from_stem(cls, stem: Path) -> "SnapshotPaths":
        return cls(
            structured=stem.with_name(stem.name + ".json"),
            flat=stem.with_name(stem.name + ".txt"),
            report=stem.with_name(stem.name + ".toon"),
        )

    @classmethod
    def from_file(cls, path: Path) -> "SnapshotPaths":
        """Hermanos de un `.json`/`.txt`/`.toon` concreto."""

        return cls.from_stem(path.with_suffix(""))


@dataclass
class MergeOutcome:
    paths: SnapshotPaths
    record_count: int = 0
    flat_count: int = 0
    credentials: list[CredentialPair] = field(default_factory=list)


# --- Merge puro --------------------------------------------------------------


def merge_records(prior: Iterable[AliasRecord], new: Iterable[AliasRecord]) -> list[AliasRecord]:
    """Unión por dirección, en orden de primera aparición."""

    merged: dict[str, AliasRecord] = {}
    for record in prior:
        merged[record.address] = record
    for record in new:
        old = merged.get(record.address)
        if old is None:
            merged[record.address] = record
            continue
        if old.is_success and not record.is_success:
            continue
        if record.secret is None and old.secret is not None:
            record = record.model_copy(update={"secret": old.secret})
        merged[record.address] = record
    return list(merged.values())


def apply_credentials(
    records: Iterable[AliasRecord],
    credentials: Iterable[CredentialPair],
) -> list[AliasRecord]:
    by_address = {c.address: c.secret for c in credentials}
    return [
        r.model_copy(update={"secret": by_address[r.address]}) if r.address in by_address else r
        for r in records
    ]


def merge_flat_entries(
    prior: Mapping[str, str],
    records: Iterable[AliasRecord],
    credentials: Iterable[CredentialPair] = (),
) -> dict[str, str]:
    """Unión de la lista plana: solo direcciones con éxito, secreto opcional."""

    entries = dict(prior)
    for record in records:
        if not record.is_success:
            continue
        if not entries.get(record.address):
            entries[record.address] = record.secret or ""
    for credential in credentials:
        entries[credential.address] = credential.secret
    return entries


# --- Orquestación con ficheros ----------------------------------------------


def merge_batch(
    paths: SnapshotPaths,
    *,
    domain: str,
    records: Sequence[AliasRecord],
    credentials: Sequence[CredentialPair] = (),
    bundle: WordBundle | None = None,
    destination: str = "",
    seed: int | None = None,
) -> MergeOutcome:
    """Escribe un batch terminal (y sus credenciales) en los tres formatos."""

    prior_records = read_structured_snapshot(paths.structured)
    prior_flat = read_flat_snapshot(paths.flat)

    merged = apply_credentials(merge_records(prior_records, records), credentials)
    write_structured_snapshot(paths.structured, merged, domain=domain)

    flat = merge_flat_entries(prior_flat, merged, credentials)
    write_flat_snapshot(paths.flat, flat)

    sections = [
        render_batch_report(records, domain=domain, destination=destination, bundle=bundle, seed=seed)
    ]
    if credentials:
        sections.append(render_credentials_update(credentials))
    append_report(paths.report, sections)

    logger.debug("Merged %d records into %s", len(records), paths.structured)
    return MergeOutcome(
        paths=paths,
        record_count=len(merged),
        flat_count=len(flat),
        credentials=list(credentials),
    )


def export_batch(
    paths: SnapshotPaths,
    result: BatchResult,
    *,
    secret_length: int = DEFAULT_SECRET_LENGTH,
) -> MergeOutcome:
    """Genera contraseñas para los alias creados y fusiona el batch."""

    credentials = generate_unique_secrets(
        [r.address for r in result.successes],
        length=secret_length,
    )
    request = result.request
    return merge_batch(
        paths,
        domain=request.domain,
        records=result.records,
        credentials=credentials,
        bundle=request.bundle,
        destination=request.destination,
        seed=request.seed,
    )


def secure_snapshot(
    paths: SnapshotPaths,
    *,
    domain: str,
    regenerate: bool = False,
    secret_length: int = DEFAULT_SECRET_LENGTH,
) -> MergeOutcome:
    """Asigna contraseñas a un snapshot existente.

    Sin `regenerate` solo se completan las direcciones sin contraseña; con
    `regenerate` se reemplazan todas.
    """

    if not paths.flat.exists() and not paths.structured.exists():
        raise InvalidParameterError(f"No snapshot found for {domain} ({paths.flat} / {paths.structured})")

    prior_records = read_structured_snapshot(paths.structured)
    prior_flat = read_flat_snapshot(paths.flat)
    known = merge_flat_entries(prior_flat, prior_records)

    targets = [address for address, secret in known.items() if regenerate or not secret]
    outcome = MergeOutcome(paths=paths, record_count=len(prior_records), flat_count=len(known))
    if not targets:
        return outcome

    credentials = generate_unique_secrets(targets, length=secret_length)

    if paths.structured.exists():
        write_structured_snapshot(
            paths.structured,
            apply_credentials(prior_records, credentials),
            domain=domain,
        )
    flat = merge_flat_entries(known, [], credentials)
    write_flat_snapshot(paths.flat, flat)
    append_report(paths.report, [render_credentials_update(credentials)])

    outcome.flat_count = len(flat)
    outcome.credentials = credentials
    return outcome


def convert_structured_to_flat(source: Path, target: Path | None = None) -> tuple[Path, int]:
    """Lista estructurada -> lista plana con las direcciones exitosas."""

    if not source.exists():
        raise InvalidParameterError(f"File not found: {source}")
    records = read_structured_snapshot(source)
    entries = merge_flat_entries({}, records)
    if not entries:
        raise InvalidParameterError(f"No successful aliases found in {source}")
    target = target or SnapshotPaths.from_file(source).flat
    write_flat_snapshot(target, entries)
    return target, len(entries)
