"""CLI principal (Typer).

Por qué Typer:
- Subcomandos, opciones tipadas y prompts interactivos sin boilerplate.
- La CLI solo orquesta: construye `AppSettings` una vez, abre el gateway y
  delega en `core.services`; los fallos del dominio se traducen aquí a
  mensajes y códigos de salida.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from adapters.cloudflare_gateway import CloudflareEmailRoutingGateway
from adapters.json_exporter import read_structured_snapshot
from cli import doctor
from cli.ui_components import (
    build_addresses_table,
    build_bundles_table,
    build_config_table,
    build_rules_table,
    build_summary_panel,
    format_progress,
    print_banner,
)
from core.config import AppSettings
from core.domain.bundles import BUNDLES, WordBundle, bundle_by_index, get_bundle
from core.domain.models import AliasRecord, RoutingRule
from core.errors import AliasForgeError, ConfigurationError, RemoteError
from core.services.alias_pipeline import (
    BatchRequest,
    DeleteResult,
    PipelineHooks,
    default_seed,
    deletable_records,
    plan_batch,
    run_create_batch,
    run_delete_batch,
)
from core.services.classifier import select_generated_rules
from core.services.export_merger import (
    SnapshotPaths,
    convert_structured_to_flat,
    export_batch,
    secure_snapshot,
)
from core.services.retry import RetryPolicy

app = typer.Typer(
    no_args_is_help=True,
    help="Bulk-create, secure and clean up Cloudflare Email Routing aliases.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()
_err_console = Console(stderr=True)

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 10
CLEANUP_PREVIEW_LIMIT = 5


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_err_console, show_path=False, markup=False)],
        force=True,
    )
    if not verbose:
        # httpx registra cada request en INFO.
        logging.getLogger("httpx").setLevel(logging.WARNING)


def _fail(message: str) -> NoReturn:
    _err_console.print(f"[red]Error:[/red] {escape(message)}")
    raise typer.Exit(code=1)


def _settings(ctx: typer.Context, **overrides: object) -> AppSettings:
    settings: AppSettings = ctx.obj
    updates = {key: value for key, value in overrides.items() if value is not None}
    return settings.model_copy(update=updates) if updates else settings


def _open_gateway(settings: AppSettings, domain: str) -> CloudflareEmailRoutingGateway:
    try:
        gateway = CloudflareEmailRoutingGateway.from_settings(settings)
    except ConfigurationError as exc:
        _fail(str(exc))
    try:
        gateway.ensure_zone(domain)
    except ConfigurationError as exc:
        gateway.close()
        _fail(str(exc))
    return gateway


def _retry_policy(settings: AppSettings) -> RetryPolicy:
    return RetryPolicy(
        max_retries=settings.max_retries,
        base_delay=settings.base_retry_delay_seconds,
    )


def _require_domain(settings: AppSettings) -> str:
    try:
        return settings.require_domain()
    except ConfigurationError as exc:
        _fail(str(exc))


def _prompt_bundle() -> WordBundle:
    _console.print(build_bundles_table(BUNDLES))
    while True:
        choice = typer.prompt(f"Select a bundle (1-{len(BUNDLES)})", type=int)
        try:
            return bundle_by_index(choice)
        except AliasForgeError as exc:
            _console.print(f"[yellow]{exc}[/yellow]")


def _prompt_count(default: int) -> int:
    while True:
        count = typer.prompt("How many aliases to create? (1-500)", default=default, type=int)
        if 1 <= count <= 500:
            return count
        _console.print("[yellow]Please enter a number between 1 and 500.[/yellow]")


def _print_deleted(index: int, total: int, rule: RoutingRule, error: str | None) -> None:
    prefix = f"[dim][{index}/{total}][/dim]"
    if error is None:
        _console.print(f"{prefix} [green]deleted[/green] {rule.address}")
    else:
        _console.print(f"{prefix} [red]failed[/red] {rule.address}: {escape(error)}")


def _run_deletions(settings: AppSettings, domain: str, targets: list[RoutingRule]) -> DeleteResult:
    with _open_gateway(settings, domain) as gateway:
        return run_delete_batch(
            gateway,
            targets,
            policy=_retry_policy(settings),
            delay=settings.request_delay_seconds,
            hooks=PipelineHooks(deleted=_print_deleted),
        )


def _print_delete_summary(result: DeleteResult) -> None:
    rows = [("Deleted", str(len(result.deleted))), ("Failed", str(len(result.failed)))]
    rows.extend((rule.address, error) for rule, error in result.failed)
    _console.print(build_summary_panel("Deletion summary", rows, ok=not result.failed))


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs (HTTP, retries, merges)"),
    export_dir: Optional[Path] = typer.Option(
        None,
        "--export-dir",
        help="Directory holding <domain>.json/.txt/.toon",
        file_okay=False,
    ),
) -> None:
    """alias-forge: themed Email Routing aliases for Cloudflare zones."""

    _configure_logging(verbose)
    try:
        settings = AppSettings()
    except ValidationError as exc:
        _fail(f"Invalid configuration:\n{exc}")
    if export_dir is not None:
        settings = settings.model_copy(update={"export_dir": export_dir})
    ctx.obj = settings


@app.command()
def create(
    ctx: typer.Context,
    theme: Optional[str] = typer.Option(None, "--theme", "-t", help="Bundle key (see `alias-forge bundles`)"),
    count: Optional[int] = typer.Option(None, "--count", "-n", min=1, max=500, help="Aliases to create"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Fixed seed to reproduce a batch"),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Target domain (EMAIL_DOMAIN)"),
    destination: Optional[str] = typer.Option(None, "--destination", help="Forwarding mailbox (DESTINATION_EMAIL)"),
    delay_ms: Optional[int] = typer.Option(None, "--delay-ms", min=0, help="Pause between requests"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only show the planned aliases"),
) -> None:
    """Generate themed aliases and register them as forwarding rules."""

    settings = _settings(
        ctx,
        email_domain=domain,
        destination_email=destination,
        request_delay_ms=delay_ms,
        random_seed=seed,
    )
    print_banner(_console)

    try:
        bundle = get_bundle(theme) if theme else _prompt_bundle()
    except AliasForgeError as exc:
        _fail(str(exc))
    count = count or _prompt_count(settings.alias_count)
    target_domain = (settings.email_domain or typer.prompt("Target domain")).strip().lower()
    target_destination = (settings.destination_email or typer.prompt("Destination email")).strip()
    batch_seed = settings.random_seed if settings.random_seed is not None else default_seed()

    request = BatchRequest(
        bundle=bundle,
        count=count,
        seed=batch_seed,
        domain=target_domain,
        destination=target_destination,
    )
    _console.print(
        build_config_table(
            [
                ("Bundle", f"{bundle.name} ({bundle.key})"),
                ("Count", str(count)),
                ("Domain", target_domain),
                ("Destination", target_destination),
                ("Seed", str(batch_seed)),
                ("Delay", f"{settings.request_delay_ms} ms"),
            ]
        )
    )

    try:
        addresses = plan_batch(request)
    except AliasForgeError as exc:
        _fail(str(exc))

    paths = SnapshotPaths.for_domain(settings.export_dir, target_domain)
    try:
        # Un snapshot previo ilegible aborta antes de crear reglas remotas.
        read_structured_snapshot(paths.structured)
    except AliasForgeError as exc:
        _fail(str(exc))

    if dry_run:
        _console.print(build_addresses_table(addresses, target_destination, limit=PREVIEW_LIMIT))
        _console.print("[yellow]Dry run: no rules were created.[/yellow]")
        return

    def _progress(index: int, total: int, record: AliasRecord) -> None:
        _console.print(format_progress(index, total, record))

    with _open_gateway(settings, target_domain) as gateway:
        try:
            result = run_create_batch(
                gateway,
                request,
                policy=_retry_policy(settings),
                delay=settings.request_delay_seconds,
                hooks=PipelineHooks(progress=_progress),
            )
        except ConfigurationError as exc:
            _fail(str(exc))

    rows = [
        ("Created", str(result.success_count)),
        ("Failed", str(result.failure_count)),
        ("Seed", str(batch_seed)),
    ]
    _console.print(build_summary_panel("Creation summary", rows, ok=result.failure_count == 0))

    try:
        outcome = export_batch(paths, result, secret_length=settings.secret_length)
    except AliasForgeError as exc:
        _fail(f"Aliases were created but the snapshot could not be updated: {exc}")

    _console.print(f"[green]Structured list:[/green] {paths.structured} ({outcome.record_count} records)")
    _console.print(f"[green]Flat list:[/green] {paths.flat} ({outcome.flat_count} addresses)")
    _console.print(f"[green]Report:[/green] {paths.report}")

    if result.failure_count:
        raise typer.Exit(code=1)


@app.command()
def delete(
    ctx: typer.Context,
    file: Optional[Path] = typer.Argument(None, help="Structured list (.json); defaults to <domain>.json"),
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Domain whose snapshot to use"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only list the rules that would be deleted"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete the rules recorded in a structured list."""

    settings = _settings(ctx, email_domain=domain)
    if file is None:
        file = SnapshotPaths.for_domain(settings.export_dir, _require_domain(settings)).structured
    if not file.exists():
        _fail(f"File not found: {file}")

    try:
        records = read_structured_snapshot(file)
    except AliasForgeError as exc:
        _fail(str(exc))

    targets = deletable_records(records)
    if not targets:
        _console.print(f"[yellow]No successful aliases with a rule id in {file}.[/yellow]")
        return

    _console.print(build_rules_table(targets, title=f"Rules to delete ({len(targets)})", limit=PREVIEW_LIMIT))
    if dry_run:
        _console.print("[yellow]Dry run: nothing was deleted.[/yellow]")
        return
    if not yes:
        typer.confirm(f"Delete {len(targets)} forwarding rules?", abort=True)

    target_domain = settings.email_domain or targets[0].domain
    result = _run_deletions(settings, target_domain.strip().lower(), targets)
    _print_delete_summary(result)
    if result.failed:
        raise typer.Exit(code=1)


@app.command()
def cleanup(
    ctx: typer.Context,
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Domain to scan"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only list the generated rules"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Find generated aliases still registered on the provider and delete them."""

    settings = _settings(ctx, email_domain=domain)
    target_domain = _require_domain(settings)

    with _open_gateway(settings, target_domain) as gateway:
        try:
            rules = _retry_policy(settings).call(lambda: gateway.list(target_domain), label="list rules")
        except RemoteError as exc:
            _fail(f"Could not list rules: {exc}")

    generated = select_generated_rules(rules, target_domain)
    _console.print(f"Found {len(rules)} rules for {target_domain}, {len(generated)} generated.")
    if not generated:
        _console.print("[green]Nothing to clean up.[/green]")
        return

    _console.print(build_rules_table(generated, title="Generated aliases", limit=CLEANUP_PREVIEW_LIMIT))
    if dry_run:
        _console.print("[yellow]Dry run: nothing was deleted.[/yellow]")
        return
    if not yes:
        typer.confirm(f"Delete {len(generated)} generated aliases?", abort=True)

    result = _run_deletions(settings, target_domain, generated)
    _print_delete_summary(result)
    if result.failed:
        raise typer.Exit(code=1)


@app.command()
def secure(
    ctx: typer.Context,
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Domain whose snapshot to secure"),
    regenerate: bool = typer.Option(False, "--regenerate", help="Replace existing passwords too"),
    length: Optional[int] = typer.Option(None, "--length", min=8, max=128, help="Password length"),
) -> None:
    """Assign generated passwords to the addresses in a domain snapshot."""

    settings = _settings(ctx, email_domain=domain, secret_length=length)
    target_domain = _require_domain(settings)
    paths = SnapshotPaths.for_domain(settings.export_dir, target_domain)

    try:
        outcome = secure_snapshot(
            paths,
            domain=target_domain,
            regenerate=regenerate,
            secret_length=settings.secret_length,
        )
    except AliasForgeError as exc:
        _fail(str(exc))

    if not outcome.credentials:
        _console.print("[green]Every address already has a password.[/green]")
        return
    _console.print(f"[green]Generated {len(outcome.credentials)} passwords[/green] -> {paths.flat}")


@app.command()
def convert(
    json_file: Path = typer.Argument(..., help="Structured list to convert"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Target .txt (default: same stem)"),
) -> None:
    """Write the successful addresses of a structured list as a flat list."""

    try:
        target, count = convert_structured_to_flat(json_file, output)
    except AliasForgeError as exc:
        _fail(str(exc))
    _console.print(f"[green]Wrote {count} addresses to[/green] {target}")


@app.command()
def bundles() -> None:
    """List the available name bundles."""

    _console.print(build_bundles_table(BUNDLES))


def run() -> None:
    app()


if __name__ == "__main__":
    run()
