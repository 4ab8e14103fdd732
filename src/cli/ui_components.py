"""Componentes de UI para CLI (Rich).

Por qué separar componentes:
- Evita mezclar lógica de comandos con detalles visuales.
- Permite reutilizar tablas/paneles en create, delete y cleanup.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.bundles import WordBundle
from core.domain.models import AliasRecord, RoutingRule


def print_banner(console: Console) -> None:
    """Imprime el banner de bienvenida."""

    title = Text("alias-forge", style="bold cyan")
    subtitle = Text("Cloudflare Email Routing • Themed aliases • Cleanup", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def build_bundles_table(bundles: Mapping[str, WordBundle]) -> Table:
    table = Table(title="Name Bundles")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Theme", style="cyan", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Words", style="magenta")
    table.add_column("Combinations", style="green", justify="right")
    for index, bundle in enumerate(bundles.values(), start=1):
        table.add_row(
            str(index),
            bundle.key,
            bundle.name,
            f"{len(bundle.prefixes)} × {len(bundle.suffixes)}",
            f"{bundle.capacity:,}",
        )
    return table


def build_config_table(rows: Iterable[tuple[str, str]]) -> Table:
    table = Table(title="Configuration", show_header=False)
    table.add_column("Setting", style="bright_green", no_wrap=True)
    table.add_column("Value", style="white")
    for key, value in rows:
        table.add_row(key, value)
    return table


def build_addresses_table(addresses: Sequence[str], destination: str, *, limit: int = 10) -> Table:
    table = Table(title=f"Planned aliases (showing {min(limit, len(addresses))} of {len(addresses)})")
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Alias", style="cyan")
    table.add_column("Forwards to", style="white")
    for index, address in enumerate(addresses[:limit], start=1):
        table.add_row(str(index), address, destination)
    return table


def build_rules_table(rules: Sequence[RoutingRule], *, title: str, limit: int | None = None) -> Table:
    shown = rules if limit is None else rules[:limit]
    table = Table(title=title)
    table.add_column("#", style="dim", no_wrap=True)
    table.add_column("Alias", style="cyan")
    table.add_column("Rule ID", style="magenta")
    for index, rule in enumerate(shown, start=1):
        table.add_row(str(index), rule.address, rule.rule_id)
    if limit is not None and len(rules) > limit:
        table.caption = f"... and {len(rules) - limit} more"
    return table


def format_progress(index: int, total: int, record: AliasRecord) -> Text:
    line = Text(f"[{index}/{total}] ", style="dim")
    if record.is_success:
        line.append("OK   ", style="green")
        line.append(record.address)
        line.append(f"  (ID: {record.rule_id})", style="dim")
    else:
        line.append("FAIL ", style="red")
        line.append(record.address)
        line.append(f"  {record.error}", style="red")
    return line


def build_summary_panel(title: str, rows: Iterable[tuple[str, str]], *, ok: bool) -> Panel:
    body = Text()
    for label, value in rows:
        body.append(f"{label}: ", style="bold")
        body.append(f"{value}\n")
    body.rstrip()
    return Panel(body, title=Text(title, style="bold"), border_style="green" if ok else "red")
