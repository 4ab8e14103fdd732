"""Doctor command for environment diagnostics."""

from __future__ import annotations

from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from adapters.cloudflare_gateway import CloudflareEmailRoutingGateway
from core.config import AppSettings, write_user_env_vars
from core.errors import AliasForgeError

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _settings(ctx: typer.Context) -> AppSettings:
    return ctx.obj if isinstance(ctx.obj, AppSettings) else AppSettings()


@app.command()
def run(
    ctx: typer.Context,
    domain: Optional[str] = typer.Option(None, "--domain", "-d", help="Domain to check (EMAIL_DOMAIN)"),
) -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = _settings(ctx)
    target_domain = (domain or settings.email_domain or "").strip().lower()

    table = Table(title="alias-forge Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    ok = True

    # Config
    if settings.cloudflare_api_token:
        table.add_row("API token", "OK", "set")
    else:
        table.add_row("API token", "FAIL", "Run `alias-forge doctor setup`")
    table.add_row("Domain", "OK" if target_domain else "FAIL", target_domain or "EMAIL_DOMAIN not set")
    table.add_row(
        "Destination",
        "OK" if settings.destination_email else "OPTIONAL",
        settings.destination_email or "Prompted by `create` when missing",
    )
    table.add_row("Export dir", "OK", str(settings.export_dir.resolve()))

    if not settings.cloudflare_api_token or not target_domain:
        _console.print(table)
        raise typer.Exit(code=1)

    # Connectivity
    gateway = CloudflareEmailRoutingGateway.from_settings(settings)
    with gateway:
        try:
            info = gateway.verify_token()
            table.add_row("Token verify", "OK", str(info.get("status", "active")))
        except AliasForgeError as exc:
            ok = False
            table.add_row("Token verify", "FAIL", escape(str(exc)))

        try:
            zone_id = gateway.ensure_zone(target_domain)
            zone_name = str(gateway.get_zone(zone_id).get("name") or "").lower()
            if zone_name and zone_name != target_domain:
                ok = False
                table.add_row("Zone", "FAIL", escape(f"{zone_id} belongs to {zone_name}, not {target_domain}"))
            else:
                table.add_row("Zone", "OK", f"{zone_id} ({zone_name or target_domain})")
            rules = gateway.list(target_domain)
            table.add_row("Routing rules", "OK", f"{len(rules)} rules on {target_domain}")
        except AliasForgeError as exc:
            ok = False
            table.add_row("Zone / rules", "FAIL", escape(str(exc)))

    _console.print(table)
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def setup() -> None:
    """Interactive setup (stores config in the user config .env).

    Designed for non-Python users: no manual .env editing.
    """

    token = typer.prompt("Cloudflare API token", hide_input=True, confirmation_prompt=False).strip()
    domain = typer.prompt("Email domain (e.g. example.com)").strip().lower()
    destination = typer.prompt("Destination email").strip()
    zone_id = typer.prompt("Zone ID (blank to auto-discover)", default="", show_default=False).strip()

    if not token or not domain:
        raise typer.BadParameter("token and domain are required")

    env_path = write_user_env_vars(
        {
            "CLOUDFLARE_API_TOKEN": token,
            "EMAIL_DOMAIN": domain,
            "DESTINATION_EMAIL": destination,
            "CLOUDFLARE_ZONE_ID": zone_id or None,
        }
    )

    _console.print(f"[green]Saved config to:[/green] {env_path}")
