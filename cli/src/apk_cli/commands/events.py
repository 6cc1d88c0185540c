"""apk installs, apk opens: raw tracking rows."""

import typer
from rich.table import Table

from ..api.client import DashboardClient, DashboardError, resolve_app
from ..config import get_dashboard_url_or_exit
from ..console import console, err_console


def _key_for(client: DashboardClient, target: str | None) -> str | None:
    if target is None:
        return None
    return resolve_app(client, target)["app_key"]


def installs(
    target: str = typer.Argument(None, help="App id, key or name (all apps if omitted)"),
):
    """List installs, newest first."""
    client = DashboardClient(get_dashboard_url_or_exit())
    app_key = _key_for(client, target)

    try:
        rows = client.list_installs(app_key)
    except DashboardError as e:
        err_console.print(f"[red]Failed to list installs:[/red] {e.message}")
        raise typer.Exit(1)

    if not rows:
        console.print("[dim]No installs recorded.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("App Key")
    table.add_column("Device")
    table.add_column("Package")
    table.add_column("Installed At")
    for row in rows:
        table.add_row(
            row.get("app_key") or "",
            row.get("device_id") or "",
            row.get("package_name") or "",
            row.get("installed_at") or "",
        )
    console.print(table)
    console.print(f"{len(rows)} install(s)")


def opens(
    target: str = typer.Argument(None, help="App id, key or name (all apps if omitted)"),
):
    """List opens, newest first."""
    client = DashboardClient(get_dashboard_url_or_exit())
    app_key = _key_for(client, target)

    try:
        rows = client.list_opens(app_key)
    except DashboardError as e:
        err_console.print(f"[red]Failed to list opens:[/red] {e.message}")
        raise typer.Exit(1)

    if not rows:
        console.print("[dim]No opens recorded.[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("App Key")
    table.add_column("Device")
    table.add_column("Opened At")
    for row in rows:
        table.add_row(
            row.get("app_key") or "",
            row.get("device_id") or "",
            row.get("opened_at") or "",
        )
    console.print(table)
    console.print(f"{len(rows)} open(s)")
