"""apk orphans: find and purge rows left behind by an interrupted delete."""

import typer

from ..api.client import DashboardClient, DashboardError
from ..config import get_dashboard_url_or_exit
from ..console import console, err_console


def orphans(
    purge: bool = typer.Option(False, "--purge", help="Delete the orphaned rows"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Show install/open rows whose app no longer exists."""
    client = DashboardClient(get_dashboard_url_or_exit())

    try:
        report = client.list_orphans()
    except DashboardError as e:
        err_console.print(f"[red]Failed to check orphans:[/red] {e.message}")
        raise typer.Exit(1)

    if not report["orphan_keys"]:
        console.print("[green]No orphaned rows.[/green]")
        return

    for key in report["orphan_keys"]:
        console.print(f"  {key if key is not None else '(no key)'}")
    console.print(
        f"{len(report['orphan_keys'])} orphaned key(s): "
        f"{report['installs']} install(s), {report['opens']} open(s)"
    )

    if not purge:
        console.print("Run [bold]apk orphans --purge[/bold] to delete them.")
        return

    if not yes and not typer.confirm("Delete these rows?"):
        raise typer.Abort()

    try:
        result = client.purge_orphans()
    except DashboardError as e:
        err_console.print(f"[red]Purge failed:[/red] {e.message}")
        raise typer.Exit(1)

    console.print(
        f"Purged {result['installs_deleted']} install(s) and {result['opens_deleted']} open(s)"
    )
