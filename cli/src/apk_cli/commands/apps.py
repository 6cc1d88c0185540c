"""apk list, apk register, apk edit, apk delete: app management commands."""

import asyncio

import typer
from rich.prompt import Prompt
from rich.table import Table

from apk_tracker.controller import (
    DeleteFlow,
    EditFlow,
    RegistrationFlow,
    RegistrationState,
    RegistrationValidationError,
)

from ..api.client import DashboardClient, DashboardError, resolve_app
from ..config import get_dashboard_url_or_exit
from ..console import console, err_console


def _print_totals(dashboard: dict) -> None:
    console.print(
        f"Apps: [bold]{dashboard['total_apps']}[/bold]  "
        f"Installs: [bold]{dashboard['total_installs']}[/bold]  "
        f"Opens: [bold]{dashboard['total_opens']}[/bold]"
    )


def list_apps(
    strategy: str = typer.Option(None, "--strategy", "-s", help="Aggregation strategy: count or bulk"),
):
    """List registered apps with install and open counts."""
    client = DashboardClient(get_dashboard_url_or_exit())

    try:
        dashboard = client.dashboard(strategy)
    except DashboardError as e:
        err_console.print(f"[red]Failed to load dashboard:[/red] {e.message}")
        raise typer.Exit(1)

    if dashboard.get("stale"):
        err_console.print(
            f"[yellow]Error fetching apps:[/yellow] {dashboard.get('error')}. Showing last known data."
        )

    if not dashboard["apps"]:
        console.print("[dim]No apps yet.[/dim] Run [bold]apk register[/bold] to add one.")
        _print_totals(dashboard)
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Name")
    table.add_column("Package")
    table.add_column("Key")
    table.add_column("Installs", justify="right")
    table.add_column("Opens", justify="right")
    table.add_column("Created")

    for app in dashboard["apps"]:
        created = app.get("created_at") or ""
        if created and "T" in created:
            created = created.split("T")[0]
        table.add_row(
            str(app["id"]),
            app["app_name"],
            app["package_name"],
            app["app_key"],
            str(app["installs"]),
            str(app["opens"]),
            created,
        )

    console.print(table)
    _print_totals(dashboard)


async def _run_registration(flow: RegistrationFlow) -> None:
    await flow.submit()
    if flow.state == RegistrationState.CONFIRM_PENDING:
        console.print(f"  Name:    [bold]{flow.app_name}[/bold]")
        console.print(f"  Package: [bold]{flow.package_name}[/bold]")
        if not typer.confirm("Register this app?"):
            flow.cancel()
            return
        with console.status("Registering..."):
            await flow.confirm()


def register(
    name: str = typer.Option(None, "--name", "-n", help="App name"),
    package: str = typer.Option(None, "--package", "-p", help="Package name (e.g. com.example.app)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Register an app and print its generated key."""
    client = DashboardClient(get_dashboard_url_or_exit())

    if name is None:
        name = Prompt.ask("App name")
    if package is None:
        package = Prompt.ask("Package name")

    flow = RegistrationFlow(client.register_app, refresh=client.dashboard, confirm_step=not yes)
    try:
        flow.fill(name, package)
    except RegistrationValidationError as e:
        err_console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    asyncio.run(_run_registration(flow))

    if flow.state == RegistrationState.FORM_FILLED:
        console.print("[dim]Cancelled.[/dim]")
        raise typer.Abort()
    if flow.state == RegistrationState.ERROR:
        err_console.print(f"[red]Registration failed:[/red] {flow.error}")
        raise typer.Exit(1)

    console.print("[green]App registered.[/green] Use this key in the app's tracking calls:")
    console.print(f"  [bold]{flow.generated_key}[/bold]")

    try:
        dashboard = asyncio.run(flow.dismiss())
    except DashboardError as e:
        err_console.print(f"[yellow]Could not refresh dashboard:[/yellow] {e.message}")
        return
    _print_totals(dashboard)


def edit(
    target: str = typer.Argument(..., help="App id, key or name"),
    name: str = typer.Option(None, "--name", "-n", help="New app name"),
    package: str = typer.Option(None, "--package", "-p", help="New package name"),
):
    """Change an app's name or package. The key is kept."""
    client = DashboardClient(get_dashboard_url_or_exit())
    app = resolve_app(client, target)

    flow = EditFlow(client.update_app, refresh=client.dashboard)
    flow.open(app)

    if name is None and package is None:
        name = Prompt.ask("App name", default=flow.app_name)
        package = Prompt.ask("Package name", default=flow.package_name)

    if not asyncio.run(flow.save(name, package)):
        err_console.print(f"[red]Update failed:[/red] {flow.error}")
        raise typer.Exit(1)

    console.print(
        f"Updated [bold]{flow.app_name}[/bold] ({flow.package_name}), key {app['app_key']}"
    )


def delete(
    target: str = typer.Argument(..., help="App id, key or name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete an app along with all of its installs and opens."""
    client = DashboardClient(get_dashboard_url_or_exit())
    app = resolve_app(client, target)

    flow = DeleteFlow(client.delete_app, refresh=client.dashboard)
    flow.open(app)

    if not yes:
        confirm = typer.confirm(
            f"Delete app '{app['app_name']}' and all of its installs and opens? This cannot be undone"
        )
        if not confirm:
            flow.cancel()
            raise typer.Abort()

    with console.status("Deleting..."):
        ok = asyncio.run(flow.confirm())

    if not ok:
        err_console.print(f"[red]Delete failed:[/red] {flow.error}")
        raise typer.Exit(1)

    result = flow.result
    console.print(
        f"Deleted [bold]{app['app_name']}[/bold] "
        f"({result['installs_deleted']} installs, {result['opens_deleted']} opens)"
    )
