"""apk connect: point the CLI at a dashboard deployment."""

import typer

from ..api.client import DashboardClient, DashboardError
from ..config import save_dashboard
from ..console import console, err_console


def connect(
    dashboard_url: str = typer.Argument(help="Dashboard URL (e.g. http://localhost:8000)"),
    skip_check: bool = typer.Option(False, "--skip-check", help="Save without calling /health"),
):
    """Save the dashboard URL after checking that it answers."""
    url = dashboard_url.rstrip("/")
    if not url.startswith("http"):
        url = f"http://{url}"

    if not skip_check:
        client = DashboardClient(url)
        try:
            health = client.health()
        except DashboardError as e:
            err_console.print(f"[red]Dashboard check failed:[/red] {e.message}")
            raise typer.Exit(1)
        console.print(f"Database: [green]{health.get('database', 'unknown')}[/green]")

    save_dashboard(url)
    console.print(f"Connected to [bold]{url}[/bold]")
