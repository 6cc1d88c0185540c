"""apk: CLI for the APK Tracker dashboard"""

import typer

from . import __version__
from .commands.apps import delete, edit, list_apps, register
from .commands.connect import connect
from .commands.events import installs, opens
from .commands.maintenance import orphans

app = typer.Typer(
    name="apk",
    help="Register apps and inspect install/open tracking from your terminal.",
    no_args_is_help=True,
    add_completion=False,
)

app.command()(connect)
app.command(name="list")(list_apps)
app.command()(register)
app.command()(edit)
app.command()(delete)
app.command()(installs)
app.command()(opens)
app.command()(orphans)


@app.command()
def version():
    """Show apk-cli version."""
    typer.echo(f"apk-cli {__version__}")


if __name__ == "__main__":
    app()
