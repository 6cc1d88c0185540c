"""Dashboard connection settings stored in ~/.apk/config.toml"""

import tomllib
from pathlib import Path

CONFIG_DIR = Path.home() / ".apk"
CONFIG_FILE = CONFIG_DIR / "config.toml"


def _read_config() -> dict:
    if not CONFIG_FILE.exists():
        return {}
    return tomllib.loads(CONFIG_FILE.read_text())


def _write_config(config: dict) -> None:
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    CONFIG_FILE.write_text(_serialize_toml(config))
    CONFIG_FILE.chmod(0o600)


def _serialize_toml(data: dict) -> str:
    """Minimal TOML serializer for top-level strings and one level of string tables."""
    lines = []
    tables = []
    for key, value in data.items():
        if isinstance(value, dict):
            tables.append((key, value))
        else:
            lines.append(f'{key} = "{value}"')
    for name, table in tables:
        if lines:
            lines.append("")
        lines.append(f"[{name}]")
        for k, v in table.items():
            lines.append(f'{k} = "{v}"')
    return "\n".join(lines) + "\n"


def save_dashboard(url: str) -> None:
    config = _read_config()
    config["dashboard"] = {"url": url}
    _write_config(config)


def get_dashboard_url() -> str | None:
    return _read_config().get("dashboard", {}).get("url") or None


def get_dashboard_url_or_exit() -> str:
    """Return the configured dashboard URL or print error and exit."""
    from .console import err_console

    url = get_dashboard_url()
    if not url:
        err_console.print(
            "[red]No dashboard configured.[/red] Run [bold]apk connect <dashboard-url>[/bold] first."
        )
        raise SystemExit(1)
    return url
