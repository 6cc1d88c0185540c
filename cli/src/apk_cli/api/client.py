"""HTTP client for the APK Tracker API."""

import httpx


class DashboardError(Exception):
    """Error from the dashboard API."""

    def __init__(self, message: str, status_code: int = 0, code: str = ""):
        self.message = message
        self.status_code = status_code
        self.code = code
        super().__init__(message)


def _parse_error(response: httpx.Response) -> DashboardError:
    """Parse an error response into a DashboardError."""
    try:
        data = response.json()
    except ValueError:
        return DashboardError(
            f"HTTP {response.status_code}: {response.text}",
            status_code=response.status_code,
        )

    detail = data.get("detail", data) if isinstance(data, dict) else data
    if isinstance(detail, dict):
        message = detail.get("message", str(detail))
        code = detail.get("code", "")
    elif isinstance(detail, str):
        message = detail
        code = ""
    else:
        message = str(data)
        code = ""

    return DashboardError(message, status_code=response.status_code, code=code)


class DashboardClient:
    """Client for the APK Tracker API."""

    def __init__(self, base_url: str, transport: httpx.BaseTransport | None = None):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=30.0,
            transport=transport,
        )

    def _request(self, method: str, path: str, **kwargs):
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise DashboardError(f"Could not reach {self._base_url}: {e}")
        if not response.is_success:
            raise _parse_error(response)
        if response.status_code == 204:
            return {}
        return response.json()

    def health(self) -> dict:
        return self._request("GET", "/health")

    # --- Dashboard ---

    def dashboard(self, strategy: str | None = None) -> dict:
        params = {"strategy": strategy} if strategy else {}
        return self._request("GET", "/api/dashboard", params=params)

    # --- Apps ---

    def list_apps(self) -> list[dict]:
        return self._request("GET", "/api/apps")

    def get_app(self, app_id: int) -> dict:
        return self._request("GET", f"/api/apps/{app_id}")

    def register_app(self, app_name: str, package_name: str) -> dict:
        return self._request(
            "POST",
            "/api/apps",
            json={"app_name": app_name, "package_name": package_name},
        )

    def update_app(self, app_id: int, app_name: str, package_name: str) -> dict:
        return self._request(
            "PUT",
            f"/api/apps/{app_id}",
            json={"app_name": app_name, "package_name": package_name},
        )

    def delete_app(self, app_id: int) -> dict:
        return self._request("DELETE", f"/api/apps/{app_id}")

    # --- Installs / opens ---

    def list_installs(self, app_key: str | None = None) -> list[dict]:
        params = {"app_key": app_key} if app_key else {}
        return self._request("GET", "/api/installs", params=params)

    def list_opens(self, app_key: str | None = None) -> list[dict]:
        params = {"app_key": app_key} if app_key else {}
        return self._request("GET", "/api/opens", params=params)

    # --- Maintenance ---

    def list_orphans(self) -> dict:
        return self._request("GET", "/api/maintenance/orphans")

    def purge_orphans(self) -> dict:
        return self._request("POST", "/api/maintenance/purge-orphans")


def resolve_app(client: DashboardClient, target: str) -> dict:
    """Find an app by numeric id, key or name. Returns the app dict or exits with error."""
    from ..console import err_console

    try:
        apps = client.list_apps()
    except DashboardError as e:
        err_console.print(f"[red]Failed to list apps:[/red] {e.message}")
        raise SystemExit(1)

    if target.isdigit():
        matches = [a for a in apps if a["id"] == int(target)]
    else:
        matches = [a for a in apps if target in (a["app_key"], a["app_name"])]

    if not matches:
        err_console.print(f"[red]No app '{target}' found.[/red]")
        err_console.print("Run [bold]apk list[/bold] to see registered apps.")
        raise SystemExit(1)
    if len(matches) > 1:
        err_console.print(f"[red]More than one app named '{target}'.[/red] Use the app id instead.")
        raise SystemExit(1)
    return matches[0]
