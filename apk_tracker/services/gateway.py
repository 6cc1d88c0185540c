"""
Data access gateway for APK Tracker.

Wraps the backend collections (apps, app_installs, app_opens) behind the
record-set queries the dashboard needs: ordered listings, per-key counts,
and the app insert/update/delete mutations.
"""
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Tuple

from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from ..keys import generate_app_key
from ..models import AppResponse, InstallResponse, OpenResponse
from ..utils import friendly_backend_error, isoformat_or_none

logger = logging.getLogger(__name__)

# Accepted names for the child collections in count_by_key()
CHILD_COLLECTION_ALIASES = {
    "installs": "installs",
    "app_installs": "installs",
    "opens": "opens",
    "app_opens": "opens",
}


class GatewayError(Exception):
    """Base exception for gateway errors."""
    def __init__(self, code: str, message: str, details: dict = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class AppNotFoundError(GatewayError):
    """Raised when an app is not found."""
    def __init__(self, app_id: int):
        super().__init__("NOT_FOUND", f"App not found: {app_id}")


class ValidationError(GatewayError):
    """Raised when required fields are missing or blank."""
    def __init__(self, message: str, fields: List[str] = None):
        super().__init__("VALIDATION_FAILED", message, {"fields": fields} if fields else None)


class InvalidRequestError(GatewayError):
    """Raised for invalid request data."""
    def __init__(self, message: str):
        super().__init__("INVALID_REQUEST", message)


class BackendError(GatewayError):
    """Raised when the backend rejects or fails a query."""
    def __init__(self, message: str, backend_message: str = None):
        details = {"backend_message": backend_message} if backend_message else None
        super().__init__("BACKEND_ERROR", message, details)


def backend_error(operation: str, e: Exception) -> BackendError:
    """Log a driver failure and wrap it as a BackendError."""
    raw = str(e)
    logger.error(f"Backend error during {operation}: {raw}")
    return BackendError(friendly_backend_error(raw), backend_message=raw)


def validate_app_fields(app_name: Optional[str], package_name: Optional[str]) -> Tuple[str, str]:
    """
    Check that both app fields are non-empty after trimming.

    Returns:
        Tuple of (app_name, package_name), trimmed

    Raises:
        ValidationError: If either field is blank
    """
    name = (app_name or "").strip()
    package = (package_name or "").strip()
    missing = []
    if not name:
        missing.append("app_name")
    if not package:
        missing.append("package_name")
    if missing:
        raise ValidationError("Please fill in all fields", missing)
    return name, package


class DataGateway:
    """Record-set queries and mutations over the tracker collections."""

    def __init__(
        self,
        collections,
        client=None,
        use_transactions: bool = None,
        key_length: int = None
    ):
        """
        Initialize the gateway with explicitly provided collections.

        Args:
            collections: Collections bundle (apps, installs, opens, counters)
            client: Motor client, only needed when transactions are enabled
            use_transactions: Run the delete sequence in a transaction (config default if None)
            key_length: Random suffix length for app keys (config default if None)
        """
        self.apps = collections.apps
        self.installs = collections.installs
        self.opens = collections.opens
        self.counters = collections.counters
        self.client = client

        if use_transactions is None:
            from ..config import USE_TRANSACTIONS
            use_transactions = USE_TRANSACTIONS
        self.use_transactions = use_transactions
        self.key_length = key_length

    # =========================================================================
    # Response Builders
    # =========================================================================

    @staticmethod
    def to_app_response(app: dict) -> AppResponse:
        return AppResponse(
            id=app["id"],
            app_key=app["app_key"],
            app_name=app["app_name"],
            package_name=app["package_name"],
            created_at=isoformat_or_none(app.get("created_at"))
        )

    @staticmethod
    def to_install_response(row: dict) -> InstallResponse:
        return InstallResponse(
            id=row.get("id"),
            app_key=row.get("app_key"),
            device_id=row.get("device_id"),
            package_name=row.get("package_name"),
            installed_at=isoformat_or_none(row.get("installed_at"))
        )

    @staticmethod
    def to_open_response(row: dict) -> OpenResponse:
        return OpenResponse(
            id=row.get("id"),
            app_key=row.get("app_key"),
            device_id=row.get("device_id"),
            opened_at=isoformat_or_none(row.get("opened_at"))
        )

    # =========================================================================
    # Read Operations
    # =========================================================================

    async def ping(self) -> None:
        """Raise if the backend does not answer."""
        if self.client is not None:
            await self.client.admin.command('ping')
        else:
            await self.apps.find_one({})

    async def list_apps(self) -> List[dict]:
        """All apps, newest first."""
        try:
            return await self.apps.find({}).sort("created_at", -1).to_list(length=None)
        except PyMongoError as e:
            raise backend_error("list_apps", e)

    async def list_installs(self, app_key: str = None) -> List[dict]:
        """All installs (optionally for one key), newest first."""
        query = {"app_key": app_key} if app_key else {}
        try:
            return await self.installs.find(query).sort("installed_at", -1).to_list(length=None)
        except PyMongoError as e:
            raise backend_error("list_installs", e)

    async def list_opens(self, app_key: str = None) -> List[dict]:
        """All opens (optionally for one key), newest first."""
        query = {"app_key": app_key} if app_key else {}
        try:
            return await self.opens.find(query).sort("opened_at", -1).to_list(length=None)
        except PyMongoError as e:
            raise backend_error("list_opens", e)

    def _child_collection(self, collection: str):
        kind = CHILD_COLLECTION_ALIASES.get((collection or "").lower())
        if kind is None:
            raise InvalidRequestError(
                f"Unknown collection '{collection}'. Expected one of: installs, opens"
            )
        return self.installs if kind == "installs" else self.opens

    async def count_by_key(self, collection: str, key: str) -> int:
        """
        Count rows of a child collection whose app_key equals key.

        Args:
            collection: "installs" or "opens" (backend names also accepted)
            key: App key to match

        Returns:
            Number of matching rows
        """
        target = self._child_collection(collection)
        try:
            return await target.count_documents({"app_key": key})
        except PyMongoError as e:
            raise backend_error(f"count_by_key({collection})", e)

    async def get_app(self, app_id: int) -> dict:
        """
        Fetch one app by numeric id.

        Raises:
            AppNotFoundError: If no app has this id
        """
        try:
            app = await self.apps.find_one({"id": app_id})
        except PyMongoError as e:
            raise backend_error("get_app", e)
        if not app:
            raise AppNotFoundError(app_id)
        return app

    # =========================================================================
    # Mutations
    # =========================================================================

    async def _next_id(self, name: str) -> int:
        counter = await self.counters.find_one_and_update(
            {"_id": name},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER
        )
        return int(counter["seq"])

    async def insert_app(self, app_name: str, package_name: str) -> dict:
        """
        Register a new app with a freshly generated key.

        Args:
            app_name: Display name
            package_name: Package identifier, e.g. com.example.app

        Returns:
            The inserted app document

        Raises:
            ValidationError: If either field is blank (no backend call is made)
            BackendError: If the backend rejects the write
        """
        name, package = validate_app_fields(app_name, package_name)
        app_key = generate_app_key(length=self.key_length)

        try:
            app_id = await self._next_id("apps")
            app_doc = {
                "id": app_id,
                "app_key": app_key,
                "app_name": name,
                "package_name": package,
                "created_at": datetime.now(timezone.utc)
            }
            await self.apps.insert_one(app_doc)
        except PyMongoError as e:
            raise backend_error("insert_app", e)

        logger.info(f"Registered app {app_id} ({package}) with key {app_key}")
        return app_doc

    async def update_app(self, app_id: int, app_name: str, package_name: str) -> dict:
        """
        Change the name and package of one app. The key is never touched.

        Raises:
            ValidationError: If either field is blank
            AppNotFoundError: If no app has this id
            BackendError: If the backend rejects the write
        """
        name, package = validate_app_fields(app_name, package_name)

        try:
            result = await self.apps.update_one(
                {"id": app_id},
                {"$set": {"app_name": name, "package_name": package}}
            )
        except PyMongoError as e:
            raise backend_error("update_app", e)

        if result.matched_count == 0:
            raise AppNotFoundError(app_id)

        logger.info(f"Updated app {app_id}")
        return await self.get_app(app_id)

    async def delete_children(self, key: str, session=None) -> Tuple[int, int]:
        """
        Delete all installs and opens for a key. Idempotent, safe to retry.

        Returns:
            Tuple of (installs_deleted, opens_deleted)
        """
        try:
            installs = await self.installs.delete_many({"app_key": key}, session=session)
            opens = await self.opens.delete_many({"app_key": key}, session=session)
        except PyMongoError as e:
            raise backend_error("delete_children", e)
        return installs.deleted_count, opens.deleted_count

    async def _delete_app_rows(self, app: dict, session=None) -> Dict[str, int]:
        # Children first so a failure never leaves rows pointing at a missing app
        installs_deleted, opens_deleted = await self.delete_children(app["app_key"], session=session)
        await self.apps.delete_one({"id": app["id"]}, session=session)
        return {"installs_deleted": installs_deleted, "opens_deleted": opens_deleted}

    async def delete_app(self, app_id: int) -> Dict:
        """
        Delete an app and every install/open sharing its key.

        Without transactions the steps are not atomic: a failure after the
        child deletes leaves them deleted. delete_children()/purge_orphans()
        can be re-run to finish the cleanup.

        Returns:
            Dict with app_key, installs_deleted and opens_deleted

        Raises:
            AppNotFoundError: If no app has this id
            BackendError: If any delete step fails
        """
        app = await self.get_app(app_id)

        try:
            if self.use_transactions and self.client is not None:
                async with await self.client.start_session() as session:
                    async with session.start_transaction():
                        counts = await self._delete_app_rows(app, session=session)
            else:
                counts = await self._delete_app_rows(app)
        except PyMongoError as e:
            raise backend_error("delete_app", e)

        logger.info(
            f"Deleted app {app_id} ({app['app_key']}): "
            f"{counts['installs_deleted']} installs, {counts['opens_deleted']} opens"
        )
        return {"app_key": app["app_key"], **counts}

    # =========================================================================
    # Orphan Cleanup
    # =========================================================================

    async def find_orphan_keys(self) -> Dict:
        """
        Find keys referenced by installs/opens with no live app.

        Rows with a null or missing app_key are reported under the key None.

        Returns:
            Dict with orphan_keys (sorted, None first) and the installs/opens row counts behind them
        """
        report = {"orphan_keys": [], "installs": 0, "opens": 0}
        orphan_keys = set()

        try:
            live_keys = set(await self.apps.distinct("app_key"))
            live_keys.discard(None)
            for field, target in (("installs", self.installs), ("opens", self.opens)):
                keys = set(await target.distinct("app_key"))
                # distinct() skips documents that lack the field entirely
                keys.add(None)
                for key in keys:
                    if key in live_keys:
                        continue
                    count = await target.count_documents({"app_key": key})
                    if count:
                        orphan_keys.add(key)
                        report[field] += count
        except PyMongoError as e:
            raise backend_error("find_orphan_keys", e)

        report["orphan_keys"] = sorted(orphan_keys, key=lambda k: (k is not None, k or ""))
        return report

    async def purge_orphans(self) -> Dict:
        """Delete child rows whose key has no live app."""
        report = await self.find_orphan_keys()
        installs_deleted = 0
        opens_deleted = 0

        try:
            for key in report["orphan_keys"]:
                installs, opens = await self.delete_children(key)
                installs_deleted += installs
                opens_deleted += opens
        except PyMongoError as e:
            raise backend_error("purge_orphans", e)

        if report["orphan_keys"]:
            logger.info(
                f"Purged {len(report['orphan_keys'])} orphan keys: "
                f"{installs_deleted} installs, {opens_deleted} opens"
            )
        return {
            "purged_keys": report["orphan_keys"],
            "installs_deleted": installs_deleted,
            "opens_deleted": opens_deleted
        }
