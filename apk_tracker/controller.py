"""
Dashboard interaction flows for APK Tracker.

RegistrationFlow walks the register form through

    idle -> form_filled -> confirm_pending -> processing -> success | error

and EditFlow/DeleteFlow are the simpler closed -> open -> closed dialogs.
The flows do not talk to the backend themselves: the mutation and the
re-fetch are injected callables (sync or async), so the same flow drives the
terminal front end against the HTTP API or a DataGateway directly.
"""
import inspect
import logging
from enum import Enum
from typing import Any, Callable, Optional

from .services.gateway import ValidationError, validate_app_fields

logger = logging.getLogger(__name__)


class RegistrationState(str, Enum):
    IDLE = "idle"
    FORM_FILLED = "form_filled"
    CONFIRM_PENDING = "confirm_pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class DialogState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"


class FlowError(Exception):
    """Base exception for flow errors."""


class InvalidTransitionError(FlowError):
    """Raised when an action is not allowed in the current state."""
    def __init__(self, action: str, state: Enum):
        self.action = action
        self.state = state
        super().__init__(f"Cannot {action} while {state.value}")


class RegistrationValidationError(FlowError):
    """Raised when the form is submitted with blank fields."""
    def __init__(self, message: str, fields=None):
        self.fields = fields or []
        super().__init__(message)


async def _call(func: Optional[Callable], *args) -> Any:
    if func is None:
        return None
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


def _key_of(record: Any) -> str:
    if isinstance(record, dict):
        return record["app_key"]
    return getattr(record, "app_key")


class RegistrationFlow:
    """State machine for the register-app form."""

    def __init__(self, register: Callable, refresh: Callable = None, confirm_step: bool = True):
        """
        Args:
            register: Called as register(app_name, package_name); returns the new app (with app_key)
            refresh: Called with no arguments after the success dialog is dismissed
            confirm_step: False skips confirm_pending and registers on submit
        """
        self.register = register
        self.refresh = refresh
        self.confirm_step = confirm_step
        self.state = RegistrationState.IDLE
        self.app_name = ""
        self.package_name = ""
        self.generated_key: Optional[str] = None
        self.error: Optional[str] = None

    def _require(self, action: str, *states: RegistrationState) -> None:
        if self.state not in states:
            raise InvalidTransitionError(action, self.state)

    def fill(self, app_name: str, package_name: str) -> RegistrationState:
        """Enter form values; both must be non-empty after trimming."""
        self._require(
            "fill the form",
            RegistrationState.IDLE,
            RegistrationState.FORM_FILLED,
            RegistrationState.ERROR,
        )
        try:
            name, package = validate_app_fields(app_name, package_name)
        except ValidationError as e:
            raise RegistrationValidationError(e.message, e.details.get("fields"))

        self.app_name = name
        self.package_name = package
        self.error = None
        self.state = RegistrationState.FORM_FILLED
        return self.state

    async def submit(self) -> RegistrationState:
        """Ask for confirmation, or register right away in the simple variant."""
        self._require("submit", RegistrationState.FORM_FILLED, RegistrationState.ERROR)
        if self.confirm_step:
            self.state = RegistrationState.CONFIRM_PENDING
            return self.state
        return await self._process()

    def cancel(self) -> RegistrationState:
        """Back out of the confirmation step, keeping the entered values."""
        self._require("cancel", RegistrationState.CONFIRM_PENDING)
        self.state = RegistrationState.FORM_FILLED
        return self.state

    async def confirm(self) -> RegistrationState:
        """Register the app with the entered values."""
        self._require("confirm", RegistrationState.CONFIRM_PENDING)
        return await self._process()

    async def _process(self) -> RegistrationState:
        self.state = RegistrationState.PROCESSING
        try:
            created = await _call(self.register, self.app_name, self.package_name)
            self.generated_key = _key_of(created)
        except Exception as e:
            logger.error(f"Error registering app: {e}")
            self.error = str(e) or "Failed to register app. Please try again."
            self.state = RegistrationState.ERROR
            return self.state

        self.app_name = ""
        self.package_name = ""
        self.error = None
        self.state = RegistrationState.SUCCESS
        return self.state

    async def dismiss(self) -> Any:
        """Close the success dialog and re-fetch the dashboard."""
        self._require("dismiss", RegistrationState.SUCCESS)
        self.state = RegistrationState.IDLE
        return await _call(self.refresh)


class EditFlow:
    """Edit dialog: opened prefilled with one app, closed on cancel or save."""

    def __init__(self, update: Callable, refresh: Callable = None):
        """
        Args:
            update: Called as update(app_id, app_name, package_name)
            refresh: Called with no arguments after a successful save
        """
        self.update = update
        self.refresh = refresh
        self.state = DialogState.CLOSED
        self.app_id: Optional[int] = None
        self.app_name = ""
        self.package_name = ""
        self.error: Optional[str] = None

    def open(self, app: dict) -> DialogState:
        self.app_id = app["id"]
        self.app_name = app["app_name"]
        self.package_name = app["package_name"]
        self.error = None
        self.state = DialogState.OPEN
        return self.state

    def cancel(self) -> DialogState:
        self.state = DialogState.CLOSED
        self.app_id = None
        self.error = None
        return self.state

    async def save(self, app_name: str = None, package_name: str = None) -> bool:
        """
        Save the edited values. Closes and re-fetches on success; on failure
        the dialog stays open with the error recorded.

        Returns:
            True if the update succeeded
        """
        if self.state != DialogState.OPEN:
            raise InvalidTransitionError("save", self.state)

        if app_name is not None:
            self.app_name = app_name
        if package_name is not None:
            self.package_name = package_name

        try:
            self.app_name, self.package_name = validate_app_fields(self.app_name, self.package_name)
        except ValidationError as e:
            self.error = e.message
            return False

        try:
            await _call(self.update, self.app_id, self.app_name, self.package_name)
        except Exception as e:
            logger.error(f"Error updating app: {e}")
            self.error = str(e) or "Failed to update app. Please try again."
            return False

        self.state = DialogState.CLOSED
        self.error = None
        await _call(self.refresh)
        return True


class DeleteFlow:
    """Delete confirmation dialog."""

    def __init__(self, delete: Callable, refresh: Callable = None):
        """
        Args:
            delete: Called as delete(app_id)
            refresh: Called with no arguments after a successful delete
        """
        self.delete = delete
        self.refresh = refresh
        self.state = DialogState.CLOSED
        self.app_id: Optional[int] = None
        self.app_name = ""
        self.error: Optional[str] = None
        self.result: Any = None

    def open(self, app: dict) -> DialogState:
        self.app_id = app["id"]
        self.app_name = app["app_name"]
        self.error = None
        self.result = None
        self.state = DialogState.OPEN
        return self.state

    def cancel(self) -> DialogState:
        self.state = DialogState.CLOSED
        self.app_id = None
        self.error = None
        return self.state

    async def confirm(self) -> bool:
        """
        Delete the app. Closes and re-fetches on success; on failure the
        dialog stays open with the error recorded.
        """
        if self.state != DialogState.OPEN:
            raise InvalidTransitionError("delete", self.state)

        try:
            self.result = await _call(self.delete, self.app_id)
        except Exception as e:
            logger.error(f"Error deleting app: {e}")
            self.error = str(e) or "Failed to delete app. Please try again."
            return False

        self.state = DialogState.CLOSED
        self.error = None
        await _call(self.refresh)
        return True
