"""Static user-facing messages and suggested actions per category."""
from dataclasses import dataclass
from enum import Enum

from ..types import ErrorCategory


class ActionKind(Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


@dataclass(frozen=True)
class RecoveryAction:
    """Action a UI can offer next to a surfaced error.

    ``action`` is a stable key the caller maps to its own handler.
    """

    label: str
    action: str
    kind: ActionKind = ActionKind.PRIMARY

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "action": self.action, "kind": self.kind.value}


USER_MESSAGES: dict[ErrorCategory, str] = {
    ErrorCategory.NETWORK: "Connection problem. Check your internet connection and try again.",
    ErrorCategory.DATA: "Corrupted data detected. We will try to recover it automatically.",
    ErrorCategory.COMPONENT: "Something went wrong on this screen. Let's try reloading it.",
    ErrorCategory.NAVIGATION: "Could not open this screen.",
    ErrorCategory.STORAGE: "Problem saving data. Check the available space.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred. Our team has been notified.",
}

SUGGESTED_ACTIONS: dict[ErrorCategory, tuple[RecoveryAction, ...]] = {
    ErrorCategory.NETWORK: (
        RecoveryAction("Try again", "retry"),
        RecoveryAction("Use cached data", "use_cache", ActionKind.SECONDARY),
    ),
    ErrorCategory.DATA: (
        RecoveryAction("Reload data", "reload_data"),
        RecoveryAction("Use backup", "use_backup", ActionKind.SECONDARY),
    ),
    ErrorCategory.COMPONENT: (
        RecoveryAction("Reload screen", "reload_screen"),
        RecoveryAction("Go back", "go_back", ActionKind.SECONDARY),
    ),
    ErrorCategory.NAVIGATION: (
        RecoveryAction("Go to home", "navigate_home"),
        RecoveryAction("Try again", "retry", ActionKind.SECONDARY),
    ),
    ErrorCategory.STORAGE: (
        RecoveryAction("Free up space", "free_space"),
        RecoveryAction("Try again", "retry", ActionKind.SECONDARY),
    ),
    ErrorCategory.UNKNOWN: (
        RecoveryAction("Reload app", "reload_app"),
    ),
}
