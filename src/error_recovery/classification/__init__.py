"""Error classification and reporting."""
from .classifier import SEVERITY_LOG_LEVELS, ErrorClassifier, ErrorReport, transport_status
from .messages import SUGGESTED_ACTIONS, USER_MESSAGES, ActionKind, RecoveryAction

__all__ = [
    "ErrorClassifier",
    "ErrorReport",
    "RecoveryAction",
    "ActionKind",
    "USER_MESSAGES",
    "SUGGESTED_ACTIONS",
    "SEVERITY_LOG_LEVELS",
    "transport_status",
]
