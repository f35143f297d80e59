"""Interactive recovery when a stored database password is rejected."""

from .flow import (
    PasswordRecoveryFlow,
    RecoveryOverride,
    RecoveryResult,
    RecoverySession,
    RecoveryStatus,
)
from .prompts import (
    ConsolePrompter,
    RecoveryAction,
    RecoveryPrompter,
    menu_options,
    stdin_is_interactive,
)

__all__ = [
    "ConsolePrompter",
    "PasswordRecoveryFlow",
    "RecoveryAction",
    "RecoveryOverride",
    "RecoveryPrompter",
    "RecoveryResult",
    "RecoverySession",
    "RecoveryStatus",
    "menu_options",
    "stdin_is_interactive",
]
