"""Database password storage backends."""

from .constants import PasswordStorageMode
from .factory import describe_missing_password, get_password_storage
from .interface import (
    PasswordStorage,
    PasswordStorageResult,
    ServiceIdentity,
    save_password_with_result,
)

__all__ = [
    "PasswordStorage",
    "PasswordStorageMode",
    "PasswordStorageResult",
    "ServiceIdentity",
    "describe_missing_password",
    "get_password_storage",
    "save_password_with_result",
]
