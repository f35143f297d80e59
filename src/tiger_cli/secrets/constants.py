"""Constants for the password storage backends."""

from enum import Enum


class PasswordStorageMode(str, Enum):
    """Which backend persists database passwords."""

    KEYRING = "keyring"
    PGPASS = "pgpass"
    NONE = "none"
    AUTO = "auto"


# Human readable locations, used in status messages
KEYRING_LOCATION = "system keyring"
PGPASS_LOCATION = "~/.pgpass"

KEYRING_USERNAME_PREFIX = "password"

# Characters escaped with a backslash inside a password file field
PGPASS_SEPARATOR = ":"
PGPASS_ESCAPE = "\\"
PGPASS_FILE_MODE = 0o600
