"""Core constants for the Tiger CLI.

Centralizing these constants keeps the secret store, the connection resolver
and the CLI commands agreeing on defaults without importing each other.
"""

from enum import Enum

# Environment variable names
ENV_API_BASE_URL = "TIGER_API_URL"
ENV_API_KEY = "TIGER_API_KEY"
ENV_PROJECT_ID = "TIGER_PROJECT_ID"
ENV_SERVICE_ID = "TIGER_SERVICE_ID"
ENV_PASSWORD_STORAGE = "TIGER_PASSWORD_STORAGE"
ENV_KEYRING_SERVICE = "TIGER_KEYRING_SERVICE"
ENV_NEW_PASSWORD = "TIGER_NEW_PASSWORD"
ENV_DEBUG = "TIGER_DEBUG"
ENV_PGPASSFILE = "PGPASSFILE"

# API defaults
DEFAULT_API_BASE_URL = "https://console.cloud.timescale.com/public/api/v1"
DEFAULT_KEYRING_SERVICE = "tiger-cli"

# Database connection defaults
DEFAULT_DATABASE = "tsdb"
DEFAULT_PORT = 5432
DEFAULT_ROLE = "tsdbadmin"
DEFAULT_SSLMODE = "require"

# Local files
DEFAULT_PGPASS_FILE = "~/.pgpass"
LOG_DIR = "~/.tiger/logs"
LOG_FILE_NAME = "tiger.log"

# Waiting
WAIT_TICK_SECONDS = 1.0
DEFAULT_READY_TIMEOUT_SECONDS = 30 * 60
DEFAULT_DELETE_TIMEOUT_SECONDS = 10 * 60
READY_STATUS = "READY"
FAILED_STATUSES = ("FAILED", "ERROR")

# Connection testing
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
GENERATED_PASSWORD_LENGTH = 32


class ExitCode(int, Enum):
    """Process exit codes shared by every command."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    TIMEOUT = 2
    INVALID_PARAMETERS = 3
    AUTHENTICATION_ERROR = 4
    PERMISSION_DENIED = 5
    SERVICE_NOT_FOUND = 6
