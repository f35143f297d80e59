"""Password storage backed by a libpq-compatible password file (``~/.pgpass``).

Each entry is one line of the form ``host:port:database:username:password``.
Colons and backslashes inside a field are escaped with a backslash. Comments,
blank lines and lines that cannot be parsed are kept verbatim and never
modified.

The whole file is rewritten on every change: the new content goes to a
temporary file in the same directory, which is restricted to mode ``0600`` and
then renamed over the original. Concurrent writers from other processes are not
coordinated with; a single local user is assumed.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from ..core.constants import DEFAULT_PGPASS_FILE
from ..core.errors import MalformedPasswordFileError, PasswordStorageError
from .constants import (
    PGPASS_ESCAPE,
    PGPASS_FILE_MODE,
    PGPASS_LOCATION,
    PGPASS_SEPARATOR,
    PasswordStorageMode,
)
from .interface import PasswordStorage, ServiceIdentity

logger = logging.getLogger(__name__)

EntryKey = Tuple[str, str, str, str]


def escape_field(value: str) -> str:
    """Escape backslashes and colons so ``value`` fits in one field."""
    return value.replace(PGPASS_ESCAPE, PGPASS_ESCAPE * 2).replace(
        PGPASS_SEPARATOR, PGPASS_ESCAPE + PGPASS_SEPARATOR
    )


def split_fields(line: str) -> List[str]:
    """Split a password file line on unescaped colons, unescaping each field."""
    fields: List[str] = []
    current: List[str] = []
    escaped = False
    for char in line:
        if escaped:
            current.append(char)
            escaped = False
        elif char == PGPASS_ESCAPE:
            escaped = True
        elif char == PGPASS_SEPARATOR:
            fields.append("".join(current))
            current = []
        else:
            current.append(char)
    fields.append("".join(current))
    return fields


@dataclass(frozen=True)
class PgpassEntry:
    host: str
    port: str
    database: str
    username: str
    password: str

    @property
    def key(self) -> EntryKey:
        return (self.host, self.port, self.database, self.username)

    def format(self) -> str:
        return PGPASS_SEPARATOR.join(
            escape_field(field)
            for field in (self.host, self.port, self.database, self.username, self.password)
        )


@dataclass(frozen=True)
class PgpassLine:
    """One physical line of the file and its parsed entry, if it has one."""

    raw: str
    entry: Optional[PgpassEntry] = None
    malformed: bool = False

    @classmethod
    def parse(cls, raw: str) -> "PgpassLine":
        stripped = raw.strip()
        if not stripped or stripped.startswith("#"):
            return cls(raw=raw)
        fields = split_fields(raw.rstrip("\r"))
        if len(fields) != 5:
            return cls(raw=raw, malformed=True)
        return cls(raw=raw, entry=PgpassEntry(*fields))

    @classmethod
    def from_entry(cls, entry: PgpassEntry) -> "PgpassLine":
        return cls(raw=entry.format(), entry=entry)


def read_pgpass(path: Path) -> List[PgpassLine]:
    """Parse the password file at ``path``; a missing file has no lines."""
    try:
        content = path.read_bytes()
    except FileNotFoundError:
        return []
    except OSError as e:
        raise PasswordStorageError(f"failed to read {path}: {e.strerror or e}") from e

    try:
        text = content.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedPasswordFileError(f"{path} is not valid UTF-8 text") from e

    raw_lines = text.split("\n")
    if raw_lines and raw_lines[-1] == "":
        raw_lines.pop()
    lines = [PgpassLine.parse(raw) for raw in raw_lines]
    malformed = sum(1 for line in lines if line.malformed)
    if malformed:
        logger.warning("Ignoring %d unparseable line(s) in %s", malformed, path)
    return lines


def write_pgpass(path: Path, lines: List[PgpassLine]) -> None:
    """Atomically replace ``path`` with ``lines``, leaving it mode 0600.

    If anything fails before the final rename the original file is left
    untouched and the temporary file is removed.
    """
    content = "".join(f"{line.raw}\n" for line in lines)
    directory = path.parent
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f"{path.name}.tmp", dir=directory)
    except OSError as e:
        raise PasswordStorageError(
            f"failed to create temporary file in {directory}: {e.strerror or e}"
        ) from e

    try:
        with os.fdopen(fd, "w", encoding="utf-8") as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp_name, PGPASS_FILE_MODE)
        os.replace(tmp_name, path)
    except OSError as e:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise PasswordStorageError(f"failed to write {path}: {e.strerror or e}") from e


class PgpassStorage(PasswordStorage):
    """Stores passwords in a libpq password file."""

    method = PasswordStorageMode.PGPASS.value
    location = PGPASS_LOCATION

    def __init__(self, path: Union[str, Path, None] = None):
        self.path = Path(os.path.expanduser(str(path or DEFAULT_PGPASS_FILE)))

    @staticmethod
    def _key(identity: ServiceIdentity) -> EntryKey:
        return (identity.host, str(identity.port), identity.database, identity.role)

    def get(self, identity: ServiceIdentity) -> Optional[str]:
        key = self._key(identity)
        for line in read_pgpass(self.path):
            if self._owns(line, key):
                return line.entry.password or None
        return None

    def save(self, identity: ServiceIdentity, password: str) -> None:
        key = self._key(identity)
        kept = [line for line in read_pgpass(self.path) if not self._owns(line, key)]
        kept.append(PgpassLine.from_entry(PgpassEntry(*key, password)))
        write_pgpass(self.path, kept)
        logger.debug("Saved password for %s@%s:%s to %s", key[3], key[0], key[1], self.path)

    def remove(self, identity: ServiceIdentity) -> None:
        key = self._key(identity)
        lines = read_pgpass(self.path)
        kept = [line for line in lines if not self._owns(line, key)]
        if len(kept) == len(lines):
            return
        write_pgpass(self.path, kept)
        logger.debug("Removed password for %s@%s:%s from %s", key[3], key[0], key[1], self.path)

    @staticmethod
    def _owns(line: PgpassLine, key: EntryKey) -> bool:
        # Exact key only; wildcard lines written by the user are neither read nor rewritten
        return line.entry is not None and line.entry.key == key
