"""
Key-value storage for contract state.

Contracts never touch a database directly. The host hands each contract a
``Storage`` scoped to its own address, and every operation writes through a
``CachedStorage`` overlay that is committed only when the whole operation
succeeds. Values are JSON documents.

Backends:
- MemoryStorage: dict backed, used by tests and the default node
- SQLiteStorage: persistent single-table store
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterator, Optional, Tuple, TypeVar

from nftsale.core.exceptions import NotFoundError, SerializationError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TOMBSTONE = object()


def _encode(key: str, value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise SerializationError(
            f"cannot serialize value for key '{key}': {exc}", details={"key": key}
        ) from exc


def _decode(key: str, raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise SerializationError(
            f"corrupt value stored under key '{key}'", details={"key": key}
        ) from exc


class Storage:
    """Interface for JSON key-value storage."""

    def get(self, key: str) -> Any:
        """Return the stored value, or None if the key is absent."""
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError

    def items(self, prefix: str = "") -> Iterator[Tuple[str, Any]]:
        """Iterate (key, value) pairs whose key starts with prefix, in key order."""
        raise NotImplementedError


class MemoryStorage(Storage):
    """Dict-backed storage. Values are kept JSON-encoded so callers never share references."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return None
        return _decode(key, raw)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _encode(key, value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def items(self, prefix: str = "") -> Iterator[Tuple[str, Any]]:
        for key in sorted(k for k in self._data if k.startswith(prefix)):
            yield key, _decode(key, self._data[key])

    def __len__(self) -> int:
        return len(self._data)


class SQLiteStorage(Storage):
    """
    Persistent key-value store backed by a SQLite database.

    All rows live in a single ``key_value_store`` table. Writes issued by
    ``CachedStorage.commit`` are grouped in one transaction via ``batch()``.
    """

    def __init__(self, db_path: Path | str) -> None:
        """
        Open (and create if needed) the database.

        Args:
            db_path: Path to the SQLite file. The parent directory is created
                if it does not exist. ``":memory:"`` opens a private in-memory db.
        """
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        try:
            self._conn = sqlite3.connect(
                self.db_path, check_same_thread=False, isolation_level="EXCLUSIVE"
            )
            if self.db_path != ":memory:":
                self._conn.execute("PRAGMA journal_mode=WAL;")
                self._conn.execute("PRAGMA synchronous=NORMAL;")
            with self._conn:
                self._conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS key_value_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
        except sqlite3.Error as exc:
            logger.error(
                "Storage open failed",
                extra={"event": "storage.open_failed", "path": self.db_path, "error": str(exc)},
            )
            raise StorageError(f"cannot open storage at {self.db_path}: {exc}") from exc

    def get(self, key: str) -> Any:
        try:
            row = self._conn.execute(
                "SELECT value FROM key_value_store WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"failed to read key '{key}': {exc}") from exc
        if row is None:
            return None
        return _decode(key, row[0])

    def set(self, key: str, value: Any) -> None:
        self.batch([(key, value)])

    def remove(self, key: str) -> None:
        self.batch([(key, _TOMBSTONE)])

    def batch(self, writes: list[Tuple[str, Any]]) -> None:
        """Apply sets and removes (value ``_TOMBSTONE``) in a single transaction."""
        encoded = [
            (key, None if value is _TOMBSTONE else _encode(key, value)) for key, value in writes
        ]
        try:
            with self._conn:
                for key, raw in encoded:
                    if raw is None:
                        self._conn.execute("DELETE FROM key_value_store WHERE key = ?", (key,))
                    else:
                        self._conn.execute(
                            """
                            INSERT INTO key_value_store (key, value)
                            VALUES (?, ?)
                            ON CONFLICT(key) DO UPDATE SET value = excluded.value
                            """,
                            (key, raw),
                        )
        except sqlite3.Error as exc:
            raise StorageError(f"failed to write {len(writes)} keys: {exc}") from exc

    def items(self, prefix: str = "") -> Iterator[Tuple[str, Any]]:
        try:
            rows = self._conn.execute(
                "SELECT key, value FROM key_value_store WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            ).fetchall()
        except sqlite3.Error as exc:
            raise StorageError(f"failed to scan prefix '{prefix}': {exc}") from exc
        for key, raw in rows:
            yield key, _decode(key, raw)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "SQLiteStorage":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class PrefixedStorage(Storage):
    """View of another storage restricted to keys under a namespace."""

    def __init__(self, inner: Storage, namespace: str) -> None:
        self._inner = inner
        self._prefix = f"{namespace}/"

    def get(self, key: str) -> Any:
        return self._inner.get(self._prefix + key)

    def set(self, key: str, value: Any) -> None:
        self._inner.set(self._prefix + key, value)

    def remove(self, key: str) -> None:
        self._inner.remove(self._prefix + key)

    def items(self, prefix: str = "") -> Iterator[Tuple[str, Any]]:
        strip = len(self._prefix)
        for key, value in self._inner.items(self._prefix + prefix):
            yield key[strip:], value


class CachedStorage(Storage):
    """
    Write buffer over another storage.

    Reads see pending writes first. ``commit()`` flushes the buffer to the
    parent in one step, ``discard()`` drops it. Overlays nest, which is how a
    failed submessage is rolled back without losing its caller's writes.
    """

    def __init__(self, parent: Storage) -> None:
        self._parent = parent
        self._pending: Dict[str, Any] = {}

    def get(self, key: str) -> Any:
        if key in self._pending:
            value = self._pending[key]
            return None if value is _TOMBSTONE else _decode(key, value)
        return self._parent.get(key)

    def set(self, key: str, value: Any) -> None:
        self._pending[key] = _encode(key, value)

    def remove(self, key: str) -> None:
        self._pending[key] = _TOMBSTONE

    def items(self, prefix: str = "") -> Iterator[Tuple[str, Any]]:
        merged = {key: value for key, value in self._parent.items(prefix)}
        for key, raw in self._pending.items():
            if not key.startswith(prefix):
                continue
            if raw is _TOMBSTONE:
                merged.pop(key, None)
            else:
                merged[key] = _decode(key, raw)
        for key in sorted(merged):
            yield key, merged[key]

    @property
    def dirty(self) -> bool:
        return bool(self._pending)

    def commit(self) -> int:
        """Flush pending writes to the parent. Returns the number of keys written."""
        writes = [
            (key, _TOMBSTONE if raw is _TOMBSTONE else _decode(key, raw))
            for key, raw in self._pending.items()
        ]
        if isinstance(self._parent, SQLiteStorage):
            self._parent.batch(writes)
        else:
            for key, value in writes:
                if value is _TOMBSTONE:
                    self._parent.remove(key)
                else:
                    self._parent.set(key, value)
        self._pending.clear()
        return len(writes)

    def discard(self) -> None:
        self._pending.clear()


class Item(Generic[T]):
    """
    Accessor for a single record stored under one key.

    Args:
        key: Storage key of the record
        to_json: Converts the record to a JSON value
        from_json: Rebuilds the record from a JSON value
    """

    def __init__(
        self,
        key: str,
        to_json: Callable[[T], Any] = lambda value: value,
        from_json: Callable[[Any], T] = lambda raw: raw,
    ) -> None:
        self.key = key
        self._to_json = to_json
        self._from_json = from_json

    def may_load(self, storage: Storage) -> Optional[T]:
        raw = storage.get(self.key)
        if raw is None:
            return None
        try:
            return self._from_json(raw)
        except (KeyError, TypeError, ValueError) as exc:
            raise SerializationError(
                f"cannot decode record '{self.key}': {exc}", details={"key": self.key}
            ) from exc

    def load(self, storage: Storage) -> T:
        value = self.may_load(storage)
        if value is None:
            raise NotFoundError(f"record '{self.key}' not found", details={"key": self.key})
        return value

    def save(self, storage: Storage, value: T) -> None:
        storage.set(self.key, self._to_json(value))

    def remove(self, storage: Storage) -> None:
        storage.remove(self.key)

    def exists(self, storage: Storage) -> bool:
        return storage.get(self.key) is not None
