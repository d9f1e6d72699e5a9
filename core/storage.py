# core/storage.py - durable storage backends for the configuration record
#
# Every backend stores the whole record { selectedTrade, setupCompleted } as
# one unit, so a reader sees either the previous record or the new one.
# Backend I/O errors surface as StorageUnavailable.

import json
import logging
import os
import sqlite3
import tempfile
import threading
from typing import Any, Dict, Optional

from core.errors import CorruptConfiguration, StorageUnavailable

logger = logging.getLogger(__name__)

RECORD_KEY = "trade_config"


def _encode(record: Dict[str, Any]) -> str:
    return json.dumps(record, sort_keys=True)


def _decode(text: str, where: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise CorruptConfiguration(f"Unreadable configuration in {where}: {e}") from e
    if not isinstance(data, dict):
        raise CorruptConfiguration(f"Configuration in {where} is not an object")
    return data


class StorageBackend:
    """load() -> record or None when nothing was ever saved; save(record); clear()."""

    name = "abstract"

    def load(self) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save(self, record: Dict[str, Any]) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


# -------------------------- Memory --------------------------
class MemoryBackend(StorageBackend):
    """
    In-process backend for tests and previews. fail_next() injects a
    StorageUnavailable into the next matching call without touching the record.
    """

    name = "memory"

    def __init__(self, record: Optional[Dict[str, Any]] = None):
        self._record = dict(record) if record is not None else None
        self._lock = threading.Lock()
        self._failures: Dict[str, int] = {}
        self.calls: list[str] = []

    def fail_next(self, op: str = "save", times: int = 1) -> None:
        self._failures[op] = self._failures.get(op, 0) + times

    def _maybe_fail(self, op: str) -> None:
        self.calls.append(op)
        if self._failures.get(op, 0) > 0:
            self._failures[op] -= 1
            raise StorageUnavailable(f"injected {op} failure")

    @property
    def record(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            return dict(self._record) if self._record is not None else None

    def load(self):
        self._maybe_fail("load")
        return self.record

    def save(self, record):
        self._maybe_fail("save")
        with self._lock:
            self._record = dict(record)

    def clear(self):
        self._maybe_fail("clear")
        with self._lock:
            self._record = None


# -------------------------- JSON file --------------------------
class JsonFileBackend(StorageBackend):
    """One JSON document; temp file + fsync + os.replace (atomic rename)."""

    name = "json"

    def __init__(self, path: str):
        self.path = path

    def load(self):
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                text = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageUnavailable(f"Cannot read {self.path}: {e}", e) from e
        return _decode(text, self.path)

    def save(self, record):
        folder = os.path.dirname(self.path) or "."
        try:
            os.makedirs(folder, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".trade_config.", suffix=".tmp", dir=folder)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(json.dumps(record, indent=2, sort_keys=True))
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, self.path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StorageUnavailable(f"Cannot write {self.path}: {e}", e) from e

    def clear(self):
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise StorageUnavailable(f"Cannot remove {self.path}: {e}", e) from e


# -------------------------- SQLite meta table --------------------------
class SqliteBackend(StorageBackend):
    """Row 'trade_config' in the meta(k, v) table; one transaction per write."""

    name = "sqlite"

    def __init__(self, db_path: str):
        self.db_path = db_path
        self._initialized = False

    def _connect(self) -> sqlite3.Connection:
        con = sqlite3.connect(self.db_path, timeout=2.0)
        if not self._initialized:
            cur = con.cursor()
            cur.execute("PRAGMA journal_mode=WAL;")
            cur.execute("""CREATE TABLE IF NOT EXISTS meta(
                k TEXT PRIMARY KEY, v TEXT
            )""")
            cur.execute("INSERT OR IGNORE INTO meta(k,v) VALUES('schema_version','1')")
            con.commit()
            self._initialized = True
        return con

    def load(self):
        try:
            con = self._connect()
            try:
                row = con.execute("SELECT v FROM meta WHERE k=?", (RECORD_KEY,)).fetchone()
            finally:
                con.close()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot read {self.db_path}: {e}", e) from e
        if not row:
            return None
        return _decode(row[0], f"{self.db_path}:meta.{RECORD_KEY}")

    def save(self, record):
        try:
            con = self._connect()
            try:
                with con:
                    con.execute("INSERT OR REPLACE INTO meta(k,v) VALUES(?,?)", (RECORD_KEY, _encode(record)))
            finally:
                con.close()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot write {self.db_path}: {e}", e) from e

    def clear(self):
        try:
            con = self._connect()
            try:
                with con:
                    con.execute("DELETE FROM meta WHERE k=?", (RECORD_KEY,))
            finally:
                con.close()
        except sqlite3.Error as e:
            raise StorageUnavailable(f"Cannot write {self.db_path}: {e}", e) from e


# -------------------------- QSettings --------------------------
class QSettingsBackend(StorageBackend):
    """
    PySide6 QSettings (INI file) holding the JSON record under one key.
    sync() is called after every write and its status checked.
    """

    name = "qsettings"
    KEY = "setup/" + RECORD_KEY

    def __init__(self, ini_path: str):
        self.ini_path = ini_path

    def _settings(self):
        from PySide6.QtCore import QSettings
        return QSettings(self.ini_path, QSettings.Format.IniFormat)

    def _check(self, s, verb: str) -> None:
        from PySide6.QtCore import QSettings
        status = s.status()
        if status != QSettings.Status.NoError:
            raise StorageUnavailable(f"Cannot {verb} {self.ini_path}: {status.name}")

    def load(self):
        s = self._settings()
        s.sync()
        self._check(s, "read")
        text = s.value(self.KEY, None)
        if text is None or text == "":
            return None
        return _decode(str(text), f"{self.ini_path}:{self.KEY}")

    def save(self, record):
        s = self._settings()
        s.setValue(self.KEY, _encode(record))
        s.sync()
        self._check(s, "write")

    def clear(self):
        s = self._settings()
        s.remove(self.KEY)
        s.sync()
        self._check(s, "write")


def open_backend(settings) -> StorageBackend:
    """Backend for settings.store_kind; creates the data directory first."""
    kind = settings.store_kind
    if kind == "memory":
        return MemoryBackend()
    settings.ensure_dirs()
    if kind == "json":
        return JsonFileBackend(settings.json_path)
    if kind == "qsettings":
        return QSettingsBackend(settings.ini_path)
    if kind == "sqlite":
        return SqliteBackend(settings.db_path)
    raise ValueError(f"Unknown store kind '{kind}'")
