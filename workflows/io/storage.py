from __future__ import annotations

import asyncio
import copy
import json
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Protocol

__workflow_role__ = "Storage"


LOCK_TIMEOUT = 10.0
LOCK_SLEEP = 0.05
STALE_LOCK_AGE_SECONDS = 300  # Consider lock stale if file is older than 5 minutes

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when state records cannot be read or written."""

    def __init__(self, message: str, *, path: Optional[Path] = None) -> None:
        super().__init__(message)
        self.path = path


class Storage(Protocol):
    async def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        ...

    async def write(self, changes: Dict[str, Dict[str, Any]]) -> None:
        ...

    async def delete(self, keys: Iterable[str]) -> None:
        ...


class MemoryStorage:
    """
    In-memory key-value store for state records.

    Records are deep-copied on the way in and out so callers never share
    mutable state with the store.
    """

    def __init__(self, initial: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self._memory: Dict[str, Dict[str, Any]] = copy.deepcopy(initial) if initial else {}
        self._lock = asyncio.Lock()

    async def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        async with self._lock:
            return {
                key: copy.deepcopy(self._memory[key])
                for key in keys
                if key in self._memory
            }

    async def write(self, changes: Dict[str, Dict[str, Any]]) -> None:
        async with self._lock:
            for key, record in changes.items():
                self._memory[key] = copy.deepcopy(record)
                logger.debug("[STATE] Wrote %s", key)

    async def delete(self, keys: Iterable[str]) -> None:
        async with self._lock:
            for key in keys:
                self._memory.pop(key, None)


def _is_process_running(pid: int) -> bool:
    """Check if a process with the given PID is still running."""
    try:
        os.kill(pid, 0)  # Signal 0 = check if process exists
        return True
    except OSError:
        return False


def _cleanup_stale_lock(lock_path: Path) -> bool:
    """
    Remove stale lock file if the owning process is dead.

    Returns True if a stale lock was removed, False otherwise.
    """
    if not lock_path.exists():
        return False

    try:
        with open(lock_path, "r") as f:
            content = f.read().strip()

        if not content:
            # A brand-new lock file may still be getting its PID written.
            try:
                file_age = time.time() - lock_path.stat().st_mtime
                if file_age < 1.0:
                    return False
            except OSError:
                pass
            lock_path.unlink()
            logger.warning("Removed empty/corrupted lock file: %s", lock_path)
            return True

        try:
            pid = int(content)
        except ValueError:
            lock_path.unlink()
            logger.warning("Removed lock file with invalid PID content: %s", lock_path)
            return True

        if not _is_process_running(pid):
            lock_path.unlink()
            logger.warning("Removed stale lock file (PID %d is dead): %s", pid, lock_path)
            return True

        # PID may have been recycled, fall back to age
        file_age = time.time() - lock_path.stat().st_mtime
        if file_age > STALE_LOCK_AGE_SECONDS:
            lock_path.unlink()
            logger.warning(
                "Removed stale lock file (age %.0fs > %ds): %s",
                file_age, STALE_LOCK_AGE_SECONDS, lock_path
            )
            return True

    except OSError as e:
        logger.debug("Could not check/cleanup stale lock %s: %s", lock_path, e)

    return False


class FileLock:
    """Coarse-grained filesystem lock guarding the JSON state file."""

    def __init__(self, path: Path, timeout: float = LOCK_TIMEOUT, sleep: float = LOCK_SLEEP) -> None:
        self.path = path
        self.timeout = timeout
        self.sleep = sleep
        self.fd: Optional[int] = None

    def acquire(self) -> None:
        """Block until a lock file can be created or raise on timeout."""

        deadline = time.time() + self.timeout
        stale_check_done = False

        while True:
            try:
                self.fd = os.open(self.path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                os.write(self.fd, str(os.getpid()).encode("utf-8"))
                return
            except FileExistsError:
                if not stale_check_done:
                    stale_check_done = True
                    if _cleanup_stale_lock(self.path):
                        continue

                if time.time() >= deadline:
                    raise TimeoutError(f"Could not acquire lock {self.path}")
                time.sleep(self.sleep)

    def release(self) -> None:
        """Drop the lock file once a critical section completes."""

        if self.fd is not None:
            os.close(self.fd)
            self.fd = None
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    def __enter__(self) -> "FileLock":
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


def lock_path_for(path: Path) -> Path:
    """Derive a sibling lockfile path for a JSON resource."""

    path = Path(path)
    return path.with_name(f".{path.name}.lock")


class JsonFileStorage:
    """
    State records persisted to a single JSON document on disk.

    Every operation takes the sibling lockfile, so several worker processes
    can share one file. Writes go through a temp file and ``os.replace``.
    The locked sections run in a worker thread so a contended lock never
    stalls the event loop.
    """

    def __init__(self, path: Path, *, lock_timeout: float = LOCK_TIMEOUT) -> None:
        self.path = Path(path)
        self.lock_path = lock_path_for(self.path)
        self.lock_timeout = lock_timeout
        # The lockfile lives beside the state file, so the directory must exist first
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def read(self, keys: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        records = await asyncio.to_thread(self._read_locked)
        return {key: records[key] for key in keys if key in records}

    async def write(self, changes: Dict[str, Dict[str, Any]]) -> None:
        if not changes:
            return
        await asyncio.to_thread(self._write_locked, dict(changes))
        logger.debug("[STATE] Wrote %d record(s) to %s", len(changes), self.path)

    async def delete(self, keys: Iterable[str]) -> None:
        await asyncio.to_thread(self._delete_locked, list(keys))

    def _read_locked(self) -> Dict[str, Dict[str, Any]]:
        with FileLock(self.lock_path, timeout=self.lock_timeout):
            return self._load()

    def _write_locked(self, changes: Dict[str, Dict[str, Any]]) -> None:
        with FileLock(self.lock_path, timeout=self.lock_timeout):
            records = self._load()
            records.update(changes)
            self._save(records)

    def _delete_locked(self, keys: List[str]) -> None:
        with FileLock(self.lock_path, timeout=self.lock_timeout):
            records = self._load()
            removed = [key for key in keys if records.pop(key, None) is not None]
            if removed:
                self._save(records)

    def _load(self) -> Dict[str, Dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            raise StorageError(f"Could not read state file {self.path}: {exc}", path=self.path) from exc
        if not isinstance(data, dict):
            raise StorageError(f"State file {self.path} does not hold a JSON object", path=self.path)
        return data

    def _save(self, records: Dict[str, Dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as fh:
                json.dump(records, fh, indent=2, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except OSError as exc:
            raise StorageError(f"Could not write state file {self.path}: {exc}", path=self.path) from exc
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)


def create_storage(path: Optional[Path] = None) -> Storage:
    """Return file-backed storage when a path is configured, memory otherwise."""
    if path is not None:
        logger.info("[STATE] Using JSON state file %s", path)
        return JsonFileStorage(path)
    logger.info("[STATE] Using in-memory state")
    return MemoryStorage()


__all__ = [
    "Storage",
    "StorageError",
    "MemoryStorage",
    "JsonFileStorage",
    "FileLock",
    "lock_path_for",
    "create_storage",
]
