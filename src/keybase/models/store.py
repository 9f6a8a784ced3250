"""
Key Store - Persistence for key info records.

KeyValueStore is the contract the keybase relies on: atomic per-key writes,
durable (_sync) variants for security-sensitive changes, and iteration in
ascending key order.
"""

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterator, Optional

from ..errors import StorageError
from ..utils import set_secure_permissions

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".rec"


class KeyValueStore(ABC):
    """Ordered byte-key/byte-value store."""

    @abstractmethod
    def get(self, key: bytes) -> Optional[bytes]:
        """Value for key, or None."""

    @abstractmethod
    def set(self, key: bytes, value: bytes) -> None:
        ...

    @abstractmethod
    def set_sync(self, key: bytes, value: bytes) -> None:
        """Like set, but durable before returning."""

    @abstractmethod
    def delete(self, key: bytes) -> None:
        ...

    @abstractmethod
    def delete_sync(self, key: bytes) -> None:
        """Like delete, but durable before returning."""

    @abstractmethod
    def iterate(self) -> Iterator[tuple[bytes, bytes]]:
        """Snapshot of (key, value) pairs in ascending key order."""

    def has(self, key: bytes) -> bool:
        return self.get(key) is not None


class MemoryDB(KeyValueStore):
    """In-process store for tests and throwaway keybases."""

    def __init__(self):
        self._data: dict[bytes, bytes] = {}
        self._lock = threading.Lock()

    def get(self, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._data[key] = bytes(value)

    def set_sync(self, key: bytes, value: bytes) -> None:
        self.set(key, value)

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._data.pop(key, None)

    def delete_sync(self, key: bytes) -> None:
        self.delete(key)

    def iterate(self) -> Iterator[tuple[bytes, bytes]]:
        with self._lock:
            items = sorted(self._data.items())
        return iter(items)


class FileDB(KeyValueStore):
    """
    One file per key under a directory.

    Filenames are the hex-encoded key, so any key is a safe filename and hex
    order matches byte order. Writes go through a temp file and os.replace,
    so a reader never sees a partial record.
    """

    def __init__(self, directory: str | Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: bytes) -> Path:
        return self.directory / (key.hex() + RECORD_SUFFIX)

    def get(self, key: bytes) -> Optional[bytes]:
        path = self._path(key)
        try:
            with open(path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read {path.name}: {e}") from e

    def _write(self, key: bytes, value: bytes, sync: bool) -> None:
        path = self._path(key)
        try:
            with tempfile.NamedTemporaryFile("wb", delete=False, dir=str(self.directory),
                                             suffix=".tmp") as tmp:
                tmp.write(value)
                tmp.flush()
                if sync:
                    os.fsync(tmp.fileno())
                tmp_name = tmp.name
            set_secure_permissions(Path(tmp_name))
            os.replace(tmp_name, path)  # atomic on POSIX
            if sync:
                self._fsync_dir()
        except OSError as e:
            raise StorageError(f"Failed to write {path.name}: {e}") from e

    def _fsync_dir(self) -> None:
        if os.name != "posix":
            return
        fd = os.open(self.directory, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)

    def set(self, key: bytes, value: bytes) -> None:
        self._write(key, value, sync=False)

    def set_sync(self, key: bytes, value: bytes) -> None:
        self._write(key, value, sync=True)

    def _remove(self, key: bytes, sync: bool) -> None:
        path = self._path(key)
        try:
            path.unlink(missing_ok=True)
            if sync:
                self._fsync_dir()
        except OSError as e:
            raise StorageError(f"Failed to delete {path.name}: {e}") from e

    def delete(self, key: bytes) -> None:
        self._remove(key, sync=False)

    def delete_sync(self, key: bytes) -> None:
        self._remove(key, sync=True)

    def iterate(self) -> Iterator[tuple[bytes, bytes]]:
        items = []
        for path in sorted(self.directory.glob("*" + RECORD_SUFFIX)):
            try:
                key = bytes.fromhex(path.name[:-len(RECORD_SUFFIX)])
            except ValueError:
                logger.warning(f"Skipping unrecognized file in key store: {path.name}")
                continue
            value = self.get(key)
            if value is not None:
                items.append((key, value))
        items.sort()
        return iter(items)
