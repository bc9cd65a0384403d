"""
Local Key-Value Store Implementations

DESIGN DECISION: A single JSON file on disk plays the role browser local
storage plays for a web page: one object mapping keys to text values,
read on demand and rewritten in full on every write.

TRADEOFFS:
- The whole file is rewritten per write (fine for thousands of orders)
- No locking between processes; last writer wins
- Writes go through a temp file and os.replace so a crash never leaves
  a half-written store behind
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from perdcomp.config import get_settings
from perdcomp.services.storage.interface import KeyValueStoreInterface, PersistenceError


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Dictionary-backed store for tests and throwaway sessions."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileKeyValueStore(KeyValueStoreInterface):
    """
    File-backed store.

    The file holds a JSON object {key: text}. A missing file is an empty
    store; a file that is not a JSON object is a PersistenceError.
    """

    def __init__(self, path: Optional[str] = None):
        self._path = Path(path or get_settings().storage.data_path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Failed to read store {self._path}: {e}")
        if not isinstance(data, dict):
            raise PersistenceError(f"Store {self._path} does not hold a JSON object")
        return data

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        retry=retry_if_exception_type(OSError),
        reraise=True,
    )
    def _write_all(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False)
            os.replace(tmp_name, self._path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is not None and not isinstance(value, str):
            # Someone wrote raw JSON into the file; hand it back as text
            return json.dumps(value, ensure_ascii=False)
        return value

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        try:
            self._write_all(data)
        except OSError as e:
            raise PersistenceError(f"Failed to write store {self._path}: {e}")

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key not in data:
            return
        del data[key]
        try:
            self._write_all(data)
        except OSError as e:
            raise PersistenceError(f"Failed to write store {self._path}: {e}")
