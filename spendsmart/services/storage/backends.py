"""
Document Store Backends

- InMemoryDocumentStore: tests and throwaway sessions
- FileDocumentStore: one file per key in a data directory, the desktop
  equivalent of browser local storage

TRADEOFFS:
- Whole documents are rewritten on every save (fine for personal data)
- No cross-document transactions (each document is self-contained)
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional, Union

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from spendsmart.services.storage.interface import (
    DocumentStoreInterface,
    StorageError,
)


_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class InMemoryDocumentStore(DocumentStoreInterface):
    """Dictionary-backed store. Contents vanish with the process."""

    def __init__(self, documents: Optional[dict[str, str]] = None):
        self._documents: dict[str, str] = dict(documents or {})
        self.save_count = 0

    def load(self, key: str) -> Optional[str]:
        return self._documents.get(key)

    def save(self, key: str, blob: str) -> None:
        self._documents[key] = blob
        self.save_count += 1

    def keys(self) -> list[str]:
        return sorted(self._documents)


class FileDocumentStore(DocumentStoreInterface):
    """
    Stores each document as a file named after its key.

    Writes go to a temporary file that is then renamed over the target,
    so a crash mid-write never leaves a half-written document behind.
    """

    def __init__(self, data_dir: Union[str, Path]):
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise StorageError(f"Invalid document key: {key!r}")
        return self._data_dir / f"{key}.json"

    def load(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Failed to read document '{key}': {e}")

    def save(self, key: str, blob: str) -> None:
        path = self._path_for(key)
        try:
            self._write_atomic(path, blob)
        except OSError as e:
            raise StorageError(f"Failed to save document '{key}': {e}")

    @retry(
        retry=retry_if_exception_type(OSError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
        reraise=True,
    )
    def _write_atomic(self, path: Path, blob: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(blob)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
