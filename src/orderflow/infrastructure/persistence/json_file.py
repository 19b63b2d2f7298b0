"""A JSON document on disk shared between threads and processes.

Every CLI command runs in its own process, so a ``threading.Lock`` alone
cannot make a read-modify-write atomic.  ``JsonFile.locked()`` holds an
in-process lock and an exclusive lock file for the duration of the
block, and ``write`` replaces the document through a temporary file so
a reader never sees a half-written one.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock


class JsonFile:

    def __init__(self, path: Path) -> None:
        self.path = path
        self._thread_lock = threading.Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(str(path.with_name(path.name + ".lock")))
        with self.locked():
            if not self.path.exists():
                self.write([])

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Exclusive access across threads of this process and other processes."""
        with self._thread_lock, self._file_lock:
            yield

    def read(self) -> Any:
        with open(self.path, encoding="utf-8") as f:
            return json.load(f)

    def write(self, data: Any) -> None:
        """Replace the document atomically. Call inside ``locked()``."""
        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.stem}_", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(temp_path, self.path)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise
