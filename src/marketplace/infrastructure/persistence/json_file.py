"""Shared plumbing for the JSON-file repositories.

Each repository keeps one JSON array per aggregate. All repository
instances pointing at the same file share one lock, so a
read-modify-write inside ``locked()`` is atomic within the process.
"""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from marketplace.domain.exceptions import InternalError

_registry_guard = threading.Lock()
_file_locks: dict[Path, threading.RLock] = {}


def _lock_for(path: Path) -> threading.RLock:
    with _registry_guard:
        return _file_locks.setdefault(path.resolve(), threading.RLock())


class JsonFile:

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = _lock_for(file_path)
        self._ensure_file()

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def load(self) -> list[dict]:
        with self._lock:
            try:
                return json.loads(self._file_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as exc:
                raise InternalError(f"Cannot read {self._file_path.name}: {exc}") from exc

    def persist(self, records: list[dict]) -> None:
        # Write-then-rename: readers never see a half-written file.
        tmp = self._file_path.with_suffix(self._file_path.suffix + ".tmp")
        with self._lock:
            try:
                tmp.write_text(json.dumps(records, indent=2) + "\n", encoding="utf-8")
                os.replace(tmp, self._file_path)
            except OSError as exc:
                raise InternalError(f"Cannot write {self._file_path.name}: {exc}") from exc

    def upsert(self, key: str, record: dict) -> None:
        """Replace the record whose ``key`` matches, otherwise append."""
        with self._lock:
            records = self.load()
            for i, raw in enumerate(records):
                if raw[key] == record[key]:
                    records[i] = record
                    break
            else:
                records.append(record)
            self.persist(records)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")
