# src/memgrid/storage/jsonl.py
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Iterator, Mapping

import structlog

log = structlog.get_logger()


class JsonlFile:
    """
    Append-only JSONL file.

    - One record per line (JSON dict).
    - fsync on demand for crash safety.
    - Preserves append order on read.
    - Unreadable lines (torn writes) are skipped with a warning.
    """

    def __init__(self, *, path: Path, fsync: bool = True) -> None:
        self._path = path
        self._fsync = fsync
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def append(self, record: Mapping[str, Any]) -> None:
        """
        Append a record as a single JSON line.

        UUID/datetime values are written via default=str.
        """
        line = json.dumps(dict(record), sort_keys=True, separators=(",", ":"), default=str)
        if self._has_torn_tail():
            # start on a fresh line so the torn record stays isolated
            line = "\n" + line
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
            fh.flush()
            if self._fsync:
                os.fsync(fh.fileno())

    def iter_records(self) -> Iterator[dict[str, Any]]:
        if not self._path.exists():
            return
        with self._path.open("r", encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                s = line.strip()
                if not s:
                    continue
                try:
                    record = json.loads(s)
                except json.JSONDecodeError:
                    record = None
                if not isinstance(record, dict):
                    log.warning("jsonl.bad_line_skipped", path=str(self._path), line=lineno)
                    continue
                yield record

    def _has_torn_tail(self) -> bool:
        if not self._path.exists() or self._path.stat().st_size == 0:
            return False
        with self._path.open("rb") as fh:
            fh.seek(-1, os.SEEK_END)
            return fh.read(1) != b"\n"
