# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/ledger/file.py

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import List, Set

log = logging.getLogger("cloudstep")


def validate_step_id(step_id: str) -> None:
    # One identifier per line: anything with whitespace would corrupt the file.
    if not step_id or any(c.isspace() for c in step_id):
        raise ValueError(f"invalid step id {step_id!r}")


class FileLedger:
    """
    Line-oriented, append-only ledger file. Each line is one completed step id.

    Set semantics on top of a list-shaped file: an id already present is
    never written twice. A missing file is an empty ledger.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _lines(self) -> List[str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return [ln.strip() for ln in text.splitlines() if ln.strip()]

    def is_complete(self, step_id: str) -> bool:
        return step_id in self._lines()

    def completed(self) -> Set[str]:
        return set(self._lines())

    def order(self) -> List[str]:
        """Completed ids in the order they were recorded."""
        seen: List[str] = []
        for ln in self._lines():
            if ln not in seen:
                seen.append(ln)
        return seen

    def mark_complete(self, step_id: str) -> None:
        """
        Record step_id. Durable on return: the line is flushed and fsynced.
        """
        validate_step_id(step_id)
        if self.is_complete(step_id):
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)

        # A crash mid-append can leave a line without its newline.
        prefix = ""
        if self.path.exists() and self.path.stat().st_size > 0:
            with self.path.open("rb") as f:
                f.seek(-1, os.SEEK_END)
                if f.read(1) != b"\n":
                    prefix = "\n"

        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"{prefix}{step_id}\n")
            f.flush()
            os.fsync(f.fileno())

        log.debug("ledger: recorded %s in %s", step_id, self.path)

    def reset(self) -> None:
        """Operator-level reset. The engine never calls this."""
        self.path.unlink(missing_ok=True)
        log.info("ledger: %s removed", self.path)
