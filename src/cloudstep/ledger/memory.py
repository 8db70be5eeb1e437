# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Iterable, List, Optional, Set

from .file import validate_step_id


class MemoryLedger:
    """In-process ledger. Nothing survives the process; used by tests and dry runs."""

    def __init__(self, initial: Optional[Iterable[str]] = None):
        self._ids: List[str] = []
        for step_id in initial or ():
            self.mark_complete(step_id)

    def is_complete(self, step_id: str) -> bool:
        return step_id in self._ids

    def mark_complete(self, step_id: str) -> None:
        validate_step_id(step_id)
        if step_id not in self._ids:
            self._ids.append(step_id)

    def completed(self) -> Set[str]:
        return set(self._ids)

    def order(self) -> List[str]:
        return list(self._ids)

    def reset(self) -> None:
        self._ids.clear()
