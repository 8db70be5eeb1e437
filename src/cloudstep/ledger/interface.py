# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import Protocol, Set


class Ledger(Protocol):
    """Durable record of the steps that finished successfully."""

    def is_complete(self, step_id: str) -> bool: ...

    def mark_complete(self, step_id: str) -> None: ...

    def completed(self) -> Set[str]: ...
