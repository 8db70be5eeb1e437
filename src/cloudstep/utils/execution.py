# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/utils/execution.py

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ExecutionContext:
    """
    Per-invocation switches shared by the engine and the command runner.

    dry_run: mutating commands are skipped and no step is recorded.
    run_id: correlates events, the run log and the JSONL stream.
    """

    dry_run: bool = False
    run_id: Optional[str] = None
