# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/observers/events.py

from __future__ import annotations

import socket
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single invocation
    host: str         # hostname the run is provisioning

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def new_ctx(run_id: Optional[str] = None, host: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": _now(),
        "run_id": run_id or str(uuid.uuid4()),
        "host": host or socket.gethostname(),
    }


def stamp(ctx: Dict[str, Any]) -> Dict[str, Any]:
    """Same run context with a fresh timestamp."""
    return {**ctx, "ts": _now()}


# ---------------------------------------------------------------------
# Run lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class RunStarted(BaseEvent):
    steps: List[str]
    pending: List[str]
    dry_run: bool = False

@dataclass(frozen=True)
class RunSummary(BaseEvent):
    status: str       # "OK" | "FAILED"
    executed: int
    skipped: int
    failed_step: Optional[str] = None
    error: Optional[str] = None


# ---------------------------------------------------------------------
# Step lifecycle
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class StepSkipped(BaseEvent):
    step_id: str
    position: int

@dataclass(frozen=True)
class StepStarted(BaseEvent):
    step_id: str
    position: int
    description: str

@dataclass(frozen=True)
class StepSucceeded(BaseEvent):
    step_id: str
    position: int
    duration_ms: int
    message: Optional[str] = None
    recorded: bool = True

@dataclass(frozen=True)
class StepFailed(BaseEvent):
    step_id: str
    position: int
    duration_ms: int
    error: str


# ---------------------------------------------------------------------
# Configuration acquisition
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ConfigLoaded(BaseEvent):
    path: str

@dataclass(frozen=True)
class ConfigCollected(BaseEvent):
    path: str

@dataclass(frozen=True)
class ConfigAbandoned(BaseEvent):
    path: str
