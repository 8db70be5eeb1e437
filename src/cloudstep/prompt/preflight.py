# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/prompt/preflight.py

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

import typer

log = logging.getLogger("cloudstep")

GIB = 1024 ** 3

MIN_MEMORY_GIB = 8
MIN_DISK_GIB = 50
EXPECTED_RELEASE = "Ubuntu 24.04"


class PreconditionDeclined(RuntimeError):
    """The operator chose to abort after a precondition warning."""


@dataclass(frozen=True)
class PreconditionWarning:
    code: str
    message: str


def _mem_total_bytes(meminfo: Path) -> Optional[int]:
    try:
        for line in meminfo.read_text().splitlines():
            if line.startswith("MemTotal:"):
                return int(line.split()[1]) * 1024
    except (OSError, ValueError, IndexError):
        return None
    return None


def run_preflight(
    *,
    os_release: Path = Path("/etc/os-release"),
    meminfo: Path = Path("/proc/meminfo"),
    root: Path = Path("/"),
) -> List[PreconditionWarning]:
    warnings: List[PreconditionWarning] = []

    try:
        release = os_release.read_text()
    except OSError:
        release = ""
    if EXPECTED_RELEASE not in release:
        warnings.append(PreconditionWarning(
            "os-release", f"This installer is designed for {EXPECTED_RELEASE} LTS",
        ))

    mem = _mem_total_bytes(meminfo)
    if mem is not None and mem < MIN_MEMORY_GIB * GIB:
        warnings.append(PreconditionWarning(
            "memory", f"System has {mem / GIB:.1f}GB RAM, less than {MIN_MEMORY_GIB}GB",
        ))

    try:
        free = shutil.disk_usage(root).free
    except OSError:
        free = None
    if free is not None and free < MIN_DISK_GIB * GIB:
        warnings.append(PreconditionWarning(
            "disk", f"Only {free / GIB:.0f}GB free on {root}, less than {MIN_DISK_GIB}GB",
        ))

    return warnings


def confirm_warnings(
    warnings: List[PreconditionWarning],
    *,
    assume_yes: bool = False,
    confirm: Callable[..., bool] = typer.confirm,
) -> None:
    """Show each warning and let the operator continue or abort."""
    for w in warnings:
        log.warning("[preflight] %s", w.message)
        if assume_yes:
            continue
        if not confirm(f"WARNING: {w.message}. Continue anyway?", default=False):
            raise PreconditionDeclined(w.message)


def is_root() -> bool:
    return os.geteuid() == 0
