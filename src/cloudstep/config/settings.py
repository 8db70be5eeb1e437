# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/config/settings.py

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

DEFAULT_CONFIG_FILE = Path("/root/.openstack_config")
DEFAULT_STATE_FILE = Path("/root/.openstack_install_state")
DEFAULT_LOG_DIR = Path.home() / ".cloudstep" / "logs"


class EngineSettings(BaseModel):
    """Where the run keeps its state on this host."""

    config_file: Path = DEFAULT_CONFIG_FILE
    state_file: Path = DEFAULT_STATE_FILE
    log_dir: Path = DEFAULT_LOG_DIR
    rc_dir: Path = Path("/root")
    dry_run: bool = False
    debug: bool = False


def load_settings(
    *,
    config_file: Optional[Path] = None,
    state_file: Optional[Path] = None,
    log_dir: Optional[Path] = None,
    dry_run: bool = False,
    debug: bool = False,
) -> EngineSettings:
    """
    Resolve settings in this order:
      1. explicit arguments (CLI options)
      2. CLOUDSTEP_CONFIG_FILE / CLOUDSTEP_STATE_FILE / CLOUDSTEP_LOG_DIR
      3. built-in defaults
    """
    def _pick(explicit: Optional[Path], env: str, default: Path) -> Path:
        if explicit is not None:
            return Path(explicit)
        value = os.environ.get(env)
        return Path(value) if value else default

    return EngineSettings(
        config_file=_pick(config_file, "CLOUDSTEP_CONFIG_FILE", DEFAULT_CONFIG_FILE),
        state_file=_pick(state_file, "CLOUDSTEP_STATE_FILE", DEFAULT_STATE_FILE),
        log_dir=_pick(log_dir, "CLOUDSTEP_LOG_DIR", DEFAULT_LOG_DIR),
        dry_run=dry_run,
        debug=debug,
    )
