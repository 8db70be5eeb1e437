# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/logging/log.py

from __future__ import annotations

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path

LOGGER_NAME = "cloudstep"

_FILE_FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
_CONSOLE_FORMAT = "%(levelname)-7s %(message)s"

# Libraries whose DEBUG chatter would drown the command trace.
_NOISY = ("urllib3", "requests", "pymysql")


def _open_private(path: Path) -> None:
    # Commands logged at DEBUG carry service passwords.
    fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_APPEND, 0o600)
    os.close(fd)


def init_logging(
    *,
    base_dir: Path | None = None,
    verbose: bool = False,
    run_id: str | None = None,
) -> tuple[logging.Logger, str, Path]:
    """
    Attach a per-run DEBUG file (mode 0600) and a console handler to the
    "cloudstep" logger, replacing whatever a previous call attached.

    Returns (logger, run_id, log_path); the run_id is shared with the
    observers so the log file and the JSONL event stream correlate.
    """
    run_id = run_id or str(uuid.uuid4())
    base_dir = base_dir or Path.home() / ".cloudstep" / "logs"
    base_dir.mkdir(parents=True, exist_ok=True)

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{LOGGER_NAME}-{stamp}-{run_id}.log"
    _open_private(log_path)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    logger.propagate = False

    trace = logging.FileHandler(log_path, encoding="utf-8")
    trace.setLevel(logging.DEBUG)
    trace.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.INFO)
    console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))

    logger.addHandler(trace)
    logger.addHandler(console)

    for name in _NOISY:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.debug("run %s started, trace in %s", run_id, log_path)
    return logger, run_id, log_path
