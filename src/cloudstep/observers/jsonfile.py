# src/cloudstep/observers/jsonfile.py
from __future__ import annotations

import json
import os
from pathlib import Path

from .events import BaseEvent


class JsonFileObserver:
    """
    One JSON object per line, appended as events arrive, so a crashed run
    still leaves every event up to the crash on disk.

    The file is owner-only: failure events quote the command that failed.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        os.close(os.open(self.path, os.O_CREAT | os.O_WRONLY | os.O_APPEND, 0o600))
        os.chmod(self.path, 0o600)

    def notify(self, event: BaseEvent) -> None:
        record = {"event": type(event).__name__, **event.dict()}
        line = json.dumps(record, default=str, sort_keys=False)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()
