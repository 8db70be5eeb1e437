# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/config/store.py

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from .models import RunConfiguration

log = logging.getLogger("cloudstep")

_FILE_MODE = 0o600


class ConfigStoreError(RuntimeError):
    """Raised when the run configuration cannot be persisted."""


class SecretStore:
    """
    YAML document holding the RunConfiguration, secrets included, in clear
    text. Access is limited to the owner (0600); there is no encryption at rest.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Optional[RunConfiguration]:
        """
        Return the persisted configuration, or None when there is nothing
        usable on disk. A missing, unreadable or malformed document all mean
        "first run"; this never raises.
        """
        if not self.path.is_file():
            return None

        try:
            data = yaml.safe_load(self.path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            log.warning("Ignoring unreadable configuration %s: %s", self.path, exc)
            return None

        if not isinstance(data, dict):
            log.warning("Ignoring configuration %s: expected a mapping", self.path)
            return None

        try:
            return RunConfiguration.model_validate(data)
        except ValidationError as exc:
            log.warning("Ignoring invalid configuration %s: %s", self.path, exc)
            return None

    def save(self, cfg: RunConfiguration) -> None:
        """
        Write atomically: a temp file in the same directory (created 0600 by
        mkstemp) is fsynced and then renamed over the target.
        """
        text = yaml.safe_dump(cfg.model_dump(mode="json"), sort_keys=False)

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(self.path.parent)
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(text)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp, self.path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            os.chmod(self.path, _FILE_MODE)
        except OSError as exc:
            raise ConfigStoreError(
                f"could not persist configuration to {self.path}: {exc}"
            ) from exc

        log.debug("Configuration saved to %s", self.path)

    def discard(self) -> None:
        self.path.unlink(missing_ok=True)
        log.debug("Configuration %s discarded", self.path)
