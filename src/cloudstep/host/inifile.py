# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/inifile.py

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from ..execution.runner import CommandRunner


class IniFile:
    """
    Edits one INI-style file in place through crudini, which keeps comments
    and ordering intact. A key is only written when its value differs.
    """

    def __init__(self, runner: CommandRunner, path: str | Path):
        self.runner = runner
        self.path = Path(path)

    def get(self, section: str, key: str) -> str | None:
        cp = self.runner.probe(["crudini", "--get", str(self.path), section, key])
        if cp.returncode != 0:
            return None
        return cp.stdout.rstrip("\n")

    def set(self, section: str, key: str, value: object) -> bool:
        value = str(value)
        if self.get(section, key) == value:
            return False
        self.runner.run(["crudini", "--set", str(self.path), section, key, value])
        return True

    def set_section(self, section: str, values: Mapping[str, object]) -> int:
        """Returns the number of keys actually changed."""
        return sum(1 for k, v in values.items() if self.set(section, k, v))

    def apply(self, sections: Mapping[str, Mapping[str, object]]) -> int:
        return sum(self.set_section(s, kv) for s, kv in sections.items())
