# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/services.py

from __future__ import annotations

from ..execution.runner import CommandRunner


class Systemd:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def is_enabled(self, unit: str) -> bool:
        return self.runner.succeeds(["systemctl", "is-enabled", "--quiet", unit])

    def is_active(self, unit: str) -> bool:
        return self.runner.succeeds(["systemctl", "is-active", "--quiet", unit])

    def unit_exists(self, unit: str) -> bool:
        name = unit if "." in unit else f"{unit}.service"
        cp = self.runner.probe(["systemctl", "list-unit-files", "--no-legend", name])
        return name in cp.stdout

    def enable(self, *units: str) -> None:
        todo = [u for u in units if not self.is_enabled(u)]
        if todo:
            self.runner.run(["systemctl", "enable", *todo])

    def start(self, *units: str) -> None:
        todo = [u for u in units if not self.is_active(u)]
        if todo:
            self.runner.run(["systemctl", "start", *todo])

    def restart(self, *units: str) -> None:
        # Restarting is how new configuration is picked up, so always do it.
        self.runner.run(["systemctl", "restart", *units])

    def daemon_reload(self) -> None:
        self.runner.run(["systemctl", "daemon-reload"])

    def restart_and_enable(self, *units: str) -> None:
        self.restart(*units)
        self.enable(*units)
