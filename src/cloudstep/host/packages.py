# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/packages.py

from __future__ import annotations

import logging
from typing import List

from ..execution.runner import CommandRunner

log = logging.getLogger("cloudstep")

_APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}


class Apt:
    """apt/dpkg wrapper. install() only touches packages that are missing."""

    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def is_installed(self, package: str) -> bool:
        cp = self.runner.probe(["dpkg-query", "-W", "-f=${Status}", package])
        return cp.returncode == 0 and "install ok installed" in cp.stdout

    def missing(self, *packages: str) -> List[str]:
        return [p for p in packages if not self.is_installed(p)]

    def install(self, *packages: str) -> bool:
        todo = self.missing(*packages)
        if not todo:
            log.debug("[apt] already installed: %s", " ".join(packages))
            return False
        log.info("[apt] installing %s", " ".join(todo))
        self.runner.run(["apt-get", "install", "-y", *todo], env=_APT_ENV)
        return True

    def update(self) -> None:
        self.runner.run(["apt-get", "update"], env=_APT_ENV)

    def upgrade(self, dist: bool = False) -> None:
        verb = "dist-upgrade" if dist else "upgrade"
        self.runner.run(
            ["apt-get", verb, "-y", "-o", "Dpkg::Options::=--force-confold"],
            env=_APT_ENV,
        )

    def has_cloud_archive(self, pocket: str) -> bool:
        # add-apt-repository writes the pocket name into sources.list.d
        cp = self.runner.probe(
            ["grep", "-rqs", f"cloud-archive.*{pocket}", "/etc/apt/sources.list.d"]
        )
        return cp.returncode == 0

    def add_cloud_archive(self, pocket: str) -> bool:
        if self.has_cloud_archive(pocket):
            return False
        self.runner.run(["add-apt-repository", "-y", f"cloud-archive:{pocket}"], env=_APT_ENV)
        self.update()
        return True

    def configure_pending(self) -> None:
        """Finish any half-configured packages left by an interrupted install."""
        audit = self.runner.probe(["dpkg", "--audit"])
        if audit.stdout.strip():
            self.runner.run(["dpkg", "--configure", "-a"], env=_APT_ENV)
