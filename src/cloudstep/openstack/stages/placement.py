# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/placement.py

from __future__ import annotations

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import database_url
from .base import Stage

PLACEMENT_CONF = "/etc/placement/placement.conf"


class PlacementStage(Stage):
    name = "placement"

    @step("placement_configured")
    def configure_placement(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Placement service"""
        self.service_database(cfg, "placement", ["placement"])
        self.register_service(cfg, "placement", "placement")
        self.host.apt.install("placement-api")

        self.configure_ini(PLACEMENT_CONF, {
            "placement_database": {"connection": database_url(cfg, "placement", "placement")},
            "api": {"auth_strategy": "keystone"},
            "keystone_authtoken": self.authtoken(cfg, "placement", uri_suffix="/v3", www_authenticate=False),
        })
        self.manage("placement", "placement-manage db sync")
        # placement-api runs under Apache
        self.host.systemd.restart("apache2")
        return StepResult.done()
