# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/image.py

from __future__ import annotations

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import database_url
from .base import Stage

GLANCE_API_CONF = "/etc/glance/glance-api.conf"


class ImageStage(Stage):
    name = "glance"

    @step("glance_configured")
    def configure_glance(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Glance (Image service)"""
        self.service_database(cfg, "glance", ["glance"])
        self.register_service(cfg, "glance", "glance")
        self.host.apt.install("glance")

        self.configure_ini(GLANCE_API_CONF, {
            "database": {"connection": database_url(cfg, "glance", "glance")},
            "keystone_authtoken": self.authtoken(cfg, "glance"),
            "paste_deploy": {"flavor": "keystone"},
            "glance_store": {
                "stores": "file,http",
                "default_store": "file",
                "filesystem_store_datadir": "/var/lib/glance/images/",
            },
        })
        self.manage("glance", "glance-manage db_sync")
        self.host.systemd.restart_and_enable("glance-api")
        return StepResult.done()
