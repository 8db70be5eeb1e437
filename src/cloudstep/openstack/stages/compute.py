# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/compute.py

from __future__ import annotations

import logging

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import CATALOG, database_url, transport_url
from .base import Stage

log = logging.getLogger("cloudstep")

NOVA_CONF = "/etc/nova/nova.conf"
NOVA_COMPUTE_CONF = "/etc/nova/nova-compute.conf"
NOVA_DATABASES = ("nova_api", "nova", "nova_cell0")
NOVA_SERVICES = ("nova-api", "nova-scheduler", "nova-conductor", "nova-novncproxy", "nova-compute")


class ComputeStage(Stage):
    name = "nova"

    def _cells(self) -> str:
        cp = self.host.runner.probe(["su", "-s", "/bin/sh", "-c", "nova-manage cell_v2 list_cells", "nova"])
        return cp.stdout if cp.returncode == 0 else ""

    @step("nova_configured")
    def configure_nova(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Nova (Compute service)"""
        self.service_database(cfg, "nova", NOVA_DATABASES)
        self.register_service(cfg, "nova", "nova")
        self.host.apt.install(*NOVA_SERVICES)

        service_user = self.authtoken(cfg, "nova", uri_suffix="/", www_authenticate=False)
        del service_user["memcached_servers"]
        service_user = {"send_service_user_token": "true", "auth_strategy": "keystone", **service_user}

        self.configure_ini(NOVA_CONF, {
            "api_database": {"connection": database_url(cfg, "nova", "nova_api")},
            "database": {"connection": database_url(cfg, "nova", "nova")},
            "DEFAULT": {
                "transport_url": transport_url(cfg),
                "my_ip": cfg.management_address,
            },
            "api": {"auth_strategy": "keystone"},
            "keystone_authtoken": self.authtoken(cfg, "nova", uri_suffix="/"),
            "service_user": service_user,
            "vnc": {
                "enabled": "true",
                "server_listen": "$my_ip",
                "server_proxyclient_address": "$my_ip",
            },
            "glance": {"api_servers": CATALOG["glance"].url(cfg.controller_host)},
            "oslo_concurrency": {"lock_path": "/var/lib/nova/tmp"},
            "placement": self.service_client_section(cfg, "placement", "/v3"),
        })
        # Nested virtualisation is not assumed on an all-in-one host.
        self.configure_ini(NOVA_COMPUTE_CONF, {"libvirt": {"virt_type": "qemu"}})

        self.manage("nova", "nova-manage api_db sync")
        cells = self._cells()
        if "cell0" not in cells:
            self.manage("nova", "nova-manage cell_v2 map_cell0")
        if "cell1" not in cells:
            self.manage("nova", "nova-manage cell_v2 create_cell --name=cell1 --verbose")
        self.manage("nova", "nova-manage db sync")
        log.debug("[nova] cells:\n%s", self._cells())

        self.host.systemd.restart_and_enable(*NOVA_SERVICES)
        return StepResult.done()
