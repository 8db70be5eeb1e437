# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/endpoints.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from ..config.models import RunConfiguration
from ..host.openstack_cli import Credentials

RELEASE_POCKET = "dalmatian"
DOCS_URL = "https://docs.openstack.org/2024.2/"


@dataclass(frozen=True)
class ServiceEndpoint:
    name: str            # catalog service name
    service_type: str
    description: str
    port: int
    path: str = ""

    def url(self, host: str) -> str:
        return f"http://{host}:{self.port}{self.path}"


CATALOG: Dict[str, ServiceEndpoint] = {
    "glance": ServiceEndpoint("glance", "image", "OpenStack Image", 9292),
    "placement": ServiceEndpoint("placement", "placement", "Placement API", 8778),
    "nova": ServiceEndpoint("nova", "compute", "OpenStack Compute", 8774, "/v2.1"),
    "neutron": ServiceEndpoint("neutron", "network", "OpenStack Networking", 9696),
    "cinderv3": ServiceEndpoint("cinderv3", "volumev3", "OpenStack Block Storage", 8776, "/v3/%(project_id)s"),
}

KEYSTONE_PORT = 5000
MEMCACHED_PORT = 11211
RABBIT_PORT = 5672


def keystone_url(cfg: RunConfiguration, suffix: str = "") -> str:
    return f"http://{cfg.controller_host}:{KEYSTONE_PORT}{suffix}"


def memcached_servers(cfg: RunConfiguration) -> str:
    return f"{cfg.controller_host}:{MEMCACHED_PORT}"


def transport_url(cfg: RunConfiguration, with_port: bool = True) -> str:
    port = f":{RABBIT_PORT}/" if with_port else ""
    return f"rabbit://openstack:{cfg.secrets.rabbit_password}@{cfg.controller_host}{port}"


def database_url(cfg: RunConfiguration, user: str, database: str) -> str:
    return (
        f"mysql+pymysql://{user}:{cfg.secrets.service_password}"
        f"@{cfg.controller_host}/{database}"
    )


def dashboard_url(cfg: RunConfiguration) -> str:
    return f"http://{cfg.management_address}/horizon"


def admin_credentials(cfg: RunConfiguration) -> Credentials:
    return Credentials(
        username="admin",
        password=cfg.secrets.admin_password,
        project="admin",
        auth_url=keystone_url(cfg, "/v3"),
    )


def demo_credentials(cfg: RunConfiguration) -> Credentials:
    return Credentials(
        username="demo",
        password=cfg.secrets.demo_password,
        project="myproject",
        auth_url=keystone_url(cfg, "/v3"),
    )
