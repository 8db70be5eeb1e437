# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/resources.py

from __future__ import annotations

import logging
import tempfile
from pathlib import Path

import requests

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from .base import Stage

log = logging.getLogger("cloudstep")

CIRROS_VERSION = "0.6.2"
CIRROS_URL = (
    f"http://download.cirros-cloud.net/{CIRROS_VERSION}/"
    f"cirros-{CIRROS_VERSION}-x86_64-disk.img"
)
TEST_IMAGE = "cirros"

PROVIDER_NETWORK = "provider"
PROVIDER_SUBNET = "provider-subnet"
PROVIDER_RANGE = "203.0.113.0/24"
PROVIDER_POOL = ("203.0.113.101", "203.0.113.250")
PROVIDER_GATEWAY = "203.0.113.1"
PRIVATE_NETWORK = "private"
PRIVATE_SUBNET = "private-subnet"
PRIVATE_RANGE = "172.16.1.0/24"
PRIVATE_GATEWAY = "172.16.1.1"
DNS_SERVER = "8.8.8.8"
ROUTER = "router"

TEST_FLAVOR = "m1.nano"


def download(url: str, dest: Path, *, timeout: int = 60, chunk_size: int = 1 << 20) -> Path:
    """Stream url to dest, raising requests.HTTPError on a bad status."""
    log.info("[resources] downloading %s", url)
    with requests.get(url, stream=True, timeout=timeout) as r:
        r.raise_for_status()
        with open(dest, "wb") as f:
            for chunk in r.iter_content(chunk_size=chunk_size):
                f.write(chunk)
    return dest


class ResourcesStage(Stage):
    """Test image, networks, flavor and security group rules for a first instance."""

    name = "resources"

    def __init__(self, host, *, downloader=download, **kw):
        super().__init__(host, **kw)
        self.downloader = downloader

    @step("test_image_downloaded")
    def download_test_image(self, cfg: RunConfiguration) -> StepResult:
        """Download CirrOS test image"""
        cli = self.admin(cfg)
        if cli.exists("image", TEST_IMAGE):
            return StepResult.unchanged(f"image {TEST_IMAGE} already registered")
        if self.host.dry_run:
            log.info("[resources] dry-run: would download %s", CIRROS_URL)
            return StepResult.done()

        with tempfile.TemporaryDirectory(prefix="cloudstep-") as tmp:
            path = self.downloader(CIRROS_URL, Path(tmp) / CIRROS_URL.rsplit("/", 1)[-1])
            cli.ensure_image(TEST_IMAGE, str(path))
        return StepResult.done()

    @step("test_networks_created")
    def create_test_networks(self, cfg: RunConfiguration) -> StepResult:
        """Create provider and private networks with a router"""
        admin = self.admin(cfg)
        admin.ensure_network(
            PROVIDER_NETWORK,
            "--share", "--external",
            "--provider-physical-network", PROVIDER_NETWORK,
            "--provider-network-type", "flat",
        )
        admin.ensure_subnet(
            PROVIDER_SUBNET, PROVIDER_NETWORK,
            "--allocation-pool", f"start={PROVIDER_POOL[0]},end={PROVIDER_POOL[1]}",
            "--dns-nameserver", DNS_SERVER,
            "--gateway", PROVIDER_GATEWAY,
            "--subnet-range", PROVIDER_RANGE,
        )

        # Tenant side belongs to the demo project.
        demo = self.demo(cfg)
        demo.ensure_network(PRIVATE_NETWORK)
        demo.ensure_subnet(
            PRIVATE_SUBNET, PRIVATE_NETWORK,
            "--dns-nameserver", DNS_SERVER,
            "--gateway", PRIVATE_GATEWAY,
            "--subnet-range", PRIVATE_RANGE,
        )
        demo.ensure_router(ROUTER)
        demo.ensure_router_subnet(ROUTER, PRIVATE_SUBNET)
        demo.ensure_router_gateway(ROUTER, PROVIDER_NETWORK)
        return StepResult.done()

    @step("test_flavor_created")
    def create_test_flavor(self, cfg: RunConfiguration) -> StepResult:
        """Create m1.nano flavor"""
        created = self.admin(cfg).ensure_flavor(TEST_FLAVOR, flavor_id="0", vcpus=1, ram_mb=64, disk_gb=1)
        return StepResult.done() if created else StepResult.unchanged(f"flavor {TEST_FLAVOR} exists")

    @step("security_groups_configured")
    def configure_security_groups(self, cfg: RunConfiguration) -> StepResult:
        """Allow ICMP and SSH in the default security group"""
        cli = self.admin(cfg)
        group = cli.security_group_id("admin") or "default"
        cli.ensure_security_group_rule(group, "icmp")
        cli.ensure_security_group_rule(group, "tcp", 22)
        return StepResult.done()
