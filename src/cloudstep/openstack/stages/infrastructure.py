# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/infrastructure.py

from __future__ import annotations

import logging
import re

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import RELEASE_POCKET
from .base import Stage

log = logging.getLogger("cloudstep")

MARIADB_CNF = "/etc/mysql/mariadb.conf.d/99-openstack.cnf"
MEMCACHED_CONF = "/etc/memcached.conf"
ETCD_DEFAULTS = "/etc/default/etcd"

RABBIT_USER = "openstack"
RABBIT_PERMISSIONS = (".*", ".*", ".*")


class InfrastructureStage(Stage):
    """Database, message queue, cache and key-value store the services share."""

    name = "infrastructure"

    @step("mariadb_configured")
    def configure_mariadb(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure MariaDB"""
        self.host.apt.install("mariadb-server", "python3-pymysql")
        changed = self.host.render_to(
            "mariadb-openstack.cnf.j2", MARIADB_CNF, {"management_ip": cfg.management_address}
        )
        if changed or not self.host.systemd.is_active("mariadb"):
            self.host.systemd.restart("mariadb")

        db = self.db(cfg)
        db.wait_until_ready()
        if db.ensure_root_password():
            log.info("[mariadb] root password set")
        db.secure()
        return StepResult.done()

    @step("rabbitmq_configured")
    def configure_rabbitmq(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure RabbitMQ"""
        runner = self.host.runner
        self.host.apt.install("rabbitmq-server")
        self.host.systemd.enable("rabbitmq-server")
        self.host.systemd.start("rabbitmq-server")

        users = runner.probe(["rabbitmqctl", "-q", "list_users"]).stdout
        if RABBIT_USER not in {ln.split()[0] for ln in users.splitlines() if ln.strip()}:
            runner.run(["rabbitmqctl", "add_user", RABBIT_USER, cfg.secrets.rabbit_password])

        perms = runner.probe(["rabbitmqctl", "-q", "list_user_permissions", RABBIT_USER]).stdout
        if not any(ln.split()[1:] == list(RABBIT_PERMISSIONS) for ln in perms.splitlines() if ln.strip()):
            runner.run(["rabbitmqctl", "set_permissions", RABBIT_USER, *RABBIT_PERMISSIONS])
        return StepResult.done()

    @step("memcached_configured")
    def configure_memcached(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Memcached"""
        files = self.host.files
        self.host.apt.install("memcached", "python3-memcache")
        files.backup_once(MEMCACHED_CONF)

        current = files.read(MEMCACHED_CONF) or ""
        listen = f"-l 127.0.0.1,{cfg.management_address}"
        updated = re.sub(r"(?m)^-l.*$", listen, current)
        if listen not in updated.splitlines():
            head = updated.rstrip("\n") + "\n" if updated.strip() else ""
            updated = head + listen + "\n"
        changed = files.write(MEMCACHED_CONF, updated)

        if changed or not self.host.systemd.is_active("memcached"):
            self.host.systemd.restart("memcached")
        self.host.systemd.enable("memcached")
        return StepResult.done()

    @step("etcd_configured")
    def configure_etcd(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Etcd"""
        self.host.apt.install("etcd-server", "etcd-client")
        changed = self.host.render_to("etcd.j2", ETCD_DEFAULTS, {
            "management_ip": cfg.management_address,
            "controller_host": cfg.controller_host,
        })
        self.host.systemd.enable("etcd")
        if changed or not self.host.systemd.is_active("etcd"):
            self.host.systemd.restart("etcd")
        return StepResult.done()

    @step("openstack_repo_enabled")
    def enable_openstack_repo(self, cfg: RunConfiguration) -> StepResult:
        """Enable the Ubuntu Cloud Archive for OpenStack"""
        if not self.host.apt.add_cloud_archive(RELEASE_POCKET):
            return StepResult.unchanged(f"cloud-archive:{RELEASE_POCKET} already enabled")
        return StepResult.done()

    @step("openstack_client_installed")
    def install_openstack_client(self, cfg: RunConfiguration) -> StepResult:
        """Install OpenStack client"""
        self.host.apt.install("python3-openstackclient")
        return StepResult.done()
