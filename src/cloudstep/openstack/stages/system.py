# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/system.py

from __future__ import annotations

import logging
import re

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from .base import Stage

log = logging.getLogger("cloudstep")

UTILITIES = (
    "software-properties-common", "curl", "wget", "git", "vim", "htop", "net-tools", "lsof",
    "python3-pip", "python3-dev", "build-essential",
    "crudini", "jq",
)

HOSTS_FILE = "/etc/hosts"
CHRONY_CONF = "/etc/chrony/chrony.conf"
NTP_SERVERS = ("time.google.com", "time2.google.com", "time3.google.com", "time4.google.com")
NTP_ALLOW = ("10.0.0.0/8", "192.168.0.0/16", "172.16.0.0/12")

# Lines owned by the rendered block; stripped before it is appended again.
_CHRONY_OWNED = re.compile(r"^(pool|server|allow)\s|^# (Google Public NTP|Allow NTP client access)")


class SystemStage(Stage):
    name = "system"

    @step("system_updated")
    def update_system(self, cfg: RunConfiguration) -> StepResult:
        """Update system packages"""
        apt = self.host.apt
        apt.configure_pending()
        apt.update()
        apt.upgrade()
        apt.upgrade(dist=True)
        return StepResult.done()

    @step("utilities_installed")
    def install_utilities(self, cfg: RunConfiguration) -> StepResult:
        """Install basic utilities"""
        if not self.host.apt.install(*UTILITIES):
            return StepResult.unchanged("utilities already present")
        return StepResult.done()

    @step("networking_configured")
    def configure_networking(self, cfg: RunConfiguration) -> StepResult:
        """Set hostname and /etc/hosts"""
        runner = self.host.runner
        if not runner.succeeds(["ip", "link", "show", cfg.provider_interface]):
            return StepResult.failed(f"provider interface {cfg.provider_interface} not present")

        current = runner.probe(["hostnamectl", "--static"]).stdout.strip()
        if current != cfg.controller_host:
            runner.run(["hostnamectl", "set-hostname", cfg.controller_host])

        self.host.files.backup_once(HOSTS_FILE)
        self.host.render_to("hosts.j2", HOSTS_FILE, {
            "management_ip": cfg.management_address,
            "controller_host": cfg.controller_host,
        })

        # The interfaces themselves are left exactly as the operator set them up.
        log.info("[system] management address %s, provider interface %s (no address expected)",
                 cfg.management_address, cfg.provider_interface)
        return StepResult.done()

    @step("ntp_configured")
    def configure_ntp(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure NTP (chrony)"""
        files = self.host.files
        self.host.apt.install("chrony")
        files.backup_once(CHRONY_CONF)

        current = files.read(CHRONY_CONF) or ""
        kept = [ln for ln in current.splitlines() if not _CHRONY_OWNED.match(ln)]
        while kept and not kept[-1].strip():
            kept.pop()
        block = self.host.templates.render("chrony-servers.j2", {
            "ntp_servers": NTP_SERVERS,
            "allow_networks": NTP_ALLOW,
        })
        body = "\n".join(kept)
        files.write(CHRONY_CONF, f"{body}\n{block}" if body else block.lstrip("\n"))

        self.host.systemd.restart_and_enable("chrony")
        sources = self.host.runner.probe(["chronyc", "sources"])
        log.debug("[system] chronyc sources:\n%s", sources.stdout)
        return StepResult.done()
