# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/dashboard.py

from __future__ import annotations

import re
import secrets
from pathlib import Path
from typing import Optional

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import KEYSTONE_PORT, MEMCACHED_PORT
from .base import Stage

LOCAL_SETTINGS = Path("/etc/openstack-dashboard/local_settings.py")
PACKAGED_SETTINGS = Path("/usr/share/openstack-dashboard/openstack_dashboard/local/local_settings.py")
DASHBOARD_LIB = "/usr/lib/python3/dist-packages/openstack_dashboard/"
STATIC_DIR = "/var/lib/openstack-dashboard"
LOG_DIR = Path("/var/log/horizon")

CONSOLE_LOGGERS = (
    "horizon", "openstack_dashboard", "novaclient", "cinderclient",
    "keystoneclient", "glanceclient", "neutronclient",
)

_SECRET_KEY = re.compile(r"^SECRET_KEY = '([0-9a-f]{16,})'$", re.MULTILINE)


def existing_secret_key(content: Optional[str]) -> Optional[str]:
    """The key a previous run wrote, so sessions survive a re-run."""
    if not content:
        return None
    m = _SECRET_KEY.search(content)
    return m.group(1) if m else None


class DashboardStage(Stage):
    name = "horizon"

    @step("horizon_configured")
    def configure_horizon(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Horizon (Dashboard)"""
        files = self.host.files
        runner = self.host.runner
        self.host.apt.install("openstack-dashboard")

        # The packaged copy carries a TEMPLATES[0] override that breaks on this release.
        if PACKAGED_SETTINGS.is_file() and not PACKAGED_SETTINGS.is_symlink():
            files.remove_lines(PACKAGED_SETTINGS, r"TEMPLATES\[0\]")

        files.backup_once(LOCAL_SETTINGS)
        key = existing_secret_key(files.read(LOCAL_SETTINGS)) or secrets.token_hex(32)
        self.host.render_to("local_settings.py.j2", LOCAL_SETTINGS, {
            "secret_key": key,
            "management_ip": cfg.management_address,
            "memcached_port": MEMCACHED_PORT,
            "keystone_port": KEYSTONE_PORT,
            "console_loggers": CONSOLE_LOGGERS,
        }, mode=0o644, owner="root", group="www-data")
        files.symlink(LOCAL_SETTINGS, PACKAGED_SETTINGS)

        runner.run(["chown", "-R", "root:www-data", DASHBOARD_LIB])
        runner.run(["chmod", "-R", "755", DASHBOARD_LIB])
        runner.run(["find", f"{DASHBOARD_LIB}local/", "-type", "f", "-exec", "chmod", "644", "{}", "+"])

        files.mkdir(STATIC_DIR, owner="www-data", group="www-data")
        files.mkdir(LOG_DIR, owner="www-data", group="www-data")
        files.touch(LOG_DIR / "horizon.log")
        files.chown(LOG_DIR / "horizon.log", "www-data", "www-data")

        self.host.apt.configure_pending()
        self.host.systemd.restart("apache2")
        return StepResult.done()
