# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/summary.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List

from ..config.models import RunConfiguration
from ..host.openstack_cli import OpenStackClient
from .endpoints import DOCS_URL, dashboard_url
from .stages.identity import rc_files
from .stages.network import PHYSICAL_NETWORK, PROVIDER_BRIDGE
from .stages.resources import PRIVATE_RANGE, PROVIDER_RANGE, TEST_FLAVOR

log = logging.getLogger("cloudstep")

VERIFY_CHECKS = (
    ("Service Status", ("service", "list")),
    ("Compute Service Status", ("compute", "service", "list")),
    ("Network Agent Status", ("network", "agent", "list")),
    ("Volume Service Status", ("volume", "service", "list")),
    ("Images", ("image", "list")),
    ("Networks", ("network", "list")),
    ("Flavors", ("flavor", "list")),
    ("Security Groups", ("security", "group", "list")),
)


@dataclass(frozen=True)
class VerificationSection:
    title: str
    ok: bool
    output: str


def verify_installation(client: OpenStackClient) -> List[VerificationSection]:
    """
    Read-only listing of what the run produced. Nothing here is recorded in
    the ledger; a failing listing is reported, never raised.
    """
    sections = []
    for title, args in VERIFY_CHECKS:
        ok, output = client.listing(*args)
        if not ok:
            log.warning("verification '%s' failed: %s", title, output or "no output")
        sections.append(VerificationSection(title=title, ok=ok, output=output))
    return sections


def render_verification(sections: List[VerificationSection]) -> str:
    lines = []
    for s in sections:
        lines += ["", f"=== {s.title} ==="]
        lines.append(s.output.rstrip() if s.ok else f"[WARNING] unavailable: {s.output}")
    return "\n".join(lines)


def final_info(cfg: RunConfiguration, rc_dir: Path) -> str:
    rc = rc_files(rc_dir)
    lines = [
        "",
        "==========================================",
        "=== OpenStack Installation Complete! ===",
        "==========================================",
        "",
        "Dashboard Access:",
        f"  URL: {dashboard_url(cfg)}",
        "  Domain: Default",
        "  Username: admin",
        f"  Password: {cfg.secrets.admin_password}",
        "",
        "Demo User:",
        "  Username: demo",
        f"  Password: {cfg.secrets.demo_password}",
        "",
        "CLI Access:",
        f"  source {rc['admin']}   # For admin access",
        f"  source {rc['demo']}    # For demo user access",
        "",
        "Network Configuration:",
        "  Provider Network Type: flat",
        f"  Physical Network Name: {PHYSICAL_NETWORK}",
        f"  Provider Bridge: {PROVIDER_BRIDGE}",
        f"  Provider Interface: {cfg.provider_interface}",
        "",
        "Test Resources Created:",
        "  - CirrOS image",
        f"  - {TEST_FLAVOR} flavor",
        f"  - Provider network ({PROVIDER_RANGE})",
        f"  - Private network ({PRIVATE_RANGE})",
        "  - Security group rules (ICMP, SSH)",
        "",
        "Troubleshooting:",
        "  - Logs: /var/log/apache2/error.log",
        "  - Service status: systemctl status <service-name>",
        "  - OpenStack logs: /var/log/<service-name>/",
        "",
        "Documentation:",
        f"  {DOCS_URL}",
        "",
    ]
    return "\n".join(lines)
