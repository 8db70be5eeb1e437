# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/identity.py

from __future__ import annotations

import logging
from pathlib import Path

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import database_url, keystone_url
from .base import Stage

log = logging.getLogger("cloudstep")

KEYSTONE_CONF = "/etc/keystone/keystone.conf"
APACHE_CONF = "/etc/apache2/apache2.conf"
FERNET_KEYS = Path("/etc/keystone/fernet-keys/0")
CREDENTIAL_KEYS = Path("/etc/keystone/credential-keys/0")


def rc_files(rc_dir: Path) -> dict:
    return {"admin": rc_dir / "admin-openrc", "demo": rc_dir / "demo-openrc"}


class IdentityStage(Stage):
    name = "identity"

    @step("keystone_configured")
    def configure_keystone(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Keystone (Identity service)"""
        runner = self.host.runner
        self.service_database(cfg, "keystone", ["keystone"])
        self.host.apt.install("keystone", "apache2", "libapache2-mod-wsgi-py3")

        self.configure_ini(KEYSTONE_CONF, {
            "database": {"connection": database_url(cfg, "keystone", "keystone")},
            "token": {"provider": "fernet"},
        })
        self.manage("keystone", "keystone-manage db_sync")

        if not FERNET_KEYS.exists():
            runner.run(["keystone-manage", "fernet_setup",
                        "--keystone-user", "keystone", "--keystone-group", "keystone"])
        if not CREDENTIAL_KEYS.exists():
            runner.run(["keystone-manage", "credential_setup",
                        "--keystone-user", "keystone", "--keystone-group", "keystone"])

        self.host.files.ensure_line(APACHE_CONF, f"ServerName {cfg.controller_host}")
        self.host.systemd.restart_and_enable("apache2")

        if not self.admin(cfg).token_issue_works():
            url = keystone_url(cfg, "/v3/")
            runner.run([
                "keystone-manage", "bootstrap",
                "--bootstrap-password", cfg.secrets.admin_password,
                "--bootstrap-admin-url", url,
                "--bootstrap-internal-url", url,
                "--bootstrap-public-url", url,
                "--bootstrap-region-id", cfg.region,
            ])
        self.wait_for_identity(cfg)
        return StepResult.done()

    @step("env_scripts_created")
    def create_env_scripts(self, cfg: RunConfiguration) -> StepResult:
        """Create admin and demo openrc files"""
        paths = rc_files(self.host.rc_dir)
        creds = {"admin": self.admin_credentials(cfg), "demo": self.demo_credentials(cfg)}
        changed = False
        for who, path in paths.items():
            changed |= self.host.render_to("openrc.j2", path, {"credentials": creds[who].env()}, mode=0o600)
        return StepResult.done() if changed else StepResult.unchanged("openrc files up to date")

    @step("projects_users_created")
    def create_projects_users(self, cfg: RunConfiguration) -> StepResult:
        """Create service and demo projects, demo user and user role"""
        cli = self.admin(cfg)
        created = [
            cli.ensure_project("service", "Service Project"),
            cli.ensure_project("myproject", "Demo Project"),
            cli.ensure_user("demo", cfg.secrets.demo_password),
            cli.ensure_role("user"),
            cli.ensure_role_assignment("myproject", "demo", "user"),
        ]
        if not any(created):
            return StepResult.unchanged("projects, users and roles already present")
        return StepResult.done()
