# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/base.py

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from ...config.models import RunConfiguration
from ...deploy.steps import StepBody
from ...host.database import MariaDB
from ...host.openstack_cli import Credentials, OpenStackClient
from ...host.toolkit import HostToolkit
from ...utils.retry import retry
from ..endpoints import CATALOG, admin_credentials, demo_credentials, keystone_url, memcached_servers

log = logging.getLogger("cloudstep")


class IdentityNotReady(RuntimeError):
    pass


class Stage:
    """
    A group of related step bodies sharing one host toolkit.

    Subclasses decorate their bodies with @step; steps() returns them in
    declaration order so the registry can lay them out.
    """

    name: str = "stage"

    def __init__(self, host: HostToolkit, *, database_factory: Optional[Callable[[RunConfiguration], MariaDB]] = None,
                 client_factory: Optional[Callable[[Credentials], OpenStackClient]] = None):
        self.host = host
        self._database_factory = database_factory
        self._client_factory = client_factory

    def steps(self) -> List[StepBody]:
        found = []
        for attr in type(self).__dict__.values():
            if callable(attr) and hasattr(attr, "__step_id__"):
                found.append(getattr(self, attr.__name__))
        return found

    # ------------------------- collaborators -------------------------

    def db(self, cfg: RunConfiguration) -> MariaDB:
        if self._database_factory is not None:
            return self._database_factory(cfg)
        return MariaDB(self.host.runner, cfg.secrets.db_password, dry_run=self.host.dry_run)

    def client(self, creds: Credentials) -> OpenStackClient:
        if self._client_factory is not None:
            return self._client_factory(creds)
        return OpenStackClient(self.host.runner, creds)

    def admin_credentials(self, cfg: RunConfiguration) -> Credentials:
        return admin_credentials(cfg)

    def demo_credentials(self, cfg: RunConfiguration) -> Credentials:
        return demo_credentials(cfg)

    def admin(self, cfg: RunConfiguration) -> OpenStackClient:
        return self.client(self.admin_credentials(cfg))

    def demo(self, cfg: RunConfiguration) -> OpenStackClient:
        return self.client(self.demo_credentials(cfg))

    # ------------------------- shared recipes -------------------------

    def register_service(self, cfg: RunConfiguration, catalog_name: str, user: str) -> None:
        """Service user with admin role on the service project, catalog entry and endpoints."""
        ep = CATALOG[catalog_name]
        cli = self.admin(cfg)
        cli.ensure_user(user, cfg.secrets.service_password)
        cli.ensure_role_assignment("service", user, "admin")
        cli.ensure_service(ep.name, ep.service_type, ep.description)
        created = cli.ensure_endpoints(ep.service_type, ep.url(cfg.controller_host), cfg.region)
        if created:
            log.info("[%s] created %s endpoints: %s", self.name, ep.service_type, ", ".join(created))

    def service_database(self, cfg: RunConfiguration, user: str, databases: Sequence[str]) -> None:
        self.db(cfg).ensure_service_database(user, cfg.secrets.service_password, databases)

    def authtoken(self, cfg: RunConfiguration, username: str, *, uri_suffix: str = "",
                  www_authenticate: bool = True) -> Dict[str, str]:
        """The [keystone_authtoken] block every API service carries."""
        section = {}
        if www_authenticate:
            section["www_authenticate_uri"] = keystone_url(cfg, uri_suffix)
        section.update({
            "auth_url": keystone_url(cfg, uri_suffix),
            "memcached_servers": memcached_servers(cfg),
            "auth_type": "password",
            "project_domain_name": "Default",
            "user_domain_name": "Default",
            "project_name": "service",
            "username": username,
            "password": cfg.secrets.service_password,
        })
        return section

    def service_client_section(self, cfg: RunConfiguration, username: str, suffix: str = "") -> Dict[str, str]:
        """Credentials one service uses to call another ([nova], [neutron], [placement])."""
        return {
            "auth_url": keystone_url(cfg, suffix),
            "auth_type": "password",
            "project_domain_name": "Default",
            "user_domain_name": "Default",
            "region_name": cfg.region,
            "project_name": "service",
            "username": username,
            "password": cfg.secrets.service_password,
        }

    def configure_ini(self, path: str | Path, sections: Dict[str, Dict[str, object]]) -> int:
        self.host.files.backup_once(path)
        return self.host.ini(path).apply(sections)

    def manage(self, user: str, command: str) -> None:
        """Run a *-manage command as the service's system user."""
        self.host.runner.run(["su", "-s", "/bin/sh", "-c", command, user])

    def wait_for_identity(self, cfg: RunConfiguration) -> None:
        """Block until Keystone issues an admin token."""
        if self.host.dry_run:
            return
        cli = self.admin(cfg)

        @retry(retries=20, delay=3, retry_on=(IdentityNotReady,))
        def _poll() -> None:
            if not cli.token_issue_works():
                raise IdentityNotReady(f"keystone at {keystone_url(cfg)} is not answering yet")

        _poll()
