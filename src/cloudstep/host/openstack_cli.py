# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/openstack_cli.py

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from ..execution.runner import CommandRunner

log = logging.getLogger("cloudstep")

INTERFACES = ("public", "internal", "admin")


@dataclass(frozen=True)
class Credentials:
    """The OS_* environment an openrc file would export."""

    username: str
    password: str
    project: str
    auth_url: str
    user_domain: str = "Default"
    project_domain: str = "Default"

    def env(self) -> Dict[str, str]:
        return {
            "OS_USERNAME": self.username,
            "OS_PASSWORD": self.password,
            "OS_PROJECT_NAME": self.project,
            "OS_USER_DOMAIN_NAME": self.user_domain,
            "OS_PROJECT_DOMAIN_NAME": self.project_domain,
            "OS_AUTH_URL": self.auth_url,
            "OS_IDENTITY_API_VERSION": "3",
            "OS_IMAGE_API_VERSION": "2",
        }


class OpenStackClient:
    """
    Thin wrapper over the `openstack` CLI.

    Every ensure_* method looks the resource up first and only issues the
    create call when it is missing; the return value says whether anything
    was created.
    """

    def __init__(self, runner: CommandRunner, credentials: Credentials):
        self.runner = runner
        self.credentials = credentials

    # ------------------------- internal helpers -------------------------

    def _argv(self, args: Iterable[str]) -> List[str]:
        return ["openstack", *[str(a) for a in args]]

    def _probe(self, *args: str):
        return self.runner.probe(self._argv(args), env=self.credentials.env())

    def _run(self, *args: str) -> None:
        self.runner.run(self._argv(args), env=self.credentials.env())

    def _json(self, *args: str):
        cp = self._probe(*args, "-f", "json")
        if cp.returncode != 0 or not cp.stdout.strip():
            return None
        try:
            return json.loads(cp.stdout)
        except json.JSONDecodeError:
            log.debug("[openstack] non-JSON output for %s", " ".join(args))
            return None

    # ------------------------- queries -------------------------

    def exists(self, kind: str, name: str) -> bool:
        return self._probe(*kind.split(), "show", name).returncode == 0

    def show(self, kind: str, name: str) -> Optional[dict]:
        return self._json(*kind.split(), "show", name)

    def listing(self, *args: str) -> Tuple[bool, str]:
        """Human-readable table output, for verification reports."""
        cp = self._probe(*args)
        if cp.returncode == 0:
            return True, cp.stdout
        return False, (cp.stderr or "").strip()

    def token_issue_works(self) -> bool:
        return self._probe("token", "issue").returncode == 0

    # ------------------------- identity -------------------------

    def ensure(self, kind: str, name: str, *create_args: str) -> bool:
        if self.exists(kind, name):
            log.debug("[openstack] %s %s already exists", kind, name)
            return False
        self._run(*kind.split(), "create", *create_args, name)
        return True

    def ensure_project(self, name: str, description: str, domain: str = "default") -> bool:
        return self.ensure("project", name, "--domain", domain, "--description", description)

    def ensure_user(self, name: str, password: str, domain: str = "default") -> bool:
        return self.ensure("user", name, "--domain", domain, "--password", password)

    def ensure_role(self, name: str) -> bool:
        return self.ensure("role", name)

    def has_role_assignment(self, project: str, user: str, role: str) -> bool:
        rows = self._json(
            "role", "assignment", "list",
            "--project", project, "--user", user, "--role", role, "--names",
        )
        return bool(rows)

    def ensure_role_assignment(self, project: str, user: str, role: str) -> bool:
        if self.has_role_assignment(project, user, role):
            return False
        self._run("role", "add", "--project", project, "--user", user, role)
        return True

    def ensure_service(self, name: str, service_type: str, description: str) -> bool:
        if self.exists("service", name):
            return False
        self._run("service", "create", "--name", name, "--description", description, service_type)
        return True

    def endpoint_interfaces(self, service_type: str, region: str) -> set:
        rows = self._json("endpoint", "list", "--service", service_type, "--region", region) or []
        return {row.get("Interface") for row in rows}

    def ensure_endpoints(self, service_type: str, url: str, region: str) -> List[str]:
        """Create whichever of public/internal/admin is missing."""
        present = self.endpoint_interfaces(service_type, region)
        created = []
        for iface in INTERFACES:
            if iface in present:
                continue
            self._run("endpoint", "create", "--region", region, service_type, iface, url)
            created.append(iface)
        return created

    # ------------------------- resources -------------------------

    def ensure_image(self, name: str, path: str, disk_format: str = "qcow2",
                     container_format: str = "bare", public: bool = True) -> bool:
        args = ["--file", path, "--disk-format", disk_format, "--container-format", container_format]
        if public:
            args.append("--public")
        return self.ensure("image", name, *args)

    def ensure_network(self, name: str, *create_args: str) -> bool:
        return self.ensure("network", name, *create_args)

    def ensure_subnet(self, name: str, network: str, *create_args: str) -> bool:
        return self.ensure("subnet", name, "--network", network, *create_args)

    def ensure_router(self, name: str) -> bool:
        return self.ensure("router", name)

    def router_has_subnet(self, router: str, subnet: str) -> bool:
        cp = self._probe("port", "list", "--router", router, "--fixed-ip", f"subnet={subnet}", "-f", "value", "-c", "ID")
        return cp.returncode == 0 and bool(cp.stdout.strip())

    def ensure_router_subnet(self, router: str, subnet: str) -> bool:
        if self.router_has_subnet(router, subnet):
            return False
        self._run("router", "add", "subnet", router, subnet)
        return True

    def ensure_router_gateway(self, router: str, network: str) -> bool:
        info = self.show("router", router) or {}
        if info.get("external_gateway_info"):
            return False
        self._run("router", "set", router, "--external-gateway", network)
        return True

    def ensure_flavor(self, name: str, *, flavor_id: str, vcpus: int, ram_mb: int, disk_gb: int) -> bool:
        return self.ensure(
            "flavor", name,
            "--id", flavor_id, "--vcpus", str(vcpus), "--ram", str(ram_mb), "--disk", str(disk_gb),
        )

    def security_group_id(self, project: str, name: str = "default") -> Optional[str]:
        """Group names repeat across projects; resolve the one owned by project."""
        rows = self._json("security", "group", "list", "--project", project) or []
        for row in rows:
            if row.get("Name") == name:
                return row.get("ID")
        return None

    def has_security_group_rule(self, group: str, protocol: str, port: Optional[int] = None) -> bool:
        rows = self._json("security", "group", "rule", "list", group, "--protocol", protocol, "--ingress") or []
        if port is None:
            return bool(rows)
        wanted = f"{port}:{port}"
        return any(row.get("Port Range") == wanted for row in rows)

    def ensure_security_group_rule(self, group: str, protocol: str, port: Optional[int] = None) -> bool:
        if self.has_security_group_rule(group, protocol, port):
            return False
        args = ["security", "group", "rule", "create", "--proto", protocol]
        if port is not None:
            args += ["--dst-port", str(port)]
        self._run(*args, group)
        return True
