# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/prompt/collector.py

from __future__ import annotations

import ipaddress
import logging
from typing import Callable, List, Optional

import typer

from ..config.models import RunConfiguration, ServiceSecrets
from ..config.secrets import generate_secrets
from ..execution.runner import CommandRunner
from ..host.network import Interface, find_interface, list_interfaces, owner_of_address

log = logging.getLogger("cloudstep")


class ConfigurationAbandoned(RuntimeError):
    """The operator rejected the configuration summary."""


class InteractivePromptCollector:
    """
    Asks the operator for the management address and provider interface,
    re-prompting until the answers are valid on this host, and generates
    the run's secrets.

    Prompt, confirm and echo are injectable so tests can script a session.
    """

    def __init__(
        self,
        runner: CommandRunner,
        *,
        prompt: Callable[..., str] = typer.prompt,
        confirm: Callable[..., bool] = typer.confirm,
        echo: Callable[[str], None] = typer.echo,
        secrets_factory: Callable[[], ServiceSecrets] = generate_secrets,
        interfaces: Optional[Callable[[], List[Interface]]] = None,
    ):
        self.runner = runner
        self.prompt = prompt
        self.confirm_fn = confirm
        self.echo = echo
        self.secrets_factory = secrets_factory
        self._interfaces = interfaces or (lambda: list_interfaces(self.runner))

    # ------------------------- validation -------------------------

    def validate_management_ip(self, value: str) -> Optional[str]:
        """Returns an error message, or None when the address is usable."""
        value = value.strip()
        try:
            ipaddress.ip_address(value)
        except ValueError:
            return f"Invalid IP address format: {value!r}"
        if owner_of_address(self._interfaces(), value) is None:
            return f"IP address {value} not found on any interface"
        return None

    def validate_provider_interface(self, value: str) -> Optional[str]:
        if find_interface(self._interfaces(), value.strip()) is None:
            return f"Interface {value!r} not found"
        return None

    # ------------------------- prompting -------------------------

    def _ask_management_ip(self) -> str:
        while True:
            value = str(self.prompt("Enter the management IP address (e.g., 10.0.0.11)")).strip()
            error = self.validate_management_ip(value)
            if error is None:
                return value
            self.echo(f"[ERROR] {error}")

    def _ask_provider_interface(self, management_ip: str) -> str:
        while True:
            value = str(self.prompt("Enter the provider network interface name (e.g., eth1, ens34)")).strip()
            error = self.validate_provider_interface(value)
            if error is not None:
                self.echo(f"[ERROR] {error}")
                continue

            iface = find_interface(self._interfaces(), value)
            if iface is not None and iface.has_address:
                # Precondition warning, not a validation error: the operator decides.
                self.echo(f"[WARNING] Interface {value} has an IP address configured.")
                self.echo("The provider interface should NOT have an IP address.")
                if management_ip in iface.addresses:
                    self.echo("It also carries the management address.")
                if not self.confirm_fn("Continue anyway?", default=False):
                    continue
            return value

    def collect(self) -> RunConfiguration:
        self.echo("=== OpenStack All-in-One Configuration ===")
        self.echo("1. Management interface: should have a static IP configured")
        self.echo("2. Provider interface: should have NO IP address configured")
        self.echo("")
        self.echo("Current network interfaces:")
        for iface in self._interfaces():
            self.echo(f"  {iface.name:<16} {iface.state:<8} {' '.join(iface.addresses)}")
        self.echo("")

        management_ip = self._ask_management_ip()
        provider_interface = self._ask_provider_interface(management_ip)

        cfg = RunConfiguration(
            management_ip=management_ip,
            provider_interface=provider_interface,
            secrets=self.secrets_factory(),
        )
        log.debug("collected configuration for %s", cfg.management_address)
        return cfg

    def confirm(self, cfg: RunConfiguration) -> bool:
        self.echo("")
        self.echo("=== Configuration Summary ===")
        for k, v in cfg.summary().items():
            self.echo(f"{k}: {v}")
        self.echo("============================")
        return bool(self.confirm_fn("Continue with these settings?", default=True))
