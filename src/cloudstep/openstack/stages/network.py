# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/network.py

from __future__ import annotations

import logging

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import database_url, transport_url
from .base import Stage

log = logging.getLogger("cloudstep")

NEUTRON_CONF = "/etc/neutron/neutron.conf"
ML2_CONF = "/etc/neutron/plugins/ml2/ml2_conf.ini"
OVS_AGENT_CONF = "/etc/neutron/plugins/ml2/openvswitch_agent.ini"
L3_AGENT_CONF = "/etc/neutron/l3_agent.ini"
DHCP_AGENT_CONF = "/etc/neutron/dhcp_agent.ini"
METADATA_AGENT_CONF = "/etc/neutron/metadata_agent.ini"
PLUGIN_LINK = "/etc/neutron/plugin.ini"
NOVA_CONF = "/etc/nova/nova.conf"

PROVIDER_BRIDGE = "br-provider"
PHYSICAL_NETWORK = "provider"

NEUTRON_PACKAGES = (
    "neutron-server", "neutron-plugin-ml2", "neutron-openvswitch-agent",
    "neutron-l3-agent", "neutron-dhcp-agent", "neutron-metadata-agent",
)
NEUTRON_SERVICES = (
    "neutron-server", "neutron-openvswitch-agent", "neutron-dhcp-agent",
    "neutron-metadata-agent", "neutron-l3-agent",
)


class NetworkStage(Stage):
    name = "neutron"

    def _ensure_provider_bridge(self, interface: str) -> None:
        runner = self.host.runner
        if not runner.succeeds(["ovs-vsctl", "br-exists", PROVIDER_BRIDGE]):
            runner.run(["ovs-vsctl", "add-br", PROVIDER_BRIDGE])
        ports = runner.probe(["ovs-vsctl", "list-ports", PROVIDER_BRIDGE]).stdout.split()
        if interface not in ports:
            runner.run(["ovs-vsctl", "add-port", PROVIDER_BRIDGE, interface])

    @step("neutron_configured")
    def configure_neutron(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Neutron (Networking service)"""
        self.service_database(cfg, "neutron", ["neutron"])
        self.register_service(cfg, "neutron", "neutron")
        self.host.apt.install(*NEUTRON_PACKAGES)

        self.configure_ini(NEUTRON_CONF, {
            "database": {"connection": database_url(cfg, "neutron", "neutron")},
            "DEFAULT": {
                "core_plugin": "ml2",
                "service_plugins": "router",
                "transport_url": transport_url(cfg, with_port=False),
                "auth_strategy": "keystone",
                "notify_nova_on_port_status_changes": "true",
                "notify_nova_on_port_data_changes": "true",
            },
            "keystone_authtoken": self.authtoken(cfg, "neutron"),
            "nova": self.service_client_section(cfg, "nova"),
            "oslo_concurrency": {"lock_path": "/var/lib/neutron/tmp"},
        })
        self.configure_ini(ML2_CONF, {
            "ml2": {
                "type_drivers": "flat,vlan,vxlan",
                "tenant_network_types": "vxlan",
                "mechanism_drivers": "openvswitch,l2population",
                "extension_drivers": "port_security",
            },
            "ml2_type_flat": {"flat_networks": PHYSICAL_NETWORK},
            "ml2_type_vxlan": {"vni_ranges": "1:1000"},
            "securitygroup": {"enable_ipset": "true"},
        })
        self.configure_ini(OVS_AGENT_CONF, {
            "ovs": {
                "bridge_mappings": f"{PHYSICAL_NETWORK}:{PROVIDER_BRIDGE}",
                "local_ip": cfg.management_address,
            },
            "agent": {"tunnel_types": "vxlan", "l2_population": "true"},
            "securitygroup": {"firewall_driver": "openvswitch"},
        })
        self.configure_ini(L3_AGENT_CONF, {"DEFAULT": {"interface_driver": "openvswitch"}})
        self.configure_ini(DHCP_AGENT_CONF, {"DEFAULT": {
            "interface_driver": "openvswitch",
            "dhcp_driver": "neutron.agent.linux.dhcp.Dnsmasq",
            "enable_isolated_metadata": "true",
        }})
        self.configure_ini(METADATA_AGENT_CONF, {"DEFAULT": {
            "nova_metadata_host": cfg.controller_host,
            "metadata_proxy_shared_secret": cfg.secrets.metadata_secret,
        }})

        nova_neutron = self.service_client_section(cfg, "neutron")
        nova_neutron.update({
            "service_metadata_proxy": "true",
            "metadata_proxy_shared_secret": cfg.secrets.metadata_secret,
        })
        self.host.ini(NOVA_CONF).apply({"neutron": nova_neutron})

        self.host.systemd.start("openvswitch-switch")
        self.host.systemd.enable("openvswitch-switch")
        self._ensure_provider_bridge(cfg.provider_interface)

        self.host.files.symlink(ML2_CONF, PLUGIN_LINK)
        self.manage("neutron", (
            f"neutron-db-manage --config-file {NEUTRON_CONF} "
            f"--config-file {ML2_CONF} upgrade head"
        ))

        self.host.systemd.restart("nova-api")
        self.host.systemd.restart_and_enable(*NEUTRON_SERVICES)
        return StepResult.done()
