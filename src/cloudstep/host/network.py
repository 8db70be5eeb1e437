# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/network.py

from __future__ import annotations

import ipaddress
import json
from dataclasses import dataclass, field
from typing import List, Optional

from ..execution.runner import CommandRunner


@dataclass(frozen=True)
class Interface:
    name: str
    state: str = "UNKNOWN"
    addresses: List[str] = field(default_factory=list)

    @property
    def has_address(self) -> bool:
        return bool(self.addresses)


def list_interfaces(runner: CommandRunner) -> List[Interface]:
    """
    Parse `ip -j addr show`; loopback is left out, and so are link-scope
    addresses (the fe80:: every up interface carries is not configuration).
    """
    data = json.loads(runner.output(["ip", "-j", "addr", "show"]) or "[]")
    out: List[Interface] = []
    for item in data:
        name = item.get("ifname")
        if not name or name == "lo":
            continue
        addrs = [
            a["local"] for a in item.get("addr_info", [])
            if a.get("local") and a.get("scope") != "link"
        ]
        out.append(Interface(name=name, state=item.get("operstate", "UNKNOWN"), addresses=addrs))
    return out


def find_interface(interfaces: List[Interface], name: str) -> Optional[Interface]:
    return next((i for i in interfaces if i.name == name), None)


def owner_of_address(interfaces: List[Interface], address: str) -> Optional[Interface]:
    wanted = ipaddress.ip_address(address)
    for iface in interfaces:
        for a in iface.addresses:
            try:
                if ipaddress.ip_address(a) == wanted:
                    return iface
            except ValueError:
                continue
    return None
