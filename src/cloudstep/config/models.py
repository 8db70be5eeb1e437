# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/config/models.py

from __future__ import annotations

from pydantic import BaseModel, Field, IPvAnyAddress, field_validator


class ServiceSecrets(BaseModel):
    """Credentials generated once per host and shared by every stage."""

    admin_password: str = Field(min_length=8)
    demo_password: str = Field(min_length=8)
    db_password: str = Field(min_length=8)
    rabbit_password: str = Field(min_length=8)
    service_password: str = Field(min_length=8)
    metadata_secret: str = Field(min_length=8)

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }


class RunConfiguration(BaseModel):
    """
    Everything a step body needs to know about this host.

    Created once by the prompt collector, persisted by the SecretStore and
    loaded verbatim on every later invocation. Frozen: a run never edits it.
    """

    management_ip: IPvAnyAddress
    provider_interface: str
    controller_host: str = "controller"
    region: str = "RegionOne"
    secrets: ServiceSecrets

    model_config = {
        "frozen": True,
        "extra": "forbid",
    }

    @field_validator("provider_interface", "controller_host", "region")
    @classmethod
    def _no_blank(cls, v: str) -> str:
        v = v.strip()
        if not v or any(c.isspace() for c in v):
            raise ValueError("must be a non-empty token without whitespace")
        return v

    @property
    def management_address(self) -> str:
        return str(self.management_ip)

    def summary(self) -> dict[str, str]:
        """Operator-facing view used for confirmation."""
        return {
            "Management IP": self.management_address,
            "Provider Interface": self.provider_interface,
            "Controller Hostname": self.controller_host,
            "Region": self.region,
            "Admin Password": self.secrets.admin_password,
        }
