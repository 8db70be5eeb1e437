# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/registry.py

from __future__ import annotations

from ..deploy.registry import StepRegistry
from ..host.toolkit import HostToolkit
from .stages.compute import ComputeStage
from .stages.dashboard import DashboardStage
from .stages.identity import IdentityStage
from .stages.image import ImageStage
from .stages.infrastructure import InfrastructureStage
from .stages.network import NetworkStage
from .stages.placement import PlacementStage
from .stages.resources import ResourcesStage
from .stages.storage import StorageStage
from .stages.system import SystemStage

# Order matters: every stage depends on the ones before it.
STAGES = (
    SystemStage,
    InfrastructureStage,
    IdentityStage,
    ImageStage,
    PlacementStage,
    ComputeStage,
    NetworkStage,
    DashboardStage,
    StorageStage,
    ResourcesStage,
)


def build_openstack_steps(host: HostToolkit, **stage_kw) -> StepRegistry:
    """
    The all-in-one controller sequence, from package updates through test
    resources. Step ids are the ledger keys and never change.
    """
    registry = StepRegistry()
    for stage_cls in STAGES:
        for body in stage_cls(host, **stage_kw).steps():
            registry.add_tagged(body)
    return registry
