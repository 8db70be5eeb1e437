# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/config/bootstrap.py

from __future__ import annotations

import logging
from typing import Optional, Protocol

from ..ledger.interface import Ledger
from ..observers.dispatcher import EventBus
from ..observers.events import ConfigAbandoned, ConfigCollected, ConfigLoaded, new_ctx
from ..prompt.collector import ConfigurationAbandoned
from .models import RunConfiguration
from .store import SecretStore

log = logging.getLogger("cloudstep")


class StaleLedgerError(RuntimeError):
    """Steps are recorded as done but the configuration they used is gone."""


class Collector(Protocol):
    def collect(self) -> RunConfiguration: ...

    def confirm(self, cfg: RunConfiguration) -> bool: ...


def acquire_configuration(
    store: SecretStore,
    ledger: Ledger,
    collector: Collector,
    *,
    bus: Optional[EventBus] = None,
    run_id: Optional[str] = None,
) -> RunConfiguration:
    """
    Load the persisted configuration, or collect, confirm and persist a new one.

    Nothing is written until the operator has confirmed the summary, so an
    interrupted collection leaves no state behind. A rejected summary
    discards whatever is on disk and raises ConfigurationAbandoned.
    """
    bus = bus or EventBus([])
    ctx = new_ctx(run_id=run_id)

    cfg = store.load()
    if cfg is not None:
        log.info("Loading saved configuration from %s", store.path)
        bus.emit(ConfigLoaded(path=str(store.path), **ctx))
        return cfg

    done = ledger.completed()
    if done:
        raise StaleLedgerError(
            f"{len(done)} step(s) are recorded as complete but no configuration "
            f"exists at {store.path}; run `cloudstep reset` before starting over"
        )

    cfg = collector.collect()

    if not collector.confirm(cfg):
        store.discard()
        bus.emit(ConfigAbandoned(path=str(store.path), **ctx))
        raise ConfigurationAbandoned("configuration rejected by operator")

    store.save(cfg)
    bus.emit(ConfigCollected(path=str(store.path), **ctx))
    return cfg
