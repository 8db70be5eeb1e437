# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/openstack/stages/storage.py

from __future__ import annotations

import logging
import re
from pathlib import Path

from ...config.models import RunConfiguration
from ...deploy.steps import StepResult, step
from ..endpoints import CATALOG, database_url, transport_url
from .base import Stage

log = logging.getLogger("cloudstep")

CINDER_CONF = "/etc/cinder/cinder.conf"
NOVA_CONF = "/etc/nova/nova.conf"
LVM_CONF = "/etc/lvm/lvm.conf"
CINDER_WSGI_SITE = Path("/etc/apache2/sites-available/cinder-wsgi.conf")
CINDER_WSGI_ENABLED = Path("/etc/apache2/sites-enabled/cinder-wsgi.conf")

VOLUME_GROUP = "cinder-volumes"
SPARE_DISK = Path("/dev/sdb")
BACKING_FILE = Path("/var/lib/cinder/cinder-volumes")
BACKING_SIZE = "20G"
LOOP_UNIT = "cinder-loop.service"
LOOP_UNIT_PATH = Path("/etc/systemd/system") / LOOP_UNIT
MODULES_LOAD = "/etc/modules-load.d/loop.conf"
LVM_FILTER = '    filter = [ "a|/dev/sda|", "a|/dev/sdb|", "a|/dev/loop.*|", "r|.*|" ]'

VOLUME_SERVICES = ("cinder-scheduler", "cinder-volume", "tgt")


def add_lvm_filter(content: str) -> str:
    """Insert the device filter into the devices section unless one is active."""
    if re.search(r"^\s*filter\s*=", content, re.MULTILINE):
        return content
    return re.sub(r"(?m)^(devices \{\n)", lambda m: m.group(1) + LVM_FILTER + "\n", content, count=1)


class StorageStage(Stage):
    name = "cinder"

    # ------------------------- LVM backing store -------------------------

    def _is_block_device(self, path: Path) -> bool:
        return self.host.runner.succeeds(["test", "-b", str(path)])

    def _attached_loop(self) -> str:
        out = self.host.runner.probe(["losetup", "-j", str(BACKING_FILE)]).stdout.strip()
        return out.split(":", 1)[0] if out else ""

    def _loop_device(self) -> str:
        runner = self.host.runner
        files = self.host.files
        if not BACKING_FILE.exists():
            files.mkdir(BACKING_FILE.parent)
            runner.run(["truncate", "-s", BACKING_SIZE, str(BACKING_FILE)])

        device = self._attached_loop()
        if not device:
            device = runner.output(["losetup", "-f"]).strip()
            runner.run(["losetup", device, str(BACKING_FILE)])

        files.ensure_line(MODULES_LOAD, "loop")
        if self.host.render_to("cinder-loop.service.j2", LOOP_UNIT_PATH, {
            "loop_device": device,
            "backing_file": str(BACKING_FILE),
        }):
            self.host.systemd.daemon_reload()
        self.host.systemd.enable(LOOP_UNIT)
        self.host.systemd.start(LOOP_UNIT)
        return device

    def _ensure_lvm_filter(self) -> bool:
        files = self.host.files
        current = files.read(LVM_CONF)
        if current is None:
            return False
        wanted = add_lvm_filter(current)
        if wanted == current:
            return False
        files.backup_once(LVM_CONF)
        return files.write(LVM_CONF, wanted)

    def ensure_volume_group(self) -> bool:
        """
        Every piece is checked on its own, so a run cut short between
        vgcreate and the filter or loop unit finishes the job on retry.
        """
        runner = self.host.runner
        changed = False
        if runner.succeeds(["vgdisplay", VOLUME_GROUP]):
            log.info("[cinder] %s volume group already exists", VOLUME_GROUP)
            if BACKING_FILE.exists():
                # the group lives on the loop file; it must come back after a reboot
                self._loop_device()
        else:
            if self._is_block_device(SPARE_DISK) and not runner.succeeds(["pvdisplay", str(SPARE_DISK)]):
                device = str(SPARE_DISK)
            else:
                device = self._loop_device()
            log.info("[cinder] creating %s on %s", VOLUME_GROUP, device)
            if not runner.succeeds(["pvdisplay", device]):
                runner.run(["pvcreate", device])
            runner.run(["vgcreate", VOLUME_GROUP, device])
            changed = True

        return self._ensure_lvm_filter() or changed

    # ------------------------- service -------------------------

    @step("cinder_configured")
    def configure_cinder(self, cfg: RunConfiguration) -> StepResult:
        """Install and configure Cinder (Block Storage service)"""
        systemd = self.host.systemd
        self.service_database(cfg, "cinder", ["cinder"])
        self.register_service(cfg, "cinderv3", "cinder")

        self.host.apt.install("cinder-api", "cinder-scheduler", "cinder-volume", "tgt", "lvm2")
        if not CINDER_WSGI_SITE.exists():
            self.host.apt.install("libapache2-mod-wsgi-py3")

        self.configure_ini(CINDER_CONF, {
            "database": {"connection": database_url(cfg, "cinder", "cinder")},
            "DEFAULT": {
                "transport_url": transport_url(cfg, with_port=False),
                "auth_strategy": "keystone",
                "my_ip": cfg.management_address,
                "enabled_backends": "lvm",
                "glance_api_servers": CATALOG["glance"].url(cfg.controller_host),
            },
            "keystone_authtoken": self.authtoken(cfg, "cinder"),
            "lvm": {
                "volume_driver": "cinder.volume.drivers.lvm.LVMVolumeDriver",
                "volume_group": VOLUME_GROUP,
                "target_protocol": "iscsi",
                "target_helper": "tgtadm",
            },
            "oslo_concurrency": {"lock_path": "/var/lib/cinder/tmp"},
        })

        self.ensure_volume_group()
        self.manage("cinder", "cinder-manage db sync")

        self.host.ini(NOVA_CONF).set("cinder", "os_region_name", cfg.region)
        systemd.restart("nova-api")

        if CINDER_WSGI_SITE.exists():
            # cinder-api is served by Apache
            if not CINDER_WSGI_ENABLED.exists():
                self.host.runner.run(["a2ensite", "cinder-wsgi"])
            systemd.restart("apache2")
            systemd.restart_and_enable(*VOLUME_SERVICES)
        else:
            systemd.restart_and_enable(*VOLUME_SERVICES)
            if systemd.unit_exists("cinder-api"):
                systemd.restart_and_enable("cinder-api")
        return StepResult.done()
