# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/toolkit.py

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from ..execution.runner import CommandRunner
from .files import FileEditor
from .inifile import IniFile
from .packages import Apt
from .services import Systemd
from .templates import TemplateRenderer


@dataclass
class HostToolkit:
    """
    Everything a step body may use to touch the host. Stages receive one of
    these at construction; the engine never sees it.
    """

    runner: CommandRunner
    rc_dir: Path = Path("/root")
    files: FileEditor = field(default=None)  # type: ignore[assignment]
    apt: Apt = field(default=None)  # type: ignore[assignment]
    systemd: Systemd = field(default=None)  # type: ignore[assignment]
    templates: TemplateRenderer = field(default_factory=TemplateRenderer)

    def __post_init__(self) -> None:
        if self.files is None:
            self.files = FileEditor(dry_run=self.runner.dry_run)
        if self.apt is None:
            self.apt = Apt(self.runner)
        if self.systemd is None:
            self.systemd = Systemd(self.runner)

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def ini(self, path: str | Path) -> IniFile:
        return IniFile(self.runner, path)

    def render_to(self, template: str, path: str | Path, context: dict, **write_kw) -> bool:
        return self.files.write(path, self.templates.render(template, context), **write_kw)
