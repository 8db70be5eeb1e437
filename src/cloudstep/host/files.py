# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/host/files.py

from __future__ import annotations

import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import Optional

log = logging.getLogger("cloudstep")


class FileEditor:
    """
    Check-then-write helpers for plain files. Each mutating call returns
    True when it changed something and False when the file already matched.
    """

    def __init__(self, dry_run: bool = False):
        self.dry_run = dry_run

    def _skip(self, what: str) -> bool:
        if self.dry_run:
            log.info("[files] dry-run: would %s", what)
        return self.dry_run

    def read(self, path: str | Path) -> Optional[str]:
        p = Path(path)
        return p.read_text(encoding="utf-8") if p.is_file() else None

    def write(
        self,
        path: str | Path,
        content: str,
        *,
        mode: Optional[int] = None,
        owner: Optional[str] = None,
        group: Optional[str] = None,
    ) -> bool:
        p = Path(path)
        changed = self.read(p) != content
        if changed and not self._skip(f"write {p}"):
            p.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=f".{p.name}.", dir=str(p.parent))
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(content)
                os.replace(tmp, p)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
            log.debug("[files] wrote %s", p)
        if mode is not None:
            changed |= self.chmod(p, mode)
        if owner or group:
            changed |= self.chown(p, owner, group)
        return changed

    def chmod(self, path: str | Path, mode: int) -> bool:
        p = Path(path)
        if p.exists() and (p.stat().st_mode & 0o7777) == mode:
            return False
        if self._skip(f"chmod {oct(mode)} {p}"):
            return True
        os.chmod(p, mode)
        return True

    def chown(self, path: str | Path, owner: Optional[str], group: Optional[str]) -> bool:
        p = Path(path)
        if p.exists():
            if (owner is None or p.owner() == owner) and (group is None or p.group() == group):
                return False
        if self._skip(f"chown {owner}:{group} {p}"):
            return True
        shutil.chown(p, user=owner, group=group)
        return True

    def backup_once(self, path: str | Path, suffix: str = ".backup") -> bool:
        """
        Keep a copy of the pristine file. Never overwrite an existing backup:
        a retried step would otherwise back up its own edits.
        """
        src = Path(path)
        dst = src.with_name(src.name + suffix)
        if dst.exists() or not src.exists():
            return False
        if self._skip(f"back up {src}"):
            return True
        shutil.copy2(src, dst)
        return True

    def ensure_line(self, path: str | Path, line: str) -> bool:
        current = self.read(path) or ""
        if line in current.splitlines():
            return False
        sep = "" if not current or current.endswith("\n") else "\n"
        return self.write(path, f"{current}{sep}{line}\n")

    def remove_lines(self, path: str | Path, pattern: str) -> bool:
        current = self.read(path)
        if current is None:
            return False
        rx = re.compile(pattern)
        kept = [ln for ln in current.splitlines(keepends=True) if not rx.search(ln)]
        new = "".join(kept)
        if new == current:
            return False
        return self.write(path, new)

    def symlink(self, target: str | Path, link: str | Path) -> bool:
        lp = Path(link)
        if lp.is_symlink() and os.readlink(lp) == str(target):
            return False
        if self._skip(f"link {lp} -> {target}"):
            return True
        lp.parent.mkdir(parents=True, exist_ok=True)
        if lp.is_symlink() or lp.exists():
            lp.unlink()
        lp.symlink_to(target)
        return True

    def mkdir(self, path: str | Path, *, owner: Optional[str] = None, group: Optional[str] = None) -> bool:
        p = Path(path)
        changed = False
        if not p.is_dir():
            if self._skip(f"mkdir {p}"):
                return True
            p.mkdir(parents=True, exist_ok=True)
            changed = True
        if owner or group:
            changed |= self.chown(p, owner, group)
        return changed

    def touch(self, path: str | Path) -> bool:
        p = Path(path)
        if p.exists():
            return False
        if self._skip(f"touch {p}"):
            return True
        p.parent.mkdir(parents=True, exist_ok=True)
        p.touch()
        return True
