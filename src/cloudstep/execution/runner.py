# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/execution/runner.py

from __future__ import annotations

import logging
import os
import re
import shlex
import subprocess
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

Cmd = Sequence[Union[str, "os.PathLike[str]"]]

log = logging.getLogger("cloudstep")

MASK = "***"

# Options whose next argument is a credential.
_SECRET_OPTIONS = frozenset({"--password", "--bootstrap-password", "--os-password"})
# rabbitmqctl subcommands taking <user> <password>.
_RABBIT_PASSWORD_OPS = frozenset({"add_user", "change_password"})
_SQL_PASSWORD = re.compile(r"(IDENTIFIED BY\s+)'(?:[^'\\]|\\.)*'", re.IGNORECASE)


def redact(argv: Sequence[str]) -> List[str]:
    """Copy of argv with passwords replaced, for messages that leave the log file."""
    inline = tuple(o + "=" for o in _SECRET_OPTIONS)
    out: List[str] = []
    hide_next = False
    for arg in argv:
        if hide_next:
            out.append(MASK)
            hide_next = False
        elif arg in _SECRET_OPTIONS:
            out.append(arg)
            hide_next = True
        elif arg.startswith(inline):
            out.append(arg.split("=", 1)[0] + "=" + MASK)
        else:
            out.append(_SQL_PASSWORD.sub(rf"\1'{MASK}'", arg))
    if len(out) >= 4 and out[0] == "rabbitmqctl" and out[1] in _RABBIT_PASSWORD_OPS:
        out[3] = MASK
    return out


class CommandError(RuntimeError):
    """A host command exited non-zero. The message never carries passwords."""

    def __init__(self, cmd: Cmd, returncode: int, stdout: str = "", stderr: str = ""):
        self.cmd = [str(c) for c in cmd]
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        detail = (stderr or stdout or "").strip().splitlines()
        tail = f": {detail[-1]}" if detail else ""
        super().__init__(f"`{shlex.join(redact(self.cmd))}` exited {returncode}{tail}")


@dataclass
class CommandRunner:
    """
    Local subprocess runner used by every step body.

    run()   - mutating commands; skipped in dry-run, raise CommandError on failure.
    probe() - read-only queries; always executed, never raise on exit status.
    """

    dry_run: bool = False
    label: Optional[str] = None
    env: Dict[str, str] = field(default_factory=dict)
    timeout: int = 3600

    def _env(self, extra: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if not self.env and not extra:
            return None
        merged = dict(os.environ)
        merged.update(self.env)
        merged.update(extra or {})
        return merged

    def run(
        self,
        cmd: Cmd,
        *,
        check: bool = True,
        env: Optional[Dict[str, str]] = None,
        input: Optional[str] = None,
        cwd: Optional[str] = None,
    ) -> subprocess.CompletedProcess:
        label = self.label or "cmd"
        argv = [str(c) for c in cmd]
        cmd_str = shlex.join(argv)

        log.debug(f"[{label}] $ {cmd_str}")

        if self.dry_run:
            log.info(f"[{label}] dry-run: skipped `{cmd_str}`")
            return subprocess.CompletedProcess(args=argv, returncode=0, stdout="", stderr="")

        start = time.time()
        result = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            input=input,
            cwd=cwd,
            env=self._env(env),
            timeout=self.timeout,
            check=False,
        )
        duration = time.time() - start

        if result.stdout:
            log.debug(f"[{label}][stdout]\n{result.stdout.rstrip()}")
        if result.stderr:
            log.debug(f"[{label}][stderr]\n{result.stderr.rstrip()}")
        log.debug(f"[{label}][exit {result.returncode}] ({duration:.2f}s)")

        if check and result.returncode != 0:
            raise CommandError(argv, result.returncode, result.stdout, result.stderr)
        return result

    def probe(
        self,
        cmd: Cmd,
        *,
        env: Optional[Dict[str, str]] = None,
    ) -> subprocess.CompletedProcess:
        argv = [str(c) for c in cmd]
        log.debug(f"[{self.label or 'probe'}] ? {shlex.join(argv)}")
        try:
            result = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                env=self._env(env),
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as exc:
            # Tool not installed yet: the queried state does not exist.
            return subprocess.CompletedProcess(args=argv, returncode=127, stdout="", stderr=str(exc))
        log.debug(f"[{self.label or 'probe'}][exit {result.returncode}]")
        return result

    def succeeds(self, cmd: Cmd, *, env: Optional[Dict[str, str]] = None) -> bool:
        return self.probe(cmd, env=env).returncode == 0

    def output(self, cmd: Cmd, *, env: Optional[Dict[str, str]] = None) -> str:
        """stdout of a query that must succeed."""
        result = self.probe(cmd, env=env)
        if result.returncode != 0:
            raise CommandError(cmd, result.returncode, result.stdout, result.stderr)
        return result.stdout
