# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/deploy/steps.py

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional

from ..config.models import RunConfiguration
from .errors import InvalidStepError

STEP_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_.-]*$")


@dataclass(frozen=True)
class StepResult:
    """
    Outcome a body may return instead of None.

    "unchanged" is still a success: the target state was already in place.
    """

    ok: bool
    changed: bool = True
    message: Optional[str] = None

    @classmethod
    def done(cls, message: Optional[str] = None) -> "StepResult":
        return cls(ok=True, changed=True, message=message)

    @classmethod
    def unchanged(cls, message: Optional[str] = None) -> "StepResult":
        return cls(ok=True, changed=False, message=message)

    @classmethod
    def failed(cls, reason: str) -> "StepResult":
        return cls(ok=False, changed=False, message=reason)


StepBody = Callable[[RunConfiguration], Optional[StepResult]]


@dataclass(frozen=True)
class Step:
    """
    One named unit of provisioning work.

    The id is the ledger key and must stay stable across releases.
    The body must be idempotent: running it twice with the same
    configuration ends in the same state as running it once.
    """

    id: str
    body: StepBody
    description: str = ""
    position: int = 0

    def __post_init__(self) -> None:
        if not STEP_ID_PATTERN.match(self.id or ""):
            raise InvalidStepError(
                f"Step id {self.id!r} must match {STEP_ID_PATTERN.pattern}"
            )
        if not callable(self.body):
            raise InvalidStepError(f"Step '{self.id}' body is not callable")

    @property
    def label(self) -> str:
        return self.description or self.id


def step(step_id: str, description: str = "") -> Callable[[StepBody], StepBody]:
    """
    Decorator tagging a stage method as a step body. The registry picks up
    the tag when it builds the ordered sequence.
    """
    def _wrap(fn: StepBody) -> StepBody:
        desc = description
        if not desc and fn.__doc__:
            desc = fn.__doc__.strip().splitlines()[0]
        fn.__step_id__ = step_id  # type: ignore[attr-defined]
        fn.__step_description__ = desc  # type: ignore[attr-defined]
        return fn
    return _wrap
