# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/deploy/registry.py

from __future__ import annotations

from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional

from .errors import DuplicateStepError
from .steps import Step, StepBody


class StepRegistry:
    """
    The fixed, total execution order. Steps run in the order they are added;
    positions are assigned here (1-based) and never change afterwards.
    """

    def __init__(self, steps: Optional[Iterable[Step]] = None):
        self._steps: List[Step] = []
        self._by_id: Dict[str, Step] = {}
        for s in steps or ():
            self.add(s)

    def add(self, s: Step) -> Step:
        if s.id in self._by_id:
            raise DuplicateStepError(f"Step '{s.id}' is declared more than once")
        placed = replace(s, position=len(self._steps) + 1)
        self._steps.append(placed)
        self._by_id[placed.id] = placed
        return placed

    def register(self, step_id: str, body: StepBody, description: str = "") -> Step:
        return self.add(Step(id=step_id, body=body, description=description))

    def add_tagged(self, body: StepBody) -> Step:
        """Add a body decorated with @step."""
        step_id = getattr(body, "__step_id__", None)
        if step_id is None:
            raise ValueError(f"{body!r} is not decorated with @step")
        return self.register(step_id, body, getattr(body, "__step_description__", ""))

    def get(self, step_id: str) -> Step:
        return self._by_id[step_id]

    def ids(self) -> List[str]:
        return [s.id for s in self._steps]

    def steps(self) -> List[Step]:
        return list(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, step_id: object) -> bool:
        return step_id in self._by_id


def ordered(steps: Iterable[Step]) -> List[Step]:
    """
    Normalize any iterable of steps into the declared order with positions,
    rejecting duplicates.
    """
    if isinstance(steps, StepRegistry):
        return steps.steps()
    return StepRegistry(steps).steps()
