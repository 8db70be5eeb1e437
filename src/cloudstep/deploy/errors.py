# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/deploy/errors.py
from __future__ import annotations


class WorkflowError(RuntimeError):
    """Base class for workflow engine failures."""


class DuplicateStepError(ValueError):
    pass


class InvalidStepError(ValueError):
    pass


class StepFailure(RuntimeError):
    """Raised by the engine when a body reports a failed StepResult."""


class StepExecutionError(WorkflowError):
    """A step body failed; the run was aborted at this step."""

    def __init__(self, step_id: str, position: int, cause: BaseException, report=None):
        self.step_id = step_id
        self.position = position
        self.cause = cause
        self.report = report
        super().__init__(f"step '{step_id}' (#{position}) failed: {cause}")
