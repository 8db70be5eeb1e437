# src/cloudstep/observers/console.py
from __future__ import annotations

import typer

from .events import BaseEvent, StepFailed, StepSkipped, StepStarted, StepSucceeded, RunSummary


class ConsoleObserver:
    """Short, human-oriented progress lines."""

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, StepSkipped):
            typer.echo(f"[{event.position:02d}] {event.step_id}: already complete, skipping")
        elif isinstance(event, StepStarted):
            typer.echo(f"[{event.position:02d}] {event.step_id}: {event.description}")
        elif isinstance(event, StepSucceeded):
            note = "" if event.recorded else " (dry-run, not recorded)"
            typer.echo(f"[{event.position:02d}] {event.step_id}: done in {event.duration_ms}ms{note}")
        elif isinstance(event, StepFailed):
            typer.secho(f"[{event.position:02d}] {event.step_id}: FAILED: {event.error}", fg="red", err=True)
        elif isinstance(event, RunSummary):
            typer.echo(f"run {event.status}: executed={event.executed} skipped={event.skipped}")
