# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/cloudstep/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from cloudstep.config.bootstrap import StaleLedgerError, acquire_configuration
from cloudstep.config.settings import EngineSettings, load_settings
from cloudstep.config.store import ConfigStoreError, SecretStore
from cloudstep.deploy.engine import WorkflowEngine
from cloudstep.deploy.errors import StepExecutionError
from cloudstep.deploy.registry import StepRegistry
from cloudstep.execution.runner import CommandRunner
from cloudstep.host.openstack_cli import OpenStackClient
from cloudstep.host.toolkit import HostToolkit
from cloudstep.ledger.file import FileLedger
from cloudstep.logging.log import init_logging
from cloudstep.observers.console import ConsoleObserver
from cloudstep.observers.dispatcher import EventBus
from cloudstep.observers.jsonfile import JsonFileObserver
from cloudstep.observers.logger import LoggerObserver
from cloudstep.openstack.registry import build_openstack_steps
from cloudstep.openstack.endpoints import admin_credentials
from cloudstep.openstack.summary import final_info, render_verification, verify_installation
from cloudstep.prompt.collector import ConfigurationAbandoned, InteractivePromptCollector
from cloudstep.prompt.preflight import PreconditionDeclined, confirm_warnings, is_root, run_preflight
from cloudstep.utils.execution import ExecutionContext

# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Resumable OpenStack all-in-one installer", no_args_is_help=True)


def _settings(
    config_file: Optional[Path],
    state_file: Optional[Path],
    log_dir: Optional[Path] = None,
    dry_run: bool = False,
    debug: bool = False,
) -> EngineSettings:
    return load_settings(
        config_file=config_file,
        state_file=state_file,
        log_dir=log_dir,
        dry_run=dry_run,
        debug=debug,
    )


def _registry(settings: EngineSettings) -> StepRegistry:
    # Building the sequence never touches the host.
    host = HostToolkit(runner=CommandRunner(dry_run=True), rc_dir=settings.rc_dir)
    return build_openstack_steps(host)


def _fail(message: str) -> None:
    typer.secho(message, fg="red", err=True)
    raise typer.Exit(1)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def install(
    config_file: Optional[Path] = typer.Option(None, "--config-file", help="Saved run configuration (YAML)"),
    state_file: Optional[Path] = typer.Option(None, "--state-file", help="Completion ledger"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Probe only; record nothing"),
    debug: bool = typer.Option(False, "--debug"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Continue past preflight warnings"),
):
    """Run every step not yet recorded as complete."""
    settings = _settings(config_file, state_file, log_dir, dry_run, debug)
    if not settings.dry_run and not is_root():
        _fail("[ERROR] This command must be run as root")

    logger, run_id, log_path = init_logging(base_dir=settings.log_dir, verbose=settings.debug)
    typer.echo("")
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo("")

    bus = EventBus(observers=[
        ConsoleObserver(),
        LoggerObserver(logger),
        JsonFileObserver(settings.log_dir / f"{run_id}.jsonl"),
    ])
    runner = CommandRunner(dry_run=settings.dry_run)
    host = HostToolkit(runner=runner, rc_dir=settings.rc_dir)
    store = SecretStore(settings.config_file)
    ledger = FileLedger(settings.state_file)

    try:
        confirm_warnings(run_preflight(), assume_yes=yes)
        cfg = acquire_configuration(
            store, ledger, InteractivePromptCollector(runner), bus=bus, run_id=run_id
        )
        engine = WorkflowEngine(
            ledger, bus=bus, ctx=ExecutionContext(dry_run=settings.dry_run, run_id=run_id)
        )
        engine.run(build_openstack_steps(host), cfg)
    except StepExecutionError as exc:
        typer.secho(f"step '{exc.step_id}' failed: {exc.cause}", fg="red", err=True)
        typer.echo(f"Full log: {log_path}", err=True)
        typer.echo("Fix the cause and re-run; completed steps will be skipped.", err=True)
        raise typer.Exit(1)
    except (PreconditionDeclined, ConfigurationAbandoned, StaleLedgerError, ConfigStoreError) as exc:
        _fail(f"[ERROR] {exc}")

    if settings.dry_run:
        typer.echo("Dry run finished; nothing was recorded.")
        return

    admin = OpenStackClient(runner, admin_credentials(cfg))
    typer.echo(render_verification(verify_installation(admin)))
    typer.echo(final_info(cfg, settings.rc_dir))


@app.command()
def status(
    config_file: Optional[Path] = typer.Option(None, "--config-file"),
    state_file: Optional[Path] = typer.Option(None, "--state-file"),
):
    """Show which steps are recorded as complete."""
    settings = _settings(config_file, state_file)
    ledger = FileLedger(settings.state_file)
    registry = _registry(settings)
    done = ledger.completed()

    has_cfg = SecretStore(settings.config_file).exists()
    typer.echo(f"Configuration: {settings.config_file} ({'present' if has_cfg else 'absent'})")
    typer.echo(f"Ledger       : {settings.state_file}")
    typer.echo("")
    for s in registry:
        mark = "x" if s.id in done else " "
        typer.echo(f"  [{mark}] {s.position:02d} {s.id}")

    unknown = sorted(done - set(registry.ids()))
    if unknown:
        typer.echo("")
        typer.echo(f"Unrecognised ledger entries: {', '.join(unknown)}")

    complete = sum(1 for s in registry if s.id in done)
    typer.echo("")
    typer.echo(f"{complete}/{len(registry)} steps complete")


@app.command()
def steps():
    """List the step sequence in execution order."""
    for s in _registry(load_settings()):
        typer.echo(f"{s.position:02d}  {s.id:<28} {s.description}")


@app.command()
def reset(
    config_file: Optional[Path] = typer.Option(None, "--config-file"),
    state_file: Optional[Path] = typer.Option(None, "--state-file"),
    include_config: bool = typer.Option(
        False, "--include-config", help="Also delete the saved configuration and its secrets"
    ),
    yes: bool = typer.Option(False, "--yes", "-y"),
):
    """Forget completed steps so the next install starts from the top."""
    settings = _settings(config_file, state_file)
    targets = [settings.state_file] + ([settings.config_file] if include_config else [])
    if not yes and not typer.confirm(f"Delete {', '.join(str(t) for t in targets)}?", default=False):
        raise typer.Exit(1)

    FileLedger(settings.state_file).reset()
    if include_config:
        SecretStore(settings.config_file).discard()
    typer.echo(f"Removed {', '.join(str(t) for t in targets)}")


@app.command("show-config")
def show_config(
    config_file: Optional[Path] = typer.Option(None, "--config-file"),
    secrets: bool = typer.Option(False, "--secrets", help="Print every generated secret"),
):
    """Print the saved run configuration."""
    settings = _settings(config_file, None)
    cfg = SecretStore(settings.config_file).load()
    if cfg is None:
        _fail(f"No configuration at {settings.config_file}")

    for k, v in cfg.summary().items():
        typer.echo(f"{k}: {v}")
    if secrets:
        for k, v in cfg.secrets.model_dump().items():
            typer.echo(f"{k}: {v}")


def main() -> None:
    app()
