# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/cli/app.py
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from hostsync.config.loader import load_config
from hostsync.config.models import HostSpec, HostSyncConfig
from hostsync.foreman.client import ForemanClient
from hostsync.host.reconciler import HostReconciler, ReconciliationError
from hostsync.logging.log import init_logging
from hostsync.observers.dispatcher import EventBus
from hostsync.observers.jsonfile import JsonFileObserver
from hostsync.observers.logger import LoggerObserver
from hostsync.state.store import StateStore


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Foreman host reconciliation CLI")

DEFAULT_STATE_DIR = Path(".hostsync") / "state"


def make_client(cfg: HostSyncConfig) -> ForemanClient:
    return ForemanClient(cfg.server, retry_delay=cfg.settings.power_retry_delay_seconds)


def _start(debug: bool, log_dir: Optional[Path]):
    logger, run_id, log_path = init_logging(base_dir=log_dir, verbose=debug)

    typer.echo("")
    typer.secho("hostsync run started", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo("")

    bus = EventBus(observers=[
        LoggerObserver(logger),
        JsonFileObserver(log_path.parent / f"{run_id}.jsonl"),
    ])
    return logger, run_id, bus


def _warn_orphans(cfg: HostSyncConfig, store: StateStore) -> None:
    known = {h.state_key for h in cfg.hosts}
    for key, state in store.all().items():
        if key not in known:
            typer.secho(
                f"[{state.name}] state file {store.path_for(key)} (id={state.id}) matches no host in "
                f"the config. If the host was renamed, set `key: {key}` on it.",
                fg=typer.colors.YELLOW,
            )


def _select(cfg: HostSyncConfig, host: Optional[str]) -> List[HostSpec]:
    if host is None:
        return list(cfg.hosts)
    specs = cfg.by_name()
    if host not in specs:
        typer.secho(f"Host '{host}' is not defined in the config", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    return [specs[host]]


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def apply(
    config: str = typer.Argument(..., help="Host definition YAML"),
    state_dir: Path = typer.Option(DEFAULT_STATE_DIR, "--state-dir"),
    host: Optional[str] = typer.Option(None, "--host", help="Only reconcile this host"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Create or update every host in CONFIG."""
    logger, run_id, bus = _start(debug, log_dir)
    cfg = load_config(config)
    store = StateStore(state_dir)
    _warn_orphans(cfg, store)
    reconciler = HostReconciler(make_client(cfg), cfg.settings, bus=bus, run_id=run_id)

    failed: List[str] = []
    for spec in _select(cfg, host):
        prior = store.load(spec.state_key)
        action = "create" if prior is None else "update"
        typer.echo(f"[{spec.name}] {action}...")
        try:
            if prior is None:
                result = reconciler.create(spec)
            else:
                result = reconciler.update(spec, prior)
        except ReconciliationError as e:
            if e.state is not None:
                store.save(spec.state_key, e.state)
            done = ", ".join(sorted(p.value for p in e.progress.completed)) or "none"
            typer.secho(f"[{spec.name}] FAILED (committed: {done}): {e}", fg=typer.colors.RED)
            failed.append(spec.name)
            continue

        store.save(spec.state_key, result.state)
        typer.secho(f"[{spec.name}] OK (id={result.state.id})", fg=typer.colors.GREEN)

    logger.debug("apply finished, failed hosts: %s", failed)
    if failed:
        raise typer.Exit(code=1)


@app.command()
def refresh(
    config: str = typer.Argument(..., help="Host definition YAML"),
    state_dir: Path = typer.Option(DEFAULT_STATE_DIR, "--state-dir"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Re-read every recorded host and rewrite its state file."""
    _, run_id, bus = _start(debug, log_dir)
    cfg = load_config(config)
    store = StateStore(state_dir)
    reconciler = HostReconciler(make_client(cfg), cfg.settings, bus=bus, run_id=run_id)

    failed = False
    for spec in cfg.hosts:
        prior = store.load(spec.state_key)
        if prior is None:
            continue
        try:
            current = reconciler.read(prior)
        except ReconciliationError as e:
            typer.secho(f"[{spec.name}] FAILED: {e}", fg=typer.colors.RED)
            failed = True
            continue

        if current is None:
            store.remove(spec.state_key)
            typer.secho(f"[{spec.name}] gone, state removed", fg=typer.colors.YELLOW)
        else:
            store.save(spec.state_key, current)
            typer.echo(f"[{spec.name}] refreshed")

    if failed:
        raise typer.Exit(code=1)


@app.command()
def destroy(
    config: str = typer.Argument(..., help="Host definition YAML"),
    state_dir: Path = typer.Option(DEFAULT_STATE_DIR, "--state-dir"),
    host: Optional[str] = typer.Option(None, "--host", help="Only delete this host"),
    log_dir: Optional[Path] = typer.Option(None, "--log-dir"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Delete recorded hosts from the control plane."""
    _, run_id, bus = _start(debug, log_dir)
    cfg = load_config(config)
    store = StateStore(state_dir)
    reconciler = HostReconciler(make_client(cfg), cfg.settings, bus=bus, run_id=run_id)

    failed = False
    for spec in _select(cfg, host):
        prior = store.load(spec.state_key)
        if prior is None:
            typer.echo(f"[{spec.name}] no state, nothing to delete")
            continue
        try:
            reconciler.delete(prior)
        except ReconciliationError as e:
            typer.secho(f"[{spec.name}] FAILED: {e}", fg=typer.colors.RED)
            failed = True
            continue
        store.remove(spec.state_key)
        typer.secho(f"[{spec.name}] deleted", fg=typer.colors.GREEN)

    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
