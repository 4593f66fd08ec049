# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/host/reconciler.py

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional, Tuple

from ..config.models import HostSpec, ReconcileSettings
from ..foreman.errors import NotFoundError
from ..foreman.interface import IForemanClient
from ..observers.dispatcher import EventBus
from ..observers.events import (
    HostCreated,
    HostDeleted,
    HostUpdated,
    HostUpdateSkipped,
    InterfacesRemoved,
    ReconcileFailed,
    new_ctx,
)
from .builder import build_host
from .interfaces import adopt_computed, outgoing_interfaces, restore_credentials
from .models import Host, HostState, Phase, ReconciliationProgress
from .power import PowerSequencer

log = logging.getLogger("hostsync")

# Fields whose change requires an update call. A pending BMC outcome alone
# never does.
UPDATE_FIELDS = (
    "name",
    "comment",
    "domain_id",
    "environment_id",
    "hostgroup_id",
    "operatingsystem_id",
)


class ReconciliationError(RuntimeError):
    """
    A lifecycle call failed part-way.

    ``progress`` lists the phases committed before the failure and ``state`` is
    the last committed record (None when nothing was created).
    """

    def __init__(
        self,
        message: str,
        *,
        progress: ReconciliationProgress,
        state: Optional[HostState] = None,
    ):
        super().__init__(message)
        self.progress = progress
        self.state = state


class HostDeletionTimeout(ReconciliationError):
    pass


@dataclass(frozen=True)
class ReconcileResult:
    state: HostState
    progress: ReconciliationProgress


def needs_update(desired: Host, prior: HostState) -> bool:
    for name in UPDATE_FIELDS:
        if getattr(desired, name) != getattr(prior, name):
            return True
    return frozenset(desired.interfaces) != prior.interfaces


class HostReconciler:
    """
    Create/read/update/delete entry points for one host.

    Each phase (scalar fields, interfaces, BMC outcome) is committed only after
    its remote call succeeded, so a failed attempt can be retried without
    repeating side effects that already happened.
    """

    def __init__(
        self,
        client: IForemanClient,
        settings: Optional[ReconcileSettings] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        bus: Optional[EventBus] = None,
        run_id: Optional[str] = None,
    ):
        self.client = client
        self.settings = settings or ReconcileSettings()
        self.sleep = sleep
        self.bus = bus or EventBus()
        self.run_id = run_id
        self.context = getattr(client, "base_url", None)

    def _ctx(self, env: str) -> Dict[str, Any]:
        return new_ctx(env, self.context, run_id=self.run_id)

    def _failure(
        self,
        ctx: Dict[str, Any],
        name: str,
        message: str,
        progress: ReconciliationProgress,
        state: Optional[HostState],
        exc: Exception,
    ) -> ReconciliationError:
        log.error("%s: %s", message, exc)
        self.bus.emit(ReconcileFailed(
            **ctx,
            name=name,
            completed=sorted(p.value for p in progress.completed),
            error=str(exc),
        ))
        return ReconciliationError(f"{message}: {exc}", progress=progress, state=state)

    # ----------------------------
    # Power phase
    # ----------------------------
    def _run_power(
        self,
        ctx: Dict[str, Any],
        state: HostState,
        progress: ReconciliationProgress,
    ) -> Tuple[HostState, ReconciliationProgress]:
        if not state.manage_power_operations:
            log.info("Power operations not managed for host %s, skipping", state.name)
            return replace(state, bmc_success=True), progress.with_phase(Phase.BMC_OUTCOME)

        host = state.to_host()
        log.debug("Running power sequence for host %s (enable_bmc=%s)", host.name, host.enable_bmc)
        sequencer = PowerSequencer(
            self.client,
            settle_delay=self.settings.settle_delay_seconds,
            sleep=self.sleep,
            bus=self.bus,
            ctx=ctx,
        )
        try:
            sequencer.run(host)
        except Exception as e:
            raise self._failure(
                ctx, host.name, f"Power sequence failed for host {host.name}", progress, state, e,
            ) from e

        return replace(state, bmc_success=True), progress.with_phase(Phase.BMC_OUTCOME)

    # ----------------------------
    # Lifecycle
    # ----------------------------
    def create(self, spec: HostSpec) -> ReconcileResult:
        ctx = self._ctx("create")
        progress = ReconciliationProgress()
        host = build_host(spec)
        log.debug("Creating host: %s", host.name)

        try:
            created = self.client.create_host(host, host.retry_count)
            created = replace(created, interfaces=restore_credentials(created.interfaces, host.interfaces))
            state = HostState.from_host(created, bmc_success=False)
        except Exception as e:
            raise self._failure(ctx, host.name, f"Failed to create host {host.name}", progress, None, e) from e

        # scalar fields and interfaces travel in one request
        progress = progress.with_phase(Phase.SCALAR_FIELDS, Phase.INTERFACES)
        self.bus.emit(HostCreated(**ctx, name=state.name, host_id=state.id))
        log.info("Created host %s (id=%s)", state.name, state.id)

        state, progress = self._run_power(ctx, state, progress)
        return ReconcileResult(state=state, progress=progress)

    def read(self, prior: HostState) -> Optional[HostState]:
        """Refresh a committed record. Returns None when the host is gone."""
        ctx = self._ctx("read")
        try:
            remote = self.client.read_host(prior.id)
        except NotFoundError:
            log.warning("Host %s (id=%s) not found, dropping from state", prior.name, prior.id)
            return None
        except Exception as e:
            raise self._failure(
                ctx, prior.name, f"Failed to read host {prior.name}", ReconciliationProgress(), prior, e,
            ) from e

        remote = replace(
            remote,
            id=remote.id or prior.id,
            interfaces=restore_credentials(remote.interfaces, prior.interfaces),
            enable_bmc=prior.enable_bmc,
            manage_power_operations=prior.manage_power_operations,
            retry_count=prior.retry_count,
        )
        return HostState.from_host(remote, bmc_success=prior.bmc_success)

    def update(self, spec: HostSpec, prior: HostState) -> ReconcileResult:
        ctx = self._ctx("update")
        progress = ReconciliationProgress()

        desired = build_host(spec, host_id=prior.id)
        desired = replace(desired, interfaces=tuple(adopt_computed(prior.interfaces, desired.interfaces)))
        state = replace(
            prior,
            enable_bmc=desired.enable_bmc,
            manage_power_operations=desired.manage_power_operations,
            retry_count=desired.retry_count,
        )

        if needs_update(desired, prior):
            outgoing = outgoing_interfaces(prior.interfaces, desired.interfaces)
            removed = [n for n in outgoing if n.destroy]
            if removed:
                log.info("Removing %d interface(s) from host %s", len(removed), desired.name)
                self.bus.emit(InterfacesRemoved(
                    **ctx,
                    name=desired.name,
                    identifiers=[n.identifier or n.mac or str(n.id) for n in removed],
                ))

            try:
                updated = self.client.update_host(replace(desired, interfaces=tuple(outgoing)), desired.retry_count)
            except Exception as e:
                raise self._failure(
                    ctx, desired.name, f"Failed to update host {desired.name}", progress, prior, e,
                ) from e

            updated = replace(updated, interfaces=restore_credentials(updated.interfaces, desired.interfaces))
            state = HostState.from_host(updated, bmc_success=prior.bmc_success)
            self.bus.emit(HostUpdated(**ctx, name=state.name, host_id=state.id))
            log.info("Updated host %s (id=%s)", state.name, state.id)
        else:
            log.debug("No field changes for host %s, skipping update call", desired.name)
            self.bus.emit(HostUpdateSkipped(**ctx, name=desired.name, host_id=prior.id))

        progress = progress.with_phase(Phase.SCALAR_FIELDS, Phase.INTERFACES)

        if state.bmc_success:
            return ReconcileResult(state=state, progress=progress.with_phase(Phase.BMC_OUTCOME))

        log.info("BMC outcome for host %s not committed yet, resuming power sequence", state.name)
        state, progress = self._run_power(ctx, state, progress)
        return ReconcileResult(state=state, progress=progress)

    def delete(self, prior: HostState) -> None:
        ctx = self._ctx("delete")
        progress = ReconciliationProgress()
        host = prior.to_host()

        try:
            if prior.interfaces and self.settings.release_interfaces_on_delete:
                released = outgoing_interfaces(prior.interfaces, ())
                self.client.update_host(replace(host, interfaces=tuple(released)), host.retry_count)
            self.client.delete_host(prior.id)
        except NotFoundError:
            log.info("Host %s (id=%s) already gone", prior.name, prior.id)
            self.bus.emit(HostDeleted(**ctx, name=prior.name, host_id=prior.id))
            return
        except Exception as e:
            raise self._failure(ctx, prior.name, f"Failed to delete host {prior.name}", progress, prior, e) from e

        # the control plane deletes asynchronously, wait until reads 404
        for attempt in range(1, prior.retry_count + 1):
            log.debug("Waiting for deletion of host %s #%d", prior.name, attempt)
            try:
                self.client.read_host(prior.id)
            except NotFoundError:
                self.bus.emit(HostDeleted(**ctx, name=prior.name, host_id=prior.id))
                log.info("Deleted host %s (id=%s)", prior.name, prior.id)
                return
            except Exception as e:
                raise self._failure(
                    ctx, prior.name, f"Failed to confirm deletion of host {prior.name}", progress, prior, e,
                ) from e
            self.sleep(self.settings.delete_poll_interval_seconds)

        wait = prior.retry_count * self.settings.delete_poll_interval_seconds
        raise HostDeletionTimeout(
            f"Host {prior.name} still present {wait}s after delete",
            progress=progress,
            state=prior,
        )
