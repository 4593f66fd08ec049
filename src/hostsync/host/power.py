# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/host/power.py

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..foreman.interface import IForemanClient
from ..observers.dispatcher import EventBus
from ..observers.events import (
    PowerCommandAborted,
    PowerCommandStarted,
    PowerCommandSucceeded,
    PowerSequenceCompleted,
    new_ctx,
)
from .models import BOOT_PXE, Host, PowerCommand, PowerOff, PowerOn, SetBootDevice

log = logging.getLogger("hostsync")

# BMCs reject a new command right after the previous one completes
SETTLE_DELAY_SECONDS = 3.0


class SequencerState(str, Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def power_commands(enable_bmc: bool) -> List[PowerCommand]:
    """
    Commands for one power run.

    With BMC management the host is powered off, set to PXE boot and powered
    back on so it re-provisions; otherwise it is just powered on.
    """
    if enable_bmc:
        return [PowerOff(), SetBootDevice(BOOT_PXE), PowerOn()]
    return [PowerOn()]


def command_name(command: PowerCommand) -> str:
    if isinstance(command, SetBootDevice):
        return f"set_boot_device({command.device})"
    if isinstance(command, PowerOff):
        return "power_off"
    return "power_on"


class PowerSequencer:
    """
    Runs an ordered list of power commands against one host.

    The client performs the per-command retry loop; the sequencer stops at the
    first command that still fails and never attempts the rest. Commands that
    already ran are not undone.
    """

    def __init__(
        self,
        client: IForemanClient,
        *,
        settle_delay: float = SETTLE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        bus: Optional[EventBus] = None,
        ctx: Optional[Dict[str, Any]] = None,
    ):
        self.client = client
        self.settle_delay = settle_delay
        self.sleep = sleep
        self.bus = bus or EventBus()
        self.ctx = ctx or new_ctx("power", None)
        self.state = SequencerState.NOT_STARTED
        self.error: Optional[Exception] = None
        self.completed: List[PowerCommand] = []

    def run(self, host: Host, commands: Optional[Sequence[PowerCommand]] = None) -> None:
        if self.state is not SequencerState.NOT_STARTED:
            raise RuntimeError(f"power sequencer already used (state={self.state.value})")
        if commands is None:
            commands = power_commands(host.enable_bmc)

        self.state = SequencerState.RUNNING
        for step, cmd in enumerate(commands, start=1):
            if step > 1:
                log.debug("Waiting %ss before next BMC command", self.settle_delay)
                self.sleep(self.settle_delay)

            name = command_name(cmd)
            self.bus.emit(PowerCommandStarted(**self.ctx, name=host.name, command=name, step=step))
            try:
                self.client.send_power_command(host, cmd, host.retry_count)
            except Exception as e:
                self.state = SequencerState.FAILED
                self.error = e
                log.error("Power command %s failed on host %s: %s", name, host.name, e)
                self.bus.emit(PowerCommandAborted(
                    **self.ctx, name=host.name, command=name, step=step, error=str(e),
                ))
                raise

            self.completed.append(cmd)
            self.bus.emit(PowerCommandSucceeded(**self.ctx, name=host.name, command=name, step=step))

        self.state = SequencerState.SUCCEEDED
        self.bus.emit(PowerSequenceCompleted(
            **self.ctx, name=host.name, commands=[command_name(c) for c in self.completed],
        ))
