# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
from typing import Protocol
from ..host.models import Host, PowerCommand


class IForemanClient(Protocol):
    """Host lifecycle contract the reconciler depends on."""

    def create_host(self, host: Host, retry_count: int) -> Host: ...
    def read_host(self, host_id: int) -> Host: ...
    def update_host(self, host: Host, retry_count: int) -> Host: ...
    def delete_host(self, host_id: int) -> None: ...
    def send_power_command(self, host: Host, command: PowerCommand, retry_count: int) -> None: ...
