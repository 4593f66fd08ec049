# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/host/builder.py

from __future__ import annotations

from typing import Optional

from ..config.models import HostSpec, InterfaceSpec
from .models import Host, NetworkInterface


def build_interface(spec: InterfaceSpec) -> NetworkInterface:
    return NetworkInterface(
        id=spec.id,
        ip=spec.ip,
        mac=spec.mac,
        name=spec.name,
        identifier=spec.identifier,
        subnet_id=spec.subnet_id,
        primary=spec.primary,
        managed=spec.managed,
        provision=spec.provision,
        virtual=spec.virtual,
        username=spec.username,
        password=spec.password,
        type=spec.type,
        provider=spec.bmc_provider,
        destroy=False,
    )


def _fk(value: Optional[int]) -> Optional[int]:
    # zero means "unset" on the remote side, same as absent
    return value or None


def build_host(spec: HostSpec, host_id: Optional[int] = None) -> Host:
    """
    Assemble the desired Host record from a validated HostSpec.

    The build flag is always set so the control plane re-provisions on any
    change. Foreign keys are not checked here.
    """
    return Host(
        id=host_id,
        name=spec.name,
        comment=spec.comment,
        domain_id=_fk(spec.domain_id),
        environment_id=_fk(spec.environment_id),
        hostgroup_id=_fk(spec.hostgroup_id),
        operatingsystem_id=_fk(spec.operatingsystem_id),
        build=True,
        interfaces=tuple(build_interface(i) for i in spec.interfaces),
        enable_bmc=spec.enable_bmc,
        manage_power_operations=spec.manage_power_operations,
        retry_count=spec.retry_count,
    )
