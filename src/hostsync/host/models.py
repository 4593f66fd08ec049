# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/host/models.py

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Union


# ---------------------------------------------------------------------
# Interfaces
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class NetworkInterface:
    """
    One network interface owned by a host.

    Equality and hashing cover every attribute except ``destroy`` so that the
    collection can be handled as a plain set. ``destroy`` only tells the
    control plane to drop the interface and is never persisted.
    """
    id: int = 0
    ip: str = ""
    mac: str = ""
    name: str = ""
    identifier: str = ""
    subnet_id: int = 0
    primary: bool = False
    managed: bool = False
    provision: bool = False
    virtual: bool = False
    username: str = ""
    password: str = ""
    type: str = "interface"
    provider: str = ""
    destroy: bool = field(default=False, compare=False)

    def tagged_for_removal(self) -> "NetworkInterface":
        return replace(self, destroy=True)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "identifier": self.identifier,
            "name": self.name,
            "managed": self.managed,
            "provision": self.provision,
            "virtual": self.virtual,
            "primary": self.primary,
            "ip": self.ip,
            "mac": self.mac,
            "type": self.type,
            "provider": self.provider,
        }
        if self.id:
            payload["id"] = self.id
        if self.subnet_id:
            payload["subnet_id"] = self.subnet_id
        if self.username:
            payload["username"] = self.username
        if self.password:
            payload["password"] = self.password
        # only sent when true, the API treats any presence as a removal request
        if self.destroy:
            payload["_destroy"] = True
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "NetworkInterface":
        return cls(
            id=int(data.get("id") or 0),
            ip=data.get("ip") or "",
            mac=data.get("mac") or "",
            name=data.get("name") or "",
            identifier=data.get("identifier") or "",
            subnet_id=int(data.get("subnet_id") or 0),
            primary=bool(data.get("primary", False)),
            managed=bool(data.get("managed", False)),
            provision=bool(data.get("provision", False)),
            virtual=bool(data.get("virtual", False)),
            username=data.get("username") or "",
            password=data.get("password") or "",
            type=data.get("type") or "interface",
            provider=data.get("provider") or data.get("bmc_provider") or "",
        )

    def to_state(self) -> Dict[str, Any]:
        d = asdict(self)
        d.pop("destroy")
        return d


def sort_key(nic: NetworkInterface) -> tuple:
    return (nic.identifier, nic.mac, nic.ip, nic.name, nic.id)


# ---------------------------------------------------------------------
# Host
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class Host:
    name: str
    id: Optional[int] = None
    comment: str = ""
    domain_id: Optional[int] = None
    environment_id: Optional[int] = None
    hostgroup_id: Optional[int] = None
    operatingsystem_id: Optional[int] = None
    build: bool = True
    interfaces: tuple = ()

    # local options, never sent to the control plane
    enable_bmc: bool = False
    manage_power_operations: bool = True
    retry_count: int = 2

    def to_payload(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "name": self.name,
            "comment": self.comment,
            "build": self.build,
        }
        for key in ("domain_id", "environment_id", "hostgroup_id", "operatingsystem_id"):
            value = getattr(self, key)
            if value:
                body[key] = value
        if self.interfaces:
            body["interfaces_attributes"] = [nic.to_payload() for nic in self.interfaces]
        return body

    @classmethod
    def from_payload(cls, data: Dict[str, Any], template: Optional["Host"] = None) -> "Host":
        """
        Decode a host record returned by the control plane.

        Responses list interfaces under ``interfaces`` while requests use
        ``interfaces_attributes``; both are accepted. Local options are
        carried over from ``template`` when given.
        """
        raw_nics = data.get("interfaces")
        if raw_nics is None:
            raw_nics = data.get("interfaces_attributes") or []
        base = template or cls(name="")
        return replace(
            base,
            id=data.get("id") or base.id,
            name=data.get("name") or base.name,
            comment=data.get("comment") or "",
            domain_id=data.get("domain_id"),
            environment_id=data.get("environment_id"),
            hostgroup_id=data.get("hostgroup_id"),
            operatingsystem_id=data.get("operatingsystem_id"),
            build=bool(data.get("build", base.build)),
            interfaces=tuple(NetworkInterface.from_payload(n) for n in raw_nics),
        )


# ---------------------------------------------------------------------
# Power commands
# ---------------------------------------------------------------------
POWER_ON = "on"
POWER_OFF = "off"
BOOT_PXE = "pxe"


@dataclass(frozen=True)
class PowerOff:
    endpoint = "power"

    def body(self) -> Dict[str, Any]:
        return {"power_action": POWER_OFF}


@dataclass(frozen=True)
class PowerOn:
    endpoint = "power"

    def body(self) -> Dict[str, Any]:
        return {"power_action": POWER_ON}


@dataclass(frozen=True)
class SetBootDevice:
    device: str = BOOT_PXE
    endpoint = "boot"

    def body(self) -> Dict[str, Any]:
        return {"device": self.device}


PowerCommand = Union[PowerOff, SetBootDevice, PowerOn]


# ---------------------------------------------------------------------
# Progress
# ---------------------------------------------------------------------
class Phase(str, Enum):
    SCALAR_FIELDS = "scalar_fields"
    INTERFACES = "interfaces"
    BMC_OUTCOME = "bmc_outcome"


@dataclass(frozen=True)
class ReconciliationProgress:
    """Phases durably applied during one reconciliation attempt."""
    completed: FrozenSet[Phase] = frozenset()

    def with_phase(self, *phases: Phase) -> "ReconciliationProgress":
        return ReconciliationProgress(self.completed | frozenset(phases))

    def has(self, phase: Phase) -> bool:
        return phase in self.completed

    @property
    def done(self) -> bool:
        return self.completed == frozenset(Phase)


# ---------------------------------------------------------------------
# Committed state
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class HostState:
    """
    The record persisted between reconciliation attempts.

    ``bmc_success`` stays False until the power sequence has fully completed,
    which is what lets a later attempt resume with only the BMC phase.
    """
    id: int
    name: str
    comment: str = ""
    domain_id: Optional[int] = None
    environment_id: Optional[int] = None
    hostgroup_id: Optional[int] = None
    operatingsystem_id: Optional[int] = None
    interfaces: FrozenSet[NetworkInterface] = frozenset()
    enable_bmc: bool = False
    manage_power_operations: bool = True
    retry_count: int = 2
    bmc_success: bool = False

    @classmethod
    def from_host(cls, host: Host, bmc_success: bool = False) -> "HostState":
        if host.id is None:
            raise ValueError(f"host '{host.name}' has no remote id")
        return cls(
            id=host.id,
            name=host.name,
            comment=host.comment,
            domain_id=host.domain_id,
            environment_id=host.environment_id,
            hostgroup_id=host.hostgroup_id,
            operatingsystem_id=host.operatingsystem_id,
            interfaces=frozenset(replace(n, destroy=False) for n in host.interfaces),
            enable_bmc=host.enable_bmc,
            manage_power_operations=host.manage_power_operations,
            retry_count=host.retry_count,
            bmc_success=bmc_success,
        )

    def to_host(self) -> Host:
        return Host(
            id=self.id,
            name=self.name,
            comment=self.comment,
            domain_id=self.domain_id,
            environment_id=self.environment_id,
            hostgroup_id=self.hostgroup_id,
            operatingsystem_id=self.operatingsystem_id,
            interfaces=tuple(sorted(self.interfaces, key=sort_key)),
            enable_bmc=self.enable_bmc,
            manage_power_operations=self.manage_power_operations,
            retry_count=self.retry_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        # asdict() cannot rebuild a frozenset of dicts
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d["interfaces"] = [n.to_state() for n in sorted(self.interfaces, key=sort_key)]
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HostState":
        data = dict(data)
        nics: Iterable[Dict[str, Any]] = data.pop("interfaces", None) or []
        return cls(interfaces=frozenset(NetworkInterface(**n) for n in nics), **data)
