# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/config/models.py

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, HttpUrl


class ForemanServer(BaseModel):
    """Connection details for the Foreman control plane."""

    url: HttpUrl
    username: Optional[str] = None
    password: Optional[str] = None
    verify_tls: bool = True
    timeout_seconds: int = Field(default=30, ge=1)

    # taxonomy added to every create/update body when both are set
    location_id: Optional[int] = None
    organization_id: Optional[int] = None

    model_config = {
        "extra": "forbid",
    }


class InterfaceSpec(BaseModel):
    id: int = 0
    ip: str = ""
    mac: str = ""
    name: str = ""
    identifier: str = ""
    subnet_id: int = Field(default=0, ge=0)
    primary: bool = False
    managed: bool = False
    provision: bool = False
    virtual: bool = False

    # BMC credentials, only meaningful when type == "bmc"
    username: str = ""
    password: str = ""

    type: Literal["interface", "bmc", "bond", "bridge"] = "interface"
    bmc_provider: Literal["", "IPMI"] = ""

    model_config = {
        "extra": "forbid",
    }


class HostSpec(BaseModel):
    name: str
    # state file name, defaults to the host name. To rename a host, set it to
    # the old name and change `name`.
    key: Optional[str] = Field(default=None, min_length=1, pattern=r"^[A-Za-z0-9._-]+$")
    comment: str = ""
    domain_id: Optional[int] = None
    environment_id: Optional[int] = None
    hostgroup_id: Optional[int] = None
    operatingsystem_id: Optional[int] = None

    enable_bmc: bool = False                 # power off, PXE boot, power on
    manage_power_operations: bool = True     # False leaves power state alone
    retry_count: int = Field(default=2, ge=1)

    interfaces: List[InterfaceSpec] = Field(default_factory=list)

    @property
    def state_key(self) -> str:
        return self.key or self.name

    model_config = {
        "extra": "forbid",
    }


class ReconcileSettings(BaseModel):
    settle_delay_seconds: float = Field(default=3.0, ge=0)
    power_retry_delay_seconds: float = Field(default=1.0, ge=0)
    delete_poll_interval_seconds: float = Field(default=2.0, ge=0)
    release_interfaces_on_delete: bool = True

    model_config = {
        "extra": "forbid",
    }


class HostSyncConfig(BaseModel):
    server: ForemanServer
    settings: ReconcileSettings = ReconcileSettings()
    hosts: List[HostSpec] = Field(default_factory=list)

    def by_name(self) -> Dict[str, HostSpec]:
        """
        Returns a dictionary mapping each host name to its HostSpec.
        """
        return {h.name: h for h in self.hosts}
