# src/hostsync/observers/events.py

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import List, Dict, Any, Optional
from datetime import datetime, timezone
import uuid


# ---------------------------------------------------------------------
# Base context and helper
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class BaseEvent:
    ts: str           # ISO timestamp
    run_id: str       # correlates all events in a single reconciliation attempt
    env: str          # create/update/read/delete
    context: Optional[str]  # control plane URL

    def dict(self) -> Dict[str, Any]:
        return asdict(self)


def new_ctx(env: str, context: Optional[str], run_id: Optional[str] = None) -> Dict[str, Any]:
    return {
        "ts": datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "run_id": run_id or str(uuid.uuid4()),
        "env": env,
        "context": context,
    }


# ---------------------------------------------------------------------
# Host record
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class HostCreated(BaseEvent):
    name: str
    host_id: int

@dataclass(frozen=True)
class HostUpdated(BaseEvent):
    name: str
    host_id: int

@dataclass(frozen=True)
class HostUpdateSkipped(BaseEvent):
    name: str
    host_id: int

@dataclass(frozen=True)
class InterfacesRemoved(BaseEvent):
    name: str
    identifiers: List[str]

@dataclass(frozen=True)
class HostDeleted(BaseEvent):
    name: str
    host_id: int


# ---------------------------------------------------------------------
# Power sequence
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class PowerCommandStarted(BaseEvent):
    name: str
    command: str
    step: int

@dataclass(frozen=True)
class PowerCommandSucceeded(BaseEvent):
    name: str
    command: str
    step: int

@dataclass(frozen=True)
class PowerCommandAborted(BaseEvent):
    name: str
    command: str
    step: int
    error: str

@dataclass(frozen=True)
class PowerSequenceCompleted(BaseEvent):
    name: str
    commands: List[str]


# ---------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------
@dataclass(frozen=True)
class ReconcileFailed(BaseEvent):
    name: str
    completed: List[str]
    error: str
