# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/state/store.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Dict, Optional

from ..host.models import HostState

log = logging.getLogger("hostsync")


class StateStore:
    """
    One JSON file per host under ``root``, named by the host's state key
    (``HostSpec.state_key``) rather than its display name so a rename updates
    the same record.

    Files hold the last committed HostState, including BMC credentials, and are
    only ever created with mode 0600.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def load(self, key: str) -> Optional[HostState]:
        p = self.path_for(key)
        if not p.is_file():
            return None
        return HostState.from_dict(json.loads(p.read_text()))

    def save(self, key: str, state: HostState) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        p = self.path_for(key)
        tmp = p.with_suffix(".json.tmp")
        tmp.unlink(missing_ok=True)

        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
        with os.fdopen(fd, "w") as f:
            f.write(json.dumps(state.to_dict(), indent=2, sort_keys=True) + "\n")
        tmp.replace(p)
        log.debug("Wrote state for host %s to %s", state.name, p)
        return p

    def remove(self, key: str) -> None:
        p = self.path_for(key)
        if p.exists():
            p.unlink()
            log.debug("Removed state file %s", p)

    def all(self) -> Dict[str, HostState]:
        if not self.root.is_dir():
            return {}
        return {
            p.stem: HostState.from_dict(json.loads(p.read_text()))
            for p in sorted(self.root.glob("*.json"))
        }
