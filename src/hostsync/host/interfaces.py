# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/host/interfaces.py

from __future__ import annotations

from dataclasses import fields, replace
from typing import Dict, Iterable, List, Set, Tuple

from .models import NetworkInterface, sort_key


def removed_interfaces(
    old: Iterable[NetworkInterface],
    new: Iterable[NetworkInterface],
) -> Set[NetworkInterface]:
    """
    Interfaces recorded previously that have no structurally equal entry in the
    desired collection.

    Identity is the full attribute tuple, not the remote id: an interface whose
    IP changed is reported as removed and its new variant counts as an addition.
    """
    return set(old) - set(new)


def outgoing_interfaces(
    old: Iterable[NetworkInterface],
    new: Iterable[NetworkInterface],
) -> List[NetworkInterface]:
    """
    Build the interface list sent to the control plane.

    Desired interfaces go out as-is with ``destroy`` cleared, followed by a
    destroy-tagged copy of every removed interface.
    """
    desired = [replace(nic, destroy=False) for nic in new]
    removed = sorted(removed_interfaces(old, desired), key=sort_key)
    return desired + [nic.tagged_for_removal() for nic in removed]


# Filled in by the control plane when the caller leaves them unset.
COMPUTED_FIELDS = ("id", "ip", "mac", "name", "subnet_id")


def _matches(prior: NetworkInterface, desired: NetworkInterface) -> bool:
    for f in fields(NetworkInterface):
        if f.name == "destroy":
            continue
        want = getattr(desired, f.name)
        if f.name in COMPUTED_FIELDS and not want:
            continue
        if getattr(prior, f.name) != want:
            return False
    return True


def adopt_computed(
    prior: Iterable[NetworkInterface],
    desired: Iterable[NetworkInterface],
) -> List[NetworkInterface]:
    """
    Replace each desired interface by the recorded one it describes.

    A recorded interface matches when every field the caller set is equal and
    the only differences are computed fields the caller left empty. Each
    recorded interface is adopted at most once; unmatched desired interfaces
    are returned unchanged.
    """
    available = sorted(prior, key=sort_key)
    out: List[NetworkInterface] = []
    for nic in desired:
        match = next((p for p in available if _matches(p, nic)), None)
        if match is None:
            out.append(replace(nic, destroy=False))
        else:
            available.remove(match)
            out.append(replace(match, destroy=False))
    return out


def restore_credentials(
    returned: Iterable[NetworkInterface],
    sent: Iterable[NetworkInterface],
) -> Tuple[NetworkInterface, ...]:
    """
    Copy BMC username/password back onto interfaces read from the control
    plane, which never echoes the password.
    """
    creds: Dict[tuple, NetworkInterface] = {
        (n.mac, n.identifier, n.type): n for n in sent if n.username or n.password
    }
    out = []
    for nic in returned:
        src = creds.get((nic.mac, nic.identifier, nic.type))
        if src is not None and not nic.password:
            nic = replace(nic, username=nic.username or src.username, password=src.password)
        out.append(nic)
    return tuple(out)
