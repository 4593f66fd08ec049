# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/config/loader.py

import logging
import os
from collections import Counter
from pathlib import Path

import yaml

from .models import HostSyncConfig

log = logging.getLogger("hostsync")

# fallbacks for server credentials left out of both config and secrets
CREDENTIAL_ENV = {
    "username": "FOREMAN_CLIENT_USERNAME",
    "password": "FOREMAN_CLIENT_PASSWORD",
}


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Recursively merge *override* into *base* (mutates base).
    Empty override values never replace what is already there.
    """
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        elif value not in (None, ""):
            base[key] = value
    return base


def _find_secrets_file(config_path: Path) -> Path | None:
    """
    1. HOSTSYNC_SECRETS_FILE (explicit path, skipped with a warning if missing)
    2. secrets.yaml next to the config
    """
    env = os.environ.get("HOSTSYNC_SECRETS_FILE")
    if env:
        p = Path(env)
        if p.is_file():
            return p
        log.warning("HOSTSYNC_SECRETS_FILE=%s does not exist, skipping", env)
        return None

    p = config_path.parent / "secrets.yaml"
    return p if p.is_file() else None


def _load_yaml(path: Path) -> dict:
    """Load a YAML mapping, expanding ${ENV_VAR} references first."""
    data = yaml.safe_load(os.path.expandvars(path.read_text())) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level, got {type(data).__name__}")
    return data


def _apply_credential_env(data: dict) -> None:
    server = data.get("server")
    if not isinstance(server, dict):
        return
    for key, env in CREDENTIAL_ENV.items():
        if not server.get(key) and os.environ.get(env):
            log.debug("Using %s for server.%s", env, key)
            server[key] = os.environ[env]


def _check_unique_hosts(cfg: HostSyncConfig) -> None:
    # state files are keyed by state_key, --host selects by name
    for what, values in (
        ("host names", [h.name for h in cfg.hosts]),
        ("host state keys", [h.state_key for h in cfg.hosts]),
    ):
        dupes = sorted(v for v, c in Counter(values).items() if c > 1)
        if dupes:
            raise ValueError(f"duplicate {what} in config: {', '.join(dupes)}")


def load_config(path: str | Path) -> HostSyncConfig:
    """
    Load and validate a hostsync YAML config.

    Server credentials are resolved in this order: the config itself, a
    ``secrets.yaml`` mirroring its layout (deep-merged), then the
    FOREMAN_CLIENT_USERNAME / FOREMAN_CLIENT_PASSWORD environment variables.
    ``${ENV_VAR}`` placeholders work in both YAML files.
    """
    path = Path(path)
    data = _load_yaml(path)

    secrets_path = _find_secrets_file(path)
    if secrets_path:
        log.debug("Merging secrets from %s", secrets_path)
        _deep_merge(data, _load_yaml(secrets_path))

    _apply_credential_env(data)

    cfg = HostSyncConfig.model_validate(data)
    _check_unique_hosts(cfg)
    log.debug("Loaded %d host(s) from %s", len(cfg.hosts), path)
    return cfg
