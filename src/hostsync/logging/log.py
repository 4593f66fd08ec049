# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/hostsync/logging/log.py

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path

KEEP_RUNS = 50

FORMAT = "%(asctime)s | %(levelname)-7s | %(message)s"
DATEFMT = "%Y-%m-%d %H:%M:%S"


def _prune(base_dir: Path, name: str, keep: int) -> None:
    """Drop the oldest run logs (and their event files) beyond ``keep``."""
    runs = sorted(base_dir.glob(f"{name}-*.log"), key=lambda p: p.stat().st_mtime)
    for old in runs[:-keep] if keep > 0 else runs:
        run_id = old.stem.split("-", 3)[-1]
        old.unlink(missing_ok=True)
        (base_dir / f"{run_id}.jsonl").unlink(missing_ok=True)


def init_logging(
    *,
    base_dir: Path | None = None,
    name: str = "hostsync",
    verbose: bool = False,
    keep: int = KEEP_RUNS,
) -> tuple[logging.Logger, str, Path]:
    """
    One log file per run under ``~/.hostsync/logs`` holding the full DEBUG
    trace (request bodies with BMC passwords redacted), plus a console handler
    at INFO, or DEBUG when ``verbose``.

    Returns ``(logger, run_id, log_path)``; the run id is shared with the
    structured events of the same run.
    """
    run_id = str(uuid.uuid4())

    base_dir = base_dir or Path.home() / ".hostsync" / "logs"
    base_dir.mkdir(parents=True, exist_ok=True)
    _prune(base_dir, name, keep - 1)

    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    log_path = base_dir / f"{name}-{stamp}-{run_id}.log"

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    logger.propagate = False

    formatter = logging.Formatter(FORMAT, datefmt=DATEFMT)
    for handler, level in (
        (logging.FileHandler(log_path), logging.DEBUG),
        (logging.StreamHandler(), logging.DEBUG if verbose else logging.INFO),
    ):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.info("=== hostsync run %s ===", run_id)
    logger.debug("log_file=%s", log_path)

    return logger, run_id, log_path
