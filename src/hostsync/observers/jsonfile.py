from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Dict, List
from .dispatcher import Observer
from .events import BaseEvent


class JsonFileObserver(Observer):
    """Appends every event as one JSON object per line (``<run_id>.jsonl``)."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def notify(self, event: BaseEvent) -> None:
        record = {"type": type(event).__name__, **event.dict()}
        with self.path.open("a") as f:
            f.write(json.dumps(record, sort_keys=True, default=str) + "\n")


def read_events(path: str | Path) -> List[Dict[str, Any]]:
    p = Path(path)
    if not p.is_file():
        return []
    return [json.loads(line) for line in p.read_text().splitlines() if line.strip()]
