from __future__ import annotations

import csv
import json
import logging
from pathlib import Path
from typing import Callable, Dict, List, Optional

from .models import PassInput
from .paths import pending_queue_file, ensure_dirs

logger = logging.getLogger(__name__)

FIELDS = ["payload_json", "error"]


def _path(path: Optional[Path]) -> Path:
    if path is not None:
        return path
    ensure_dirs()
    return pending_queue_file()


def append_pending(data: PassInput, error: str = "", path: Optional[Path] = None) -> None:
    """Remember a registration whose pass could not be generated."""
    path = _path(path)
    is_new = not path.exists()
    with path.open("a", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDS)
        if is_new:
            writer.writeheader()
        writer.writerow({"payload_json": json.dumps(data.to_dict(), ensure_ascii=False), "error": error})


def read_pending(path: Optional[Path] = None) -> List[PassInput]:
    path = _path(path)
    items: List[PassInput] = []
    if not path.exists():
        return items
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        for row in reader:
            raw = row.get("payload_json", "")
            if not raw:
                continue
            try:
                items.append(PassInput.from_dict(json.loads(raw)))
            except (ValueError, TypeError) as e:
                # skip broken rows
                logger.warning("Dropping unreadable pending row: %s", e)
    return items


def write_pending(items: List[PassInput], path: Optional[Path] = None) -> None:
    path = _path(path)
    if not items:
        if path.exists():
            path.unlink()
        return
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=FIELDS)
        writer.writeheader()
        for p in items:
            writer.writerow({"payload_json": json.dumps(p.to_dict(), ensure_ascii=False), "error": ""})


def retry_pending(generate: Callable[[PassInput], object], path: Optional[Path] = None) -> Dict[str, int]:
    """Regenerate every queued pass; only the ones that fail again stay queued."""
    remaining: List[PassInput] = []
    done = 0
    for item in read_pending(path):
        try:
            generate(item)
            done += 1
        except Exception as e:
            logger.warning("Retry failed for %s: %s", item.unique_code, e)
            remaining.append(item)
    write_pending(remaining, path)
    return {"done": done, "remaining": len(remaining)}
