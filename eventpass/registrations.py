from __future__ import annotations

import csv
from pathlib import Path
from typing import Dict, List, Set, Tuple

from .codes import DEFAULT_MAX_ATTEMPTS, generate_unique_code
from .models import PassInput, parse_timestamp

COLUMNS = [
    "first_name", "surname", "email", "mobile_number", "event_name",
    "event_start", "event_end", "venue", "unique_code", "registered_at",
]
REQUIRED = ["first_name", "surname", "email", "event_name"]


def load_registrations_csv(csv_path: str | Path, max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> List[PassInput]:
    """Read registrations; rows without a unique code get a fresh one."""
    path = Path(csv_path)
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        reader = csv.DictReader(f)
        # case-insensitive mapping for columns
        low_map = {str(h).strip().lower(): h for h in (reader.fieldnames or []) if h is not None}
        missing = [c for c in REQUIRED if c not in low_map]
        if missing:
            raise ValueError(f"CSV is missing required columns: {', '.join(missing)}")
        records: List[Tuple[int, Dict[str, str]]] = []
        for line_no, r in enumerate(reader, start=2):
            values = {c: str(r.get(low_map[c]) or "").strip() if c in low_map else "" for c in COLUMNS}
            if any(values.values()):
                records.append((line_no, values))

    # explicit codes are reserved before any are generated
    seen: Set[str] = set()
    for line_no, values in records:
        code = values["unique_code"].upper()
        if not code:
            continue
        if code in seen:
            raise ValueError(f"line {line_no}: duplicate unique_code {code}")
        seen.add(code)

    rows: List[PassInput] = []
    for line_no, values in records:
        code = values["unique_code"].upper()
        if not code:
            code = generate_unique_code(lambda c: c in seen, max_attempts)
            seen.add(code)
        try:
            rows.append(PassInput(
                first_name=values["first_name"],
                surname=values["surname"],
                email=values["email"].lower(),
                mobile_number=values["mobile_number"],
                event_name=values["event_name"],
                event_start=parse_timestamp(values["event_start"]),
                event_end=parse_timestamp(values["event_end"]),
                venue=values["venue"],
                unique_code=code,
                registered_at=parse_timestamp(values["registered_at"]),
            ))
        except ValueError as e:
            raise ValueError(f"line {line_no}: {e}") from e
    return rows


def export_template_csv(path: str | Path) -> None:
    path = Path(path)
    with path.open("w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        # header row only
        writer.writerow(COLUMNS)
