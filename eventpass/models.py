from __future__ import annotations

import datetime as dt
import io
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from PIL import Image


def parse_timestamp(value: Any) -> Optional[dt.datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, dt.datetime):
        return value
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    return dt.datetime.fromisoformat(s)


@dataclass(frozen=True)
class PassInput:
    """Everything printed on one pass. Built once per render call, never mutated."""
    first_name: str
    surname: str
    email: str
    mobile_number: str
    event_name: str
    event_start: Optional[dt.datetime]
    event_end: Optional[dt.datetime]
    venue: str
    unique_code: str
    registered_at: Optional[dt.datetime]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}".strip()

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        for k in ("event_start", "event_end", "registered_at"):
            v = d[k]
            d[k] = v.isoformat() if v is not None else None
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PassInput":
        return cls(
            first_name=str(d.get("first_name", "")),
            surname=str(d.get("surname", "")),
            email=str(d.get("email", "")),
            mobile_number=str(d.get("mobile_number") or ""),
            event_name=str(d.get("event_name", "")),
            event_start=parse_timestamp(d.get("event_start")),
            event_end=parse_timestamp(d.get("event_end")),
            venue=str(d.get("venue") or ""),
            unique_code=str(d.get("unique_code", "")),
            registered_at=parse_timestamp(d.get("registered_at")),
        )


@dataclass(frozen=True)
class RenderedArtifact:
    """A PNG-encoded pass image and its pixel size."""
    png: bytes
    width: int
    height: int

    def image(self) -> Image.Image:
        img = Image.open(io.BytesIO(self.png))
        img.load()
        return img


@dataclass(frozen=True)
class PackagedDocument:
    """A one-page PDF whose page is exactly ``width_pt`` x ``height_pt``."""
    pdf: bytes
    width_pt: float
    height_pt: float


@dataclass(frozen=True)
class PassArtifacts:
    code: str
    artifact: RenderedArtifact
    document: Optional[PackagedDocument]
