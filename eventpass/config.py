from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from .layout import PRESETS, TemplateConstants
from .paths import config_file, ensure_dirs

logger = logging.getLogger(__name__)

DEFAULT_LOGO_URL = "https://eguardian-uae.s3.us-east-2.amazonaws.com/EGUARDIAN-Lanka-Pvt-Ltd-Logo-1-1024x288.jpg"

DEFAULTS: Dict[str, Any] = {
    "logo": {
        "url": DEFAULT_LOGO_URL,
        "timeout": 5.0,
    },
    "template": {
        "preset": "card",     # or 'screen' (legacy preview)
        "overrides": {},      # per-field TemplateConstants overrides
    },
    "document": {"width_mm": 58, "height_mm": 40},
    "qr": {"display_size": 256, "margin": 2},
    "codes": {"max_attempts": 10},
    "output": {"folder": "output_passes"},
    "logging": {"level": "INFO", "folder": "logs", "file": "eventpass.log"},
    "debug": False,
}


class AppConfig:
    def __init__(self, path: Path | str | None = None) -> None:
        ensure_dirs()
        self.path = Path(path) if path is not None else config_file()
        self.data: Dict[str, Any] = json.loads(json.dumps(DEFAULTS))  # deep copy
        if self.path.exists():
            self.load()

    def load(self) -> None:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                incoming = json.load(f)
            self._merge(self.data, incoming)
        except (OSError, ValueError) as e:
            # Keep defaults on error
            logger.warning("Could not read config %s: %s", self.path, e)

    def save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(self.data, f, ensure_ascii=False, indent=2)

    def _merge(self, target: Dict[str, Any], src: Dict[str, Any]) -> None:
        for k, v in src.items():
            if isinstance(v, dict) and isinstance(target.get(k), dict):
                self._merge(target[k], v)
            else:
                target[k] = v

    # Convenience getters/setters
    @property
    def logo_url(self) -> str:
        return str(self.data["logo"]["url"] or "")

    @logo_url.setter
    def logo_url(self, url: str) -> None:
        self.data["logo"]["url"] = url

    @property
    def logo_timeout(self) -> float:
        try:
            return float(self.data["logo"]["timeout"])
        except (TypeError, ValueError):
            return float(DEFAULTS["logo"]["timeout"])

    @logo_timeout.setter
    def logo_timeout(self, seconds: float) -> None:
        self.data["logo"]["timeout"] = float(seconds)

    @property
    def preset(self) -> str:
        return str(self.data["template"]["preset"]).lower()

    @preset.setter
    def preset(self, name: str) -> None:
        if name not in PRESETS:
            raise ValueError(f"Unknown template preset {name!r}")
        self.data["template"]["preset"] = name

    def template(self) -> TemplateConstants:
        base = PRESETS.get(self.preset)
        if base is None:
            raise ValueError(f"Unknown template preset {self.preset!r}")
        overrides = self.data["template"].get("overrides") or {}
        return base.with_overrides(overrides) if overrides else base

    @property
    def document_size_mm(self) -> tuple[float, float]:
        doc = self.data["document"]
        return float(doc["width_mm"]), float(doc["height_mm"])

    @property
    def qr_display_size(self) -> int:
        return int(self.data["qr"]["display_size"])

    @property
    def qr_margin(self) -> int:
        return int(self.data["qr"]["margin"])

    @property
    def max_code_attempts(self) -> int:
        return max(1, int(self.data["codes"]["max_attempts"]))

    @property
    def output_folder(self) -> str:
        return str(self.data["output"]["folder"])

    @output_folder.setter
    def output_folder(self, s: str) -> None:
        self.data["output"]["folder"] = s

    @property
    def log_level(self) -> str:
        return str(self.data["logging"]["level"]).upper()

    @log_level.setter
    def log_level(self, name: str) -> None:
        if not isinstance(logging.getLevelName(name.upper()), int):
            raise ValueError(f"Unknown log level {name!r}")
        self.data["logging"]["level"] = name.upper()

    @property
    def log_folder(self) -> str:
        return str(self.data["logging"]["folder"])

    @property
    def log_file(self) -> str:
        return str(self.data["logging"]["file"])

    @property
    def debug(self) -> bool:
        return bool(self.data.get("debug", False))

    @debug.setter
    def debug(self, v: bool) -> None:
        self.data["debug"] = bool(v)
