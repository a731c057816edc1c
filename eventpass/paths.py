from __future__ import annotations

import sys
from pathlib import Path


def app_root() -> Path:
    """Return the base directory for reading/writing app data.

    - When frozen (PyInstaller), use the executable directory.
    - Otherwise, use current working directory so local runs behave intuitively.
    """
    try:
        if getattr(sys, "frozen", False):
            return Path(sys.executable).resolve().parent
    except Exception:
        pass
    return Path.cwd()


def config_dir() -> Path:
    return app_root() / "setting"


def config_file() -> Path:
    return config_dir() / "config.json"


def output_dir() -> Path:
    return app_root() / "output_passes"


PENDING_QUEUE_FILENAME = "pending_passes.csv"


def pending_queue_file() -> Path:
    return config_dir() / PENDING_QUEUE_FILENAME


def ensure_dirs() -> None:
    # Create expected folders if missing
    for d in (config_dir(), output_dir()):
        try:
            d.mkdir(parents=True, exist_ok=True)
        except Exception:
            pass
