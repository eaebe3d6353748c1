"""
Shared Utilities
=================
Config I/O, logging, clock and formatting helpers — kept separate from
the scoring rules.
"""

import logging
import time
from pathlib import Path
from typing import Optional

import yaml


_PACKAGE_ROOT = Path(__file__).resolve().parents[1]
_DEFAULT_CONFIG = _PACKAGE_ROOT / "config.yaml"


def load_config(config_path: Optional[str] = None) -> dict:
    """Load YAML config, defaulting to the packaged config file."""
    path = Path(config_path) if config_path else _DEFAULT_CONFIG
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Project-wide logger."""
    logger = logging.getLogger("veritas")
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter(
            "[%(asctime)s] %(levelname)-8s %(name)s — %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def now_ms() -> float:
    """Wall-clock time in milliseconds, the unit every timing window uses."""
    return time.time() * 1000.0


def format_percentage(value: float) -> str:
    """0.1234 -> '12.3%'"""
    return f"{value * 100:.1f}%"
