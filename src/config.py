"""Configuration loader — merges config.yaml with .env environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")


def _env(key: str, default: str = "") -> str:
    return os.getenv(key, default)


# ── Paths ─────────────────────────────────────────────────

DATA_DIR = PROJECT_ROOT / "data"


@dataclass
class FractalParams:
    min_size: int = 2
    check_left: bool = True
    check_right: bool = True
    require_right_min_size: bool = False
    max_count: int = 5              # fractals kept per direction
    measure_sides: bool = False
    max_side_count: int = 50        # cap when measuring side runs


@dataclass
class LoggingParams:
    level: str = "INFO"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@dataclass
class ScannerConfig:
    fractals: FractalParams = field(default_factory=FractalParams)
    logging: LoggingParams = field(default_factory=LoggingParams)
    data_file: str = ""


def _apply_dict(obj: Any, data: dict) -> None:
    """Recursively apply dict values to a dataclass instance."""
    for key, val in data.items():
        if hasattr(obj, key):
            current = getattr(obj, key)
            if isinstance(current, (FractalParams, LoggingParams)):
                if isinstance(val, dict):
                    _apply_dict(current, val)
            else:
                setattr(obj, key, val)


def load_config(path: Path | str | None = None) -> ScannerConfig:
    """Load configuration from YAML file, falling back to defaults."""
    if path is None:
        path = PROJECT_ROOT / "config.yaml"
    path = Path(path)

    cfg = ScannerConfig()

    if path.exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        _apply_dict(cfg, raw)

    # Environment wins over YAML
    level = _env("FRACTALS_LOG_LEVEL")
    if level:
        cfg.logging.level = level
    data_file = _env("FRACTALS_DATA_FILE")
    if data_file:
        cfg.data_file = data_file

    return cfg


def setup_logging(params: LoggingParams) -> None:
    level = getattr(logging, str(params.level).upper(), logging.INFO)
    logging.basicConfig(level=level, format=params.format)
