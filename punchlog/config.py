from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .aggregate import DEFAULT_SPARKS
from .store import TAIL_RECORDS

DEFAULT_DATA_FILE = "~/.t.csv"
# 5 days of 8 hours
DEFAULT_FULL_WEEK = 5 * 8 * 60
TRUTHY = ("1", "true", "yes", "y", "on")


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in TRUTHY


def _integer(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw.lstrip("-").isdecimal() else default


def _symbols(name: str) -> List[str]:
    return [s.strip() for s in os.getenv(name, "").split(",") if s.strip()]


@dataclass(frozen=True)
class Settings:
    data_file: Path
    sparks: List[str] = field(default_factory=lambda: list(DEFAULT_SPARKS))
    full_week: int = DEFAULT_FULL_WEEK
    tail_records: int = TAIL_RECORDS
    debug: bool = False

    @classmethod
    def from_env(cls, dotenv_path: Optional[Path] = None) -> "Settings":
        """Read settings from the environment, after loading a .env file if present.

        Variables:
          - T_DATA_FILE: path of the log (default ~/.t.csv)
          - T_SPARKS: comma-separated sparkline symbols
          - T_FULL_WEEK: minutes in a full work week (pto report)
          - T_TAIL: records read by the status commands
          - T_DEBUG: debug logging
        """
        load_dotenv(dotenv_path=dotenv_path, override=False)

        data_file = Path(os.path.expanduser(os.getenv("T_DATA_FILE") or DEFAULT_DATA_FILE))
        sparks = _symbols("T_SPARKS") or list(DEFAULT_SPARKS)
        full_week = _integer("T_FULL_WEEK", DEFAULT_FULL_WEEK)
        if full_week < 1:
            full_week = DEFAULT_FULL_WEEK
        tail_records = max(1, _integer("T_TAIL", TAIL_RECORDS))

        return cls(
            data_file=data_file,
            sparks=sparks,
            full_week=full_week,
            tail_records=tail_records,
            debug=_flag("T_DEBUG"),
        )
