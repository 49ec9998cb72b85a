from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parent.parent.parent / ".env")

_DEFAULT_DATA_DIR = Path(__file__).resolve().parent.parent / "data" / "processed"


@dataclass(frozen=True)
class StoreConfig:
    data_dir: Path = field(
        default_factory=lambda: Path(os.getenv("LESSON_DATA_DIR", str(_DEFAULT_DATA_DIR)))
    )
    active_statuses: tuple[str, ...] = ("active",)
    counted_statuses: tuple[str, ...] = ("active", "completed")


DEFAULT_STORE_CONFIG = StoreConfig()
