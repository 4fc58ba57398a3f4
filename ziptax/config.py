"""Runtime settings read from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path

_PACKAGE_DIR = Path(__file__).resolve().parent

DEFAULT_DATA_DIR = _PACKAGE_DIR / "data"

# Published average used when a state levies local tax but has no
# state-specific default configured.
GLOBAL_DEFAULT_LOCAL_RATE = Decimal("1.50")


@dataclass(frozen=True)
class Settings:
    """Engine configuration."""

    data_dir: Path = DEFAULT_DATA_DIR
    default_local_rate: Decimal = GLOBAL_DEFAULT_LOCAL_RATE
    log_level: str = "WARNING"


def load_settings() -> Settings:
    """
    Build settings from the environment.

    ZIPTAX_DATA_DIR            directory with the CSV tables
    ZIPTAX_DEFAULT_LOCAL_RATE  global fallback local rate (percent)
    ZIPTAX_LOG_LEVEL           log level used by the CLI
    """
    data_dir = Path(os.getenv("ZIPTAX_DATA_DIR", str(DEFAULT_DATA_DIR)))
    if not data_dir.is_absolute():
        data_dir = Path.cwd() / data_dir

    raw_default = os.getenv("ZIPTAX_DEFAULT_LOCAL_RATE", "")
    default_local_rate = GLOBAL_DEFAULT_LOCAL_RATE
    if raw_default:
        try:
            default_local_rate = Decimal(raw_default)
        except InvalidOperation:
            raise ValueError(
                f"ZIPTAX_DEFAULT_LOCAL_RATE must be a number, got {raw_default!r}"
            ) from None
        if default_local_rate < 0:
            raise ValueError("ZIPTAX_DEFAULT_LOCAL_RATE must be >= 0")

    return Settings(
        data_dir=data_dir.resolve(),
        default_local_rate=default_local_rate,
        log_level=os.getenv("ZIPTAX_LOG_LEVEL", "WARNING").upper(),
    )
