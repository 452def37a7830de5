"""Application configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, rejecting garbage loudly."""

    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc


def _parse_year_month(raw: str) -> tuple[int, int]:
    """Parse a ``YYYY-MM`` string."""

    try:
        year_text, month_text = raw.strip().split("-", 1)
        year, month = int(year_text), int(month_text)
    except ValueError as exc:
        raise ValueError(f"Expected YYYY-MM, got {raw!r}") from exc
    if not 1 <= month <= 12:
        raise ValueError(f"Month out of range in {raw!r}")
    return year, month


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "famledger"
    DB_FILENAME = "famledger.db"
    SQLITE_PRAGMAS = {"journal_mode": "wal", "foreign_keys": "on"}

    def __init__(self, data_dir: Path | None = None) -> None:
        self.DATA_DIR = self._resolve_data_dir(data_dir)
        self.DEV_MODE = _env_bool("FAMLEDGER_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("FAMLEDGER_DATABASE_URL", self._build_sqlite_url())
        # Last year (inclusive, through December) that synthetic rows are generated for.
        self.HORIZON_YEAR = _env_int("FAMLEDGER_HORIZON_YEAR", 2030)
        self.LEDGER_START_YEAR, self.LEDGER_START_MONTH = _parse_year_month(
            os.getenv("FAMLEDGER_LEDGER_START", "2026-01")
        )
        self.RECALC_HOUR = _env_int("FAMLEDGER_RECALC_HOUR", 3)
        if (self.LEDGER_START_YEAR, self.LEDGER_START_MONTH) > (self.HORIZON_YEAR, 12):
            raise ValueError("FAMLEDGER_LEDGER_START must not be after the horizon year.")

    def _resolve_data_dir(self, override: Path | None = None) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = override or os.getenv("FAMLEDGER_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        """Construct the default SQLite URL inside the data directory."""

        db_path = self.DATA_DIR / self.DB_FILENAME
        return f"sqlite:///{db_path}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        engine_options: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            engine_options["connect_args"] = {"check_same_thread": False}
        return engine_options

    @property
    def ledger_start(self) -> tuple[int, int]:
        """(year, month) of the ledger's first month; it never gets an opening balance."""
        return self.LEDGER_START_YEAR, self.LEDGER_START_MONTH


class TestingConfig(BaseConfig):
    """Configuration used by the test-suite: throwaway data dir, no dev chatter."""

    def __init__(self, data_dir: Path | None = None) -> None:
        super().__init__(data_dir)
        self.DEV_MODE = False
        self.DATABASE_URL = self._build_sqlite_url()
