import os
from dataclasses import dataclass
from pathlib import Path

from .models import TimeFormat


DEFAULT_ACCOUNT_NUMBER = "XX3248"
DEFAULT_INSTITUTION = "Axis Bank"
MANUAL_INSTITUTION = "Manual Entry"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    default_account: str = DEFAULT_ACCOUNT_NUMBER
    institution: str = DEFAULT_INSTITUTION
    time_format: TimeFormat = TimeFormat.TWENTY_FOUR_HOUR
    notifications_enabled: bool = True
    ingest_timeout: float = 5.0


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_time_format(name: str) -> TimeFormat:
    raw = (os.getenv(name) or "").strip().upper()
    try:
        return TimeFormat(raw)
    except ValueError:
        return TimeFormat.TWENTY_FOUR_HOUR


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def get_settings() -> Settings:
    env_dir = os.getenv("SMS_LEDGER_DATA_DIR")
    data_dir = Path(env_dir) if env_dir else Path.cwd() / ".data"
    return Settings(
        data_dir=data_dir,
        db_path=data_dir / "ledger.sqlite",
        time_format=_env_time_format("SMS_LEDGER_TIME_FORMAT"),
        notifications_enabled=_env_flag("SMS_LEDGER_NOTIFICATIONS", True),
        ingest_timeout=_env_float("SMS_LEDGER_INGEST_TIMEOUT", 5.0),
    )
