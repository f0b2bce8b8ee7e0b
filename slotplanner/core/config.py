from datetime import time
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.strip().split(":")
    return time(int(hours), int(minutes))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    create_tables_on_startup: bool = False

    # Sessions / JWT
    secret_key: str
    algorithm: str = "HS256"
    session_expire_hours: int = 24
    password_hash_rounds: int = 12

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Slot rules. Hours and weekdays are evaluated in slot_timezone, never the host zone.
    slot_timezone: str = "Europe/Paris"
    workday_start: str = "08:30"
    workday_end: str = "18:30"
    max_slot_duration_minutes: int = 120
    submission_grace_minutes: int = 5
    allowed_weekdays: str = "1,2,3,4,5"  # ISO weekdays, Monday=1

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def workday_start_time(self) -> time:
        return _parse_hhmm(self.workday_start)

    @property
    def workday_end_time(self) -> time:
        return _parse_hhmm(self.workday_end)

    @property
    def allowed_weekdays_set(self) -> frozenset[int]:
        return frozenset(int(d) for d in self.allowed_weekdays.split(",") if d.strip())


settings = Settings()
