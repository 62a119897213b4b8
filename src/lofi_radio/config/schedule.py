"""Slot firing schedule configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ScheduleConfig(BaseSettings):
    """Local times at which each slot run fires.

    Times are "HH:MM" in the schedule timezone.

    Environment variables:
        RADIO_SCHEDULE_TZ: IANA timezone (default: America/Chicago)
        RADIO_MORNING_AT / RADIO_MIDDAY_AT / RADIO_NIGHT_AT: fire times
    """

    model_config = SettingsConfigDict(
        env_prefix="RADIO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    schedule_tz: str = Field(default="America/Chicago")
    morning_at: str = Field(default="10:00", pattern=r"^\d{2}:\d{2}$")
    midday_at: str = Field(default="12:00", pattern=r"^\d{2}:\d{2}$")
    night_at: str = Field(default="20:00", pattern=r"^\d{2}:\d{2}$")

    def fire_times(self) -> dict[str, str]:
        """Slot id to "HH:MM" mapping."""
        return {
            "morning": self.morning_at,
            "midday": self.midday_at,
            "night": self.night_at,
        }
