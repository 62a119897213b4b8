"""Tests for ScheduleConfig domain configuration."""

import pytest
from pydantic import ValidationError

from lofi_radio.config.schedule import ScheduleConfig


class TestScheduleConfig:
    """Tests for ScheduleConfig."""

    def test_defaults(self):
        """Defaults fire at 10:00, 12:00 and 20:00 Chicago time."""
        config = ScheduleConfig(_env_file=None)
        assert config.schedule_tz == "America/Chicago"
        assert config.fire_times() == {"morning": "10:00", "midday": "12:00", "night": "20:00"}

    def test_fire_time_from_env(self, monkeypatch):
        """Fire times should load from RADIO_<SLOT>_AT."""
        monkeypatch.setenv("RADIO_MORNING_AT", "07:30")
        config = ScheduleConfig(_env_file=None)
        assert config.fire_times()["morning"] == "07:30"

    def test_malformed_fire_time_rejected(self, monkeypatch):
        """Fire times must be HH:MM."""
        monkeypatch.setenv("RADIO_NIGHT_AT", "8pm")
        with pytest.raises(ValidationError):
            ScheduleConfig(_env_file=None)
