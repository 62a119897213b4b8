"""Slot firing schedule.

Computes when the next slot run is due. The run itself is launched by
scripts/run_scheduler.py as a separate process per slot.
"""

from datetime import datetime, time, timedelta
from typing import Mapping
from zoneinfo import ZoneInfo


def parse_fire_time(value: str) -> time:
    """Parse "HH:MM" into a time."""
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def next_fire(now: datetime, fire_times: Mapping[str, str], tz: str) -> tuple[str, datetime]:
    """Return the next (slot_id, fire datetime) strictly after `now`.

    Args:
        now: Timezone-aware current time
        fire_times: Slot id to "HH:MM" in the schedule timezone
        tz: IANA timezone name for the schedule

    Raises:
        ValueError: If no fire times are configured
    """
    if not fire_times:
        raise ValueError("No slot fire times configured")

    zone = ZoneInfo(tz)
    local_now = now.astimezone(zone)
    candidates = []
    for slot_id, value in fire_times.items():
        at = parse_fire_time(value)
        fire = datetime.combine(local_now.date(), at, tzinfo=zone)
        if fire <= local_now:
            fire = datetime.combine(local_now.date() + timedelta(days=1), at, tzinfo=zone)
        candidates.append((fire, slot_id))

    fire, slot_id = min(candidates)
    return slot_id, fire
