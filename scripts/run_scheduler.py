#!/usr/bin/env python3
"""Slot scheduler daemon.

Sleeps until the next configured slot time, then runs generate_slot.py for
that slot in a child process. A failed run is logged and the scheduler
moves on to the next slot.

Usage:
    ./scripts/run_scheduler.py
"""

import logging
import subprocess
import sys
import time
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lofi_radio.config import config
from lofi_radio.scheduler import next_fire

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)
logger = logging.getLogger(__name__)

GENERATE_SCRIPT = Path(__file__).parent / "generate_slot.py"


def run_slot_process(slot_id: str) -> int:
    logger.info(f"🚀 Running slot: {slot_id}")
    result = subprocess.run([sys.executable, str(GENERATE_SCRIPT), slot_id], check=False)
    if result.returncode != 0:
        logger.error(f"❌ Slot {slot_id} exited with code {result.returncode}")
    else:
        logger.info(f"✅ Slot {slot_id} finished")
    return result.returncode


def main() -> None:
    schedule = config.schedule
    logger.info(f"⏱ Scheduler running in {schedule.schedule_tz}: {schedule.fire_times()}")

    while True:
        slot_id, fire_at = next_fire(datetime.now(timezone.utc), schedule.fire_times(), schedule.schedule_tz)
        wait_seconds = (fire_at - datetime.now(timezone.utc)).total_seconds()
        logger.info(f"Next slot: {slot_id} at {fire_at.isoformat()} (in {wait_seconds / 60:.0f} min)")
        if wait_seconds > 0:
            time.sleep(wait_seconds)
        run_slot_process(slot_id)


if __name__ == "__main__":
    try:
        main()
    except KeyboardInterrupt:
        logger.info("Scheduler stopped")
