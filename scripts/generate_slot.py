#!/usr/bin/env python3
"""Slot generation service script.

Runs the full pipeline for one time-of-day slot:
- Generate music prompt and metadata
- Generate the instrumental track and cover image
- Generate and compose a looping video (best-effort)
- Publish to every configured platform

Designed to be called by the scheduler (or cron/systemd) once per slot.

Usage:
    ./scripts/generate_slot.py {morning,midday,night} [--no-video]

Exit codes:
    0: Slot run completed (individual publish failures are logged)
    1: A required stage failed
    2: Missing or invalid slot argument
"""

import argparse
import logging
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from lofi_radio.config import config
from lofi_radio.errors import PipelineAborted
from lofi_radio.pipeline import run_slot
from lofi_radio.slots import SLOT_IDS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
    ],
)

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Generate and publish one lo-fi radio slot")
    parser.add_argument("slot", choices=SLOT_IDS, help="Time-of-day slot to generate")
    parser.add_argument("--no-video", action="store_true", help="Skip looping video generation")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Run one slot and return exit code.

    Returns:
        0 if the run completed, 1 if it aborted
    """
    args = parse_args(argv)
    logger.info(f"Starting {args.slot} slot run")

    try:
        result = run_slot(args.slot, config, with_video=not args.no_video)
    except PipelineAborted as e:
        logger.error(f"❌ {args.slot} run aborted at {e.stage}: {e.cause}")
        return 1
    except Exception as e:
        logger.exception(f"Unexpected error during {args.slot} run: {e}")
        return 1

    for publish in result.publish_results:
        if publish.success:
            logger.info(f"  {publish.platform}: {publish.remote_id}")
        else:
            logger.warning(f"  {publish.platform}: FAILED ({publish.error})")

    logger.info(
        f"Slot {result.slot} complete: {result.metadata.title!r} "
        f"({result.duration:.1f}s, video={'generated' if result.used_generated_video else 'cover image'})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
