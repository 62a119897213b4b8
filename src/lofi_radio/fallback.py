"""Ordered fallback chains.

A chain is a list of (name, strategy) pairs tried in order. The first
strategy that returns wins; if every strategy raises, the last error is
re-raised.
"""

import logging
from typing import Callable, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def first_success(
    strategies: Sequence[tuple[str, Callable[[], T]]],
    label: str = "operation",
) -> T:
    """Run strategies in order and return the first successful result.

    Args:
        strategies: (name, zero-argument callable) pairs
        label: Name used in log lines

    Returns:
        Result of the first strategy that did not raise

    Raises:
        ValueError: If no strategies were given
        Exception: The last strategy's error if all of them failed
    """
    if not strategies:
        raise ValueError(f"No strategies configured for {label}")

    last_error: Exception = RuntimeError(f"{label} never ran")
    total = len(strategies)
    for index, (name, strategy) in enumerate(strategies, start=1):
        logger.info(f"Attempting {label} with {name} ({index}/{total})")
        try:
            result = strategy()
        except Exception as e:
            logger.warning(f"✗ {label} failed with {name}: {e}")
            last_error = e
            continue
        logger.info(f"✓ {label} succeeded with {name}")
        return result

    logger.error(f"All {total} {label} strategies failed. Last error: {last_error}")
    raise last_error
