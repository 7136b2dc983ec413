"""Frequency choices and their cron expressions."""

import logging

logger = logging.getLogger(__name__)

FREQUENCY_CRON: dict[str, str] = {
    "hourly": "0 * * * *",
    "daily": "0 0 * * *",
    "weekly": "0 0 * * 0",  # Sunday midnight
    "monthly": "0 0 1 * *",
}

DEFAULT_FREQUENCY = "hourly"
DEFAULT_CRON = FREQUENCY_CRON[DEFAULT_FREQUENCY]


def frequency_to_cron(frequency: str | None) -> str:
    """Map a frequency choice to a five-field cron expression.

    Unrecognized input falls back to hourly.
    """
    key = (frequency or "").strip().lower()
    cron = FREQUENCY_CRON.get(key)
    if cron is None:
        logger.warning("Unknown schedule frequency %r, defaulting to %s", frequency, DEFAULT_FREQUENCY)
        return DEFAULT_CRON
    return cron
