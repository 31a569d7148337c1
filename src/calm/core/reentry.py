"""Re-entry detection: how long since the last evening review."""

from dataclasses import dataclass

from .daily import DailyLedger
from .dates import day_difference

RESET_BANNER_THRESHOLD_DAYS = 2


@dataclass
class ReentryStatus:
    today_key: str
    days_since_last_evening: int | None
    should_show_reset_banner: bool


def get_reentry_status(ledgers: list[DailyLedger], today_key: str) -> ReentryStatus:
    """
    Decide whether to offer the reset ritual.

    An evening review today means no gap. Otherwise the gap is measured to the
    most recent ledger with an evening review; with none on record there is
    nothing to measure and no banner. Pure function - no I/O.
    """
    newest_first = sorted(ledgers, key=lambda ledger: ledger.date_key, reverse=True)

    today = next((ledger for ledger in newest_first if ledger.date_key == today_key), None)
    if today is not None and today.evening_completed_at is not None:
        return ReentryStatus(today_key, 0, False)

    last_evening = next(
        (ledger for ledger in newest_first if ledger.evening_completed_at is not None),
        None,
    )
    if last_evening is None:
        return ReentryStatus(today_key, None, False)

    days = day_difference(today_key, last_evening.date_key)
    return ReentryStatus(today_key, days, days >= RESET_BANNER_THRESHOLD_DAYS)
