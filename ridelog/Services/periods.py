# ridelog/Services/periods.py
"""
Reporting periods shared by trip statistics, the fuel ledger and maintenance
analytics. A period names a trailing window ending now: [now - window, now].
"""

from datetime import datetime, timedelta
from typing import Optional, Tuple

from ridelog.Core.errors import ValidationError


DEFAULT_PERIOD = '30d'

PERIOD_WINDOWS = {
    '7d': timedelta(days=7),
    '30d': timedelta(days=30),
    '90d': timedelta(days=90),
}


def resolve_period(period: Optional[str]) -> str:
    """Return the period label, defaulting to 30d; unknown labels are rejected."""
    if period is None or period == '':
        return DEFAULT_PERIOD

    if period not in PERIOD_WINDOWS:
        raise ValidationError(
            f"Unknown period '{period}'",
            context={"period": period, "allowed": sorted(PERIOD_WINDOWS)}
        )

    return period


def period_window(period: str, now: datetime) -> Tuple[datetime, datetime]:
    return now - PERIOD_WINDOWS[resolve_period(period)], now
