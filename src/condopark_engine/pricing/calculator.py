"""Server-side booking price calculation.

Price is ``rate_per_hour * duration_hours`` rounded half-up to the currency's
minor unit. This is the only source of a booking's price; price fields sent
by clients are never read.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from condopark_engine.common.exceptions import (
    DurationTooLongError,
    InvalidIntervalError,
    InvalidRateError,
)
from condopark_engine.common.models import as_utc

SECONDS_PER_HOUR = Decimal(3600)


def duration_hours(start: datetime, end: datetime) -> Decimal:
    """Exact duration of ``[start, end)`` in (possibly fractional) hours."""
    if start is None or end is None:
        raise InvalidIntervalError("Start and end time are required")
    start, end = as_utc(start), as_utc(end)
    if end <= start:
        raise InvalidIntervalError()
    delta = end - start
    # Whole microseconds keep the Decimal exact.
    micros = (delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds
    return Decimal(micros) / Decimal(1_000_000) / SECONDS_PER_HOUR


def round_minor(amount: Decimal, decimals: int = 2) -> Decimal:
    return amount.quantize(Decimal(1).scaleb(-decimals), rounding=ROUND_HALF_UP)


def calculate_price(
    rate_per_hour: Decimal | int | float | str,
    start: datetime,
    end: datetime,
    max_hours: float | None = 24,
    decimals: int = 2,
) -> Decimal:
    """Compute the price of booking ``[start, end)`` at ``rate_per_hour``.

    Raises InvalidIntervalError when ``end <= start``, DurationTooLongError
    when the duration exceeds ``max_hours`` and InvalidRateError for a
    non-positive rate.
    """
    rate = Decimal(str(rate_per_hour))
    if not rate.is_finite() or rate <= 0:
        raise InvalidRateError()

    hours = duration_hours(start, end)
    if max_hours is not None and hours > Decimal(str(max_hours)):
        raise DurationTooLongError(
            f"Maximum booking duration is {max_hours:g} hours"
        )

    return round_minor(rate * hours, decimals)
