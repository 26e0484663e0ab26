"""Rental price, cancellation refund and rating arithmetic.

Everything here is a pure function over its arguments. Amounts are
converted to ``Decimal`` on the way in so floats coming from JSON payloads
never leak binary rounding into stored totals.
"""

import math
from decimal import ROUND_HALF_UP, Decimal

# Share of the daily rate charged per rental day for each insurance plan.
INSURANCE_RATES = {
    "basic": Decimal("0.05"),
    "standard": Decimal("0.10"),
    "premium": Decimal("0.15"),
}
ADVANCE_PAYMENT_RATIO = Decimal("0.2")

# (hours until pickup strictly greater than, share of the total refunded)
REFUND_TIERS = (
    (48, Decimal("0.8")),
    (24, Decimal("0.5")),
)


def to_decimal(value):
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def compute_price(
    price_per_day,
    price_per_hour,
    rental_days,
    rental_hours=0,
    insurance_type=None,
    additional_charges=None,
):
    """Price a rental from the vehicle's rate card.

    Terms are added in a fixed order: days, hours, insurance, extras. An
    insurance type outside ``INSURANCE_RATES`` prices at zero instead of
    failing. Only the advance payment is rounded (up, to a whole unit).
    """
    daily_rate = to_decimal(price_per_day)
    total = daily_rate * int(rental_days)

    hours = to_decimal(rental_hours)
    if hours > 0:
        total += to_decimal(price_per_hour) * hours

    insurance_price = Decimal("0")
    if insurance_type:
        rate = INSURANCE_RATES.get(insurance_type)
        if rate is not None:
            insurance_price = daily_rate * rate * int(rental_days)
        total += insurance_price

    if additional_charges:
        total += sum((to_decimal(charge.get("amount")) for charge in additional_charges), Decimal("0"))

    return {
        "total_amount": total,
        "insurance_price": insurance_price,
        "advance_payment": Decimal(math.ceil(total * ADVANCE_PAYMENT_RATIO)),
    }


def compute_refund(total_amount, pickup_date, now):
    hours_until_pickup = (pickup_date - now).total_seconds() / 3600
    total = to_decimal(total_amount)
    for threshold, share in REFUND_TIERS:
        if hours_until_pickup > threshold:
            return Decimal(math.ceil(total * share))
    return Decimal("0")


def average_rating(ratings):
    """Mean of ``ratings`` rounded half-up to one decimal, or None when empty."""
    values = [to_decimal(r) for r in ratings]
    if not values:
        return None
    mean = sum(values, Decimal("0")) / len(values)
    return mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
