from collections.abc import Iterable
from decimal import Decimal

from tourbook.models import PromoCode, RateGroupSelection
from tourbook.money import ZERO, percentage_of, round_up


def apply_promo(promo: PromoCode | None, tour_subtotal: Decimal) -> Decimal:
    """Discount on the tour lines only; never more than `tour_subtotal`."""
    if promo is None or tour_subtotal <= 0:
        return ZERO

    if promo.is_percent:
        discount = percentage_of(tour_subtotal, promo.discount_value)
    else:
        discount = round_up(min(promo.discount_value, tour_subtotal))
    return min(discount, tour_subtotal)


def tour_fees(
    selections: Iterable[RateGroupSelection],
    tour_subtotal: Decimal,
    discount: Decimal,
    promo: PromoCode | None,
    commission_percentage: Decimal,
) -> Decimal:
    """Commission on the tour lines.

    Without a promo the per-line commissions are summed. With a promo the
    commission is recomputed once from the discounted subtotal; the booking
    backend validates the same two branches.
    """
    if promo is not None:
        return percentage_of(tour_subtotal - discount, commission_percentage)
    return round_up(sum((selection.commission for selection in selections), ZERO))
