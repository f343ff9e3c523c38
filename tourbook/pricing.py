"""Order total for one booking: tour lines, promo discount, add-ons and fees.

Each term is rounded away from zero before it is combined with the next,
and the result depends only on the arguments, so the same selection always
yields the same breakdown.
"""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from tourbook.addons import price_add_on, visible_fields
from tourbook.models import FormField, PricingBreakdown, PromoCode, RateGroupSelection
from tourbook.money import ZERO, round_up
from tourbook.promo import apply_promo, tour_fees


def compute_breakdown(
    selections: Iterable[RateGroupSelection],
    commission_percentage: Decimal,
    guest_count: int,
    fields: Iterable[FormField] = (),
    add_on_values: Mapping[str, Any] | None = None,
    promo: PromoCode | None = None,
) -> PricingBreakdown:
    selections = list(selections)
    add_on_values = add_on_values or {}

    tour_subtotal = round_up(sum((s.subtotal for s in selections), ZERO))
    promo_discount = apply_promo(promo, tour_subtotal)
    tour_fee = tour_fees(
        selections, tour_subtotal, promo_discount, promo, commission_percentage
    )

    add_on_subtotal = ZERO
    add_on_fees = ZERO
    for field in visible_fields(fields):
        pricing = price_add_on(
            field, add_on_values.get(field.id), guest_count, commission_percentage
        )
        add_on_subtotal += pricing.subtotal
        add_on_fees += pricing.commission
    add_on_subtotal = round_up(add_on_subtotal)
    add_on_fees = round_up(add_on_fees)

    total_subtotal = round_up(tour_subtotal - promo_discount + add_on_subtotal)
    total_fees = round_up(tour_fee + add_on_fees)

    return PricingBreakdown(
        tour_subtotal=tour_subtotal,
        promo_discount=promo_discount,
        add_on_subtotal=add_on_subtotal,
        total_subtotal=total_subtotal,
        tour_fees=tour_fee,
        add_on_fees=add_on_fees,
        total_fees=total_fees,
        total_amount=round_up(total_subtotal + total_fees),
    )
