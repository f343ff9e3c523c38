import datetime
from decimal import Decimal

import pytest

from tourbook.models import (
    CartItem,
    PricingBreakdown,
    RateGroup,
    RateGroupSelection,
    TimeSlot,
)

# 09:15 on Monday 2024-06-10 in America/Phoenix (UTC-7, no DST)
PHOENIX_NOW = datetime.datetime(2024, 6, 10, 16, 15, tzinfo=datetime.UTC)


@pytest.fixture
def now() -> datetime.datetime:
    return PHOENIX_NOW


@pytest.fixture
def adult() -> RateGroup:
    return RateGroup.model_validate(
        {
            "id": 1,
            "rate_for": "Adult",
            "rate": "50.00",
            "permit_fee": "2.50",
            "partner_fee_amount": "1.00",
        }
    )


@pytest.fixture
def child() -> RateGroup:
    return RateGroup.model_validate({"id": 2, "rate_for": "Child", "rate": "30.00"})


@pytest.fixture
def group_tiers() -> list[RateGroup]:
    return [
        RateGroup.model_validate(
            {"id": 10, "rate_for": "Pair", "rate": "100.00", "tax": "8.00", "size": 2}
        ),
        RateGroup.model_validate(
            {"id": 11, "rate_for": "Family", "rate": "180.00", "size": 4}
        ),
        RateGroup.model_validate(
            {"id": 12, "rate_for": "Party", "rate": "250.00", "size": 6}
        ),
    ]


@pytest.fixture
def slots() -> list[TimeSlot]:
    return [
        TimeSlot(id=1, time="08:00", seats=6),
        TimeSlot(id=2, time="10:00", seats=8),
        TimeSlot(id=3, time="13:00", seats=12, bookable_status="Closed"),
    ]


@pytest.fixture
def make_cart_item(adult):
    def make(item_id: str = "acme-7-1", total_amount: str = "176.55") -> CartItem:
        return CartItem(
            id=item_id,
            package_id=7,
            tenant_id="acme",
            package_name="Canyon Sunset Tour",
            selected_date="2024-06-11",
            selected_slot=TimeSlot(id=2, time="10:00", seats=8),
            rate_group_selections=[
                RateGroupSelection(
                    rate_group=adult,
                    quantity=3,
                    subtotal=Decimal("160.50"),
                    commission=Decimal("16.05"),
                    total=Decimal("176.55"),
                )
            ],
            pricing=PricingBreakdown(
                tour_subtotal=Decimal("160.50"),
                total_subtotal=Decimal("160.50"),
                tour_fees=Decimal("16.05"),
                total_fees=Decimal("16.05"),
                total_amount=Decimal(total_amount),
            ),
            total_guests=3,
            created_at=PHOENIX_NOW,
        )

    return make
