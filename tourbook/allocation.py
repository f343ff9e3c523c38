"""Seat allocation and per-line pricing of rate groups.

A package is priced in one of two ways, picked once per package by
`strategy_for`:

* regular: every rate group is a guest category ("Adult", "Child") with a
  per-person rate and an independent quantity;
* group rate: every rate group is a tier for a fixed group size and exactly
  one tier is booked as a single group.

In both cases the number of guests requested never exceeds the seats
available for the current date or slot. A change that would break this is
rejected and leaves the allocation untouched; it is not an error.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from decimal import Decimal

from tourbook.models import (
    GroupSizeOption,
    LinePricing,
    Package,
    RateGroup,
    RateGroupSelection,
    TimeSlot,
)
from tourbook.money import ZERO, percentage_of

logger = logging.getLogger(__name__)


def uses_slot_pricing(slots: Iterable[TimeSlot]) -> bool:
    """Rate groups must be fetched per slot when any slot has a custom rate."""
    return any(slot.custom_rate > 0 for slot in slots)


def available_seats(
    slots: Iterable[TimeSlot],
    selected_slot: TimeSlot | None,
    slot_pricing: bool,
) -> int:
    """Seats that can be allocated for the current date or slot."""
    if slot_pricing:
        return selected_slot.seats if selected_slot else 0
    return max((slot.seats for slot in slots if slot.is_open), default=0)


class RateGroupAllocation(ABC):
    """Rate groups on offer for one date or slot and the guests requested."""

    def __init__(self, commission_percentage: Decimal = ZERO):
        self.commission_percentage = commission_percentage
        self.rate_groups: list[RateGroup] = []
        self.selections: list[RateGroupSelection] = []

    @property
    @abstractmethod
    def total_guests(self) -> int: ...

    @abstractmethod
    def price(self, rate_group: RateGroup, quantity: int) -> LinePricing: ...

    @abstractmethod
    def load(self, rate_groups: list[RateGroup], commission_percentage: Decimal) -> None:
        """Replace the rate groups on offer, discarding any selection."""

    @abstractmethod
    def reset(self) -> None:
        """Drop requested guests while keeping the rate groups on offer."""

    def clear(self) -> None:
        self.rate_groups = []
        self.selections = []

    def remaining_seats(self, seats: int) -> int:
        return seats - self.total_guests

    def can_increase(self, seats: int) -> bool:
        return self.total_guests + 1 <= seats

    def active_selections(self) -> list[RateGroupSelection]:
        return [selection for selection in self.selections if selection.quantity > 0]

    def _commission(self, subtotal: Decimal) -> Decimal:
        return percentage_of(subtotal, self.commission_percentage)


class RegularAllocation(RateGroupAllocation):
    """Independent per-person guest categories."""

    @property
    def total_guests(self) -> int:
        return sum(selection.quantity for selection in self.selections)

    def load(self, rate_groups: list[RateGroup], commission_percentage: Decimal) -> None:
        self.commission_percentage = commission_percentage
        self.rate_groups = list(rate_groups)
        self.selections = [
            RateGroupSelection(rate_group=rate_group) for rate_group in self.rate_groups
        ]

    def reset(self) -> None:
        self.selections = [
            RateGroupSelection(rate_group=selection.rate_group)
            for selection in self.selections
        ]

    @staticmethod
    def per_person_subtotal(rate_group: RateGroup) -> Decimal:
        return (
            rate_group.rate
            + rate_group.permit_fee
            + rate_group.additional_charge
            + rate_group.partner_fee_amount
        )

    def price(self, rate_group: RateGroup, quantity: int) -> LinePricing:
        if quantity == 0:
            return LinePricing()

        per_person = self.per_person_subtotal(rate_group)
        subtotal = per_person * quantity
        # Commission is rounded per person, then multiplied
        commission = self._commission(per_person) * quantity
        return LinePricing(subtotal=subtotal, commission=commission, total=subtotal + commission)

    def update_quantity(self, index: int, quantity: int, seats: int) -> bool:
        """Request `quantity` guests for line `index`; False if rejected."""
        if quantity < 0 or not 0 <= index < len(self.selections):
            return False

        others = sum(
            selection.quantity
            for i, selection in enumerate(self.selections)
            if i != index
        )
        if others + quantity > seats:
            logger.debug(
                f"Rejected quantity {quantity} for line {index}: "
                f"{others + quantity} guests exceed {seats} seats"
            )
            return False

        rate_group = self.selections[index].rate_group
        self.selections[index] = RateGroupSelection(
            rate_group=rate_group,
            quantity=quantity,
            **self.price(rate_group, quantity).model_dump(),
        )
        return True


class GroupRateAllocation(RateGroupAllocation):
    """Fixed-size group tiers, at most one of which is booked."""

    def __init__(self, commission_percentage: Decimal = ZERO):
        super().__init__(commission_percentage)
        self.selected_size = 0

    @property
    def total_guests(self) -> int:
        return self.selected_size

    def load(self, rate_groups: list[RateGroup], commission_percentage: Decimal) -> None:
        self.commission_percentage = commission_percentage
        self.rate_groups = list(rate_groups)
        self.reset()

    def reset(self) -> None:
        self.selected_size = 0
        self.selections = []

    def clear(self) -> None:
        super().clear()
        self.selected_size = 0

    def price(self, rate_group: RateGroup, quantity: int = 1) -> LinePricing:
        subtotal = (
            rate_group.rate
            + rate_group.tax
            + rate_group.permit_fee
            + rate_group.additional_charge
            + rate_group.partner_fee_amount
        )
        commission = self._commission(subtotal)
        return LinePricing(subtotal=subtotal, commission=commission, total=subtotal + commission)

    def tier_for(self, size: int) -> RateGroup | None:
        return next(
            (rate_group for rate_group in self.rate_groups if (rate_group.size or 1) == size),
            None,
        )

    def select_group_size(self, size: int, seats: int) -> bool:
        """Book one group of `size` people, replacing any previous choice."""
        if size < 0 or size > seats:
            return False
        if size == 0:
            self.reset()
            return True

        tier = self.tier_for(size)
        if tier is None:
            return False

        self.selected_size = size
        self.selections = [
            RateGroupSelection(rate_group=tier, quantity=1, **self.price(tier).model_dump())
        ]
        return True

    def group_size_options(self, seats: int) -> list[GroupSizeOption]:
        sizes = sorted({rate_group.size or 1 for rate_group in self.rate_groups})
        return [
            GroupSizeOption(size=size, rate_for=tier.rate_for, rate=tier.rate)
            for size in sizes
            if size <= seats and (tier := self.tier_for(size)) is not None
        ]


def strategy_for(package: Package) -> RateGroupAllocation:
    commission = package.service_commission_percentage
    if package.is_group_rate_enabled:
        return GroupRateAllocation(commission)
    return RegularAllocation(commission)
