"""Scheduling workflow for one package: date, slot, guests, add-ons and promo.

`ScheduleSession` keeps the selection state that the pricing functions are
evaluated against and talks to the backend for the data they need. Backend
failures never corrupt the selection: they are logged and surfaced through
`error` / `promo_error`.

Responses are applied only while the parameters they were requested with
still match the current selection, so a slow answer for a date the customer
has already left cannot overwrite newer data.
"""

import datetime
import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from typing import Any

import httpx
from pydantic import ValidationError

from tourbook import timezones
from tourbook.addons import (
    clamp_number,
    initial_values,
    selected_add_ons,
    validate_field,
    visible_fields,
)
from tourbook.allocation import (
    GroupRateAllocation,
    RateGroupAllocation,
    RegularAllocation,
    available_seats,
    strategy_for,
    uses_slot_pricing,
)
from tourbook.clients.tour_client import LiveTourClient
from tourbook.exceptions import BackendError, PromoCodeError
from tourbook.models import (
    CalendarDay,
    CartItem,
    CustomForm,
    FormField,
    GroupSizeOption,
    NumberField,
    Package,
    PricingBreakdown,
    PromoCode,
    RateGroupsResult,
    TimeSlot,
)
from tourbook.pricing import compute_breakdown

logger = logging.getLogger(__name__)

# Malformed payloads surface as ValidationError
FETCH_ERRORS = (httpx.HTTPError, BackendError, ValidationError)

SLOTS_ERROR = "Could not load time slots. Please try again."
RATE_GROUPS_ERROR = "Could not load prices. Please try again."


def _utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.UTC)


class ScheduleSession:
    def __init__(
        self,
        client: LiveTourClient,
        tenant_id: str,
        package_id: int,
        clock: Callable[[], datetime.datetime] = _utc_now,
        default_timezone: str = timezones.DEFAULT_TIMEZONE,
    ):
        self.client = client
        self.tenant_id = tenant_id
        self.package_id = package_id
        self.clock = clock
        self.default_timezone = default_timezone

        self.package: Package | None = None
        self.custom_form: CustomForm | None = None
        self.allocation: RateGroupAllocation = RegularAllocation()
        self.add_on_values: dict[str, Any] = {}

        self.selected_date = ""
        self.current_month: datetime.date | None = None
        self.time_slots: list[TimeSlot] = []
        self.filtered_slots: list[TimeSlot] = []
        self.selected_slot: TimeSlot | None = None
        self.slot_pricing = False
        self.rate_group_commission: Decimal | None = None

        self.applied_promo: PromoCode | None = None
        self.error: str | None = None
        self.promo_error: str | None = None

    @property
    def timezone(self) -> str:
        return timezones.package_timezone(
            self.package.timezone if self.package else None, self.default_timezone
        )

    @property
    def commission_percentage(self) -> Decimal:
        if self.rate_group_commission is not None:
            return self.rate_group_commission
        return self.package.service_commission_percentage

    @property
    def form_fields(self) -> list[FormField]:
        return self.custom_form.form_fields if self.custom_form else []

    # Loading

    def load(self) -> None:
        """Fetch the package and its add-on form, then select today."""
        with ThreadPoolExecutor(max_workers=2) as pool:
            package_future = pool.submit(
                self.client.get_package, self.tenant_id, self.package_id
            )
            form_future = pool.submit(
                self.client.get_custom_form, self.tenant_id, self.package_id
            )

        # The page cannot be shown without its package
        self.package = package_future.result()
        try:
            self.custom_form = form_future.result()
        except FETCH_ERRORS as e:
            # Most packages have no add-on form
            logger.error(f"Error fetching custom form: {e}", exc_info=True)
            self.custom_form = None

        self.allocation = strategy_for(self.package)
        self.add_on_values = initial_values(self.form_fields)
        self.current_month = timezones.current_month(self.timezone, self.clock())
        self.select_date(timezones.today(self.timezone, self.clock()))

    # Date and slot selection

    def select_date(self, date: str) -> None:
        """Switch to `date`, dropping the slot, guests and any applied promo."""
        logger.info(f"Selecting date {date} for package {self.package_id}")
        self.selected_date = date
        self.selected_slot = None
        self.applied_promo = None
        self.promo_error = None
        self.error = None
        self.time_slots = []
        self.filtered_slots = []
        self.slot_pricing = False
        self.rate_group_commission = None
        self.allocation.clear()

        try:
            slots = self.client.get_time_slots(self.tenant_id, self.package_id, date)
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching time slots for {date}: {e}", exc_info=True)
            self.error = SLOTS_ERROR
            return
        self.apply_time_slots(date, slots)

    def apply_time_slots(self, date: str, slots: list[TimeSlot]) -> bool:
        """Use `slots` fetched for `date`; ignored if another date is selected."""
        if date != self.selected_date:
            logger.info(f"Ignoring time slots for {date}, {self.selected_date} is selected")
            return False

        self.time_slots = slots
        self.selected_slot = None
        self.filtered_slots = timezones.filter_future_slots(
            slots, date, self.timezone, self.clock()
        )
        self.slot_pricing = uses_slot_pricing(self.filtered_slots)
        if not self.filtered_slots:
            self.allocation.clear()
        elif self.slot_pricing:
            # Prices are per slot and unknown until one is chosen
            self.allocation.clear()
        else:
            self._fetch_rate_groups()
        return True

    def select_slot(self, slot: TimeSlot) -> bool:
        """Choose a slot; guests already requested are reset to zero."""
        if not slot.is_open:
            return False

        self.selected_slot = slot
        self.allocation.reset()
        if self.slot_pricing:
            self._fetch_rate_groups()
        return True

    def _rate_group_params(self) -> tuple[str, int | None]:
        slot = self.selected_slot
        if self.slot_pricing and slot is not None and slot.custom_rate > 0:
            return self.selected_date, slot.id
        return self.selected_date, None

    def _fetch_rate_groups(self) -> None:
        date, slot_id = self._rate_group_params()
        try:
            result = self.client.get_rate_groups(
                self.tenant_id, self.package_id, date, slot_id
            )
        except FETCH_ERRORS as e:
            logger.error(f"Error fetching rate groups for {date}: {e}", exc_info=True)
            self.error = RATE_GROUPS_ERROR
            self.allocation.clear()
            return
        self.apply_rate_groups(date, slot_id, result)

    def apply_rate_groups(
        self, date: str, slot_id: int | None, result: RateGroupsResult
    ) -> bool:
        """Use rate groups fetched for (`date`, `slot_id`) if still current."""
        if (date, slot_id) != self._rate_group_params():
            logger.info(f"Ignoring rate groups for {date} slot {slot_id}: selection changed")
            return False

        if result.service_commission_percentage is not None:
            self.rate_group_commission = result.service_commission_percentage
        self.allocation.load(result.rate_groups, self.commission_percentage)
        return True

    # Guests

    @property
    def available_seats(self) -> int:
        return available_seats(self.filtered_slots, self.selected_slot, self.slot_pricing)

    @property
    def remaining_seats(self) -> int:
        return self.allocation.remaining_seats(self.available_seats)

    @property
    def total_guests(self) -> int:
        return self.allocation.total_guests

    def update_quantity(self, index: int, quantity: int) -> bool:
        if not isinstance(self.allocation, RegularAllocation):
            return False
        return self.allocation.update_quantity(index, quantity, self.available_seats)

    def select_group_size(self, size: int) -> bool:
        if not isinstance(self.allocation, GroupRateAllocation):
            return False
        return self.allocation.select_group_size(size, self.available_seats)

    def group_size_options(self) -> list[GroupSizeOption]:
        if not isinstance(self.allocation, GroupRateAllocation):
            return []
        return self.allocation.group_size_options(self.available_seats)

    # Add-ons and promo

    def set_add_on(self, field_id: str, value: Any) -> None:
        field = next((f for f in self.form_fields if f.id == field_id), None)
        if isinstance(field, NumberField):
            value = clamp_number(field, value)
        self.add_on_values[field_id] = value

    def missing_required_add_ons(self) -> list[FormField]:
        return [
            field
            for field in visible_fields(self.form_fields)
            if not validate_field(field, self.add_on_values.get(field.id))
        ]

    def apply_promo_code(self, code: str) -> bool:
        self.promo_error = None
        try:
            self.applied_promo = self.client.set_coupon(
                self.tenant_id, self.package_id, code, self.selected_date
            )
        except PromoCodeError as e:
            logger.error(f"Error applying promo code: {e}")
            self.applied_promo = None
            self.promo_error = e.message
            return False
        except FETCH_ERRORS as e:
            logger.error(f"Error applying promo code: {e}", exc_info=True)
            self.applied_promo = None
            self.promo_error = PromoCodeError.message
            return False
        return True

    def remove_promo_code(self) -> None:
        self.applied_promo = None
        self.promo_error = None

    # Calendar

    def calendar_days(self) -> list[CalendarDay]:
        return timezones.generate_calendar_days(
            self.current_month, self.selected_date, self.timezone, self.clock()
        )

    def navigate_month(self, delta: int) -> None:
        self.current_month = timezones.shift_month(self.current_month, delta)

    # Totals

    def breakdown(self) -> PricingBreakdown:
        return compute_breakdown(
            self.allocation.selections,
            self.commission_percentage,
            self.total_guests,
            self.form_fields,
            self.add_on_values,
            self.applied_promo,
        )

    @property
    def can_book(self) -> bool:
        if self.slot_pricing and self.selected_slot is None:
            return False
        return self.total_guests > 0 and not self.missing_required_add_ons()

    def create_cart_item(self) -> CartItem:
        now = self.clock()
        return CartItem(
            id=f"{self.tenant_id}-{self.package_id}-{int(now.timestamp() * 1000)}",
            package_id=self.package_id,
            tenant_id=self.tenant_id,
            package_name=self.package.name,
            timezone=self.timezone,
            selected_date=self.selected_date,
            selected_slot=self.selected_slot,
            rate_group_selections=self.allocation.active_selections(),
            add_on_values=dict(self.add_on_values),
            add_on_selections=selected_add_ons(
                self.form_fields,
                self.add_on_values,
                self.total_guests,
                self.commission_percentage,
            ),
            applied_promo_code=self.applied_promo,
            pricing=self.breakdown(),
            total_guests=self.total_guests,
            created_at=now,
        )
