import datetime
from decimal import Decimal
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, Field

from tourbook.money import ZERO, parse_amount

Amount = Annotated[Decimal, BeforeValidator(parse_amount)]


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


Flag = Annotated[bool, BeforeValidator(_parse_flag)]


def _parse_optional_int(value: Any) -> int | None:
    amount = parse_amount(value, default="NaN")
    return int(amount) if amount.is_finite() else None


def _parse_count(value: Any) -> int:
    count = _parse_optional_int(value)
    return count if count is not None else 0


# Whole numbers the backend sends as strings, possibly blank or null
OptionalInt = Annotated[int | None, BeforeValidator(_parse_optional_int)]
Count = Annotated[int, BeforeValidator(_parse_count)]


class Package(BaseModel):
    id: int
    tenant_id: str = ""
    name: str = ""
    short_description: str = ""
    hours: int = 0
    minutes: int = 0
    min_pax_allowed: int = 1
    max_pax_allowed: int | None = None
    category_id: str | None = None
    status: str | None = None
    is_group_rate_enabled: Flag = False
    package_has_waiver: Flag = False
    package_has_permit: Flag = False
    timezone: str | None = None
    service_commission_percentage: Amount = ZERO


class TimeSlot(BaseModel):
    id: int
    time: str
    seats: Count = 0
    bookable_status: Literal["Open", "Closed"] = "Open"
    custom_rate: Count = 0

    @property
    def is_open(self) -> bool:
        return self.bookable_status == "Open"


class RateGroup(BaseModel):
    id: int
    rate_for: str = ""
    rate: Amount = ZERO
    tax: Amount = ZERO
    permit_fee: Amount = ZERO
    additional_charge: Amount = ZERO
    partner_fee_amount: Amount = ZERO
    description: str | None = None
    size: int | None = None


class RateGroupsResult(BaseModel):
    """Rate groups for one date (or one slot) plus the commission to apply."""

    rate_groups: list[RateGroup] = Field(default_factory=list)
    service_commission_percentage: Amount | None = None


class LinePricing(BaseModel):
    subtotal: Decimal = ZERO
    commission: Decimal = ZERO
    total: Decimal = ZERO


class RateGroupSelection(LinePricing):
    rate_group: RateGroup
    quantity: int = 0


class GroupSizeOption(BaseModel):
    size: int
    rate_for: str
    rate: Decimal


class PriceInfo(BaseModel):
    enabled: Flag = False
    price: Amount = ZERO
    unit: Literal["setprice", "priceperpax", "n"] = "n"


class FieldOption(BaseModel):
    id: str
    name: str
    value: str


class ChoiceAttrs(BaseModel):
    options: list[FieldOption] = Field(default_factory=list)


class NumberAttrs(BaseModel):
    min: OptionalInt = None
    max: OptionalInt = None


class _BaseField(BaseModel):
    id: str
    name: str
    required: Flag = False
    visibility: Literal["frontend", "backend", "both"] = "frontend"
    order: Count = 0
    default: str | None = None
    description: str | None = None
    price_info: PriceInfo = Field(default_factory=PriceInfo, alias="priceInfo")

    model_config = {"populate_by_name": True}


class CheckboxField(_BaseField):
    type: Literal["checkbox"] = "checkbox"


class RadioField(_BaseField):
    type: Literal["radio"] = "radio"
    attrs: ChoiceAttrs = Field(default_factory=ChoiceAttrs)


class SelectField(_BaseField):
    type: Literal["select"] = "select"
    attrs: ChoiceAttrs = Field(default_factory=ChoiceAttrs)


class NumberField(_BaseField):
    type: Literal["number"] = "number"
    attrs: NumberAttrs = Field(default_factory=NumberAttrs)


class TextField(_BaseField):
    type: Literal["text"] = "text"


class TextAreaField(_BaseField):
    type: Literal["textarea"] = "textarea"


FormField = Annotated[
    CheckboxField | RadioField | SelectField | NumberField | TextField | TextAreaField,
    Field(discriminator="type"),
]


class CustomForm(BaseModel):
    id: int
    form_fields: list[FormField] = Field(default_factory=list)


class PromoCode(BaseModel):
    id: int
    coupon_code: str = ""
    discount_value: Amount = ZERO
    discount_value_type: Literal["Percent", "Money", "FixedMoney"] = "Percent"
    description: str | None = None

    @property
    def is_percent(self) -> bool:
        return self.discount_value_type == "Percent"


class PricingBreakdown(BaseModel):
    tour_subtotal: Decimal = ZERO
    promo_discount: Decimal = ZERO
    add_on_subtotal: Decimal = ZERO
    total_subtotal: Decimal = ZERO
    tour_fees: Decimal = ZERO
    add_on_fees: Decimal = ZERO
    total_fees: Decimal = ZERO
    total_amount: Decimal = ZERO


class AddOnSelection(BaseModel):
    field_id: str
    name: str
    type: str
    value: Any
    pricing: LinePricing = Field(default_factory=LinePricing)


class CartItem(BaseModel):
    id: str
    package_id: int
    tenant_id: str
    package_name: str
    timezone: str | None = None
    selected_date: str
    selected_slot: TimeSlot | None = None
    rate_group_selections: list[RateGroupSelection] = Field(default_factory=list)
    add_on_values: dict[str, Any] = Field(default_factory=dict)
    add_on_selections: list[AddOnSelection] = Field(default_factory=list)
    applied_promo_code: PromoCode | None = None
    pricing: PricingBreakdown
    total_guests: int
    created_at: datetime.datetime


class CustomerInfo(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    agree_to_terms: bool = False
    subscribe_to_newsletter: bool = False


class PaymentIntent(BaseModel):
    id: str | None = None
    client_secret: str
    amount: Decimal


class CompletedBooking(BaseModel):
    booking_id: str
    cart_items: list[CartItem]
    customer_info: CustomerInfo
    total_amount: Decimal
    payment_method: str
    booking_date: datetime.datetime
    confirmation: dict[str, Any] = Field(default_factory=dict)


class CalendarDay(BaseModel):
    date: datetime.date
    date_str: str
    day: int
    is_current_month: bool
    is_past: bool
    is_today: bool
    is_selected: bool
