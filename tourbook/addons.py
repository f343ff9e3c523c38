"""Pricing and handling of a package's custom form fields (add-ons)."""

from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any

from tourbook.models import (
    AddOnSelection,
    CheckboxField,
    FormField,
    LinePricing,
    NumberField,
    RadioField,
    SelectField,
    TextAreaField,
    TextField,
)
from tourbook.money import ZERO, parse_amount, percentage_of

DEFAULT_MIN_VALUE = 0
DEFAULT_MAX_VALUE = 999

# Radio value used by generated forms for "none of the above"
NO_CHARGE_VALUE = "0"


def visible_fields(fields: Iterable[FormField]) -> list[FormField]:
    """Fields shown to customers, in form order."""
    return sorted(
        (field for field in fields if field.visibility in ("frontend", "both")),
        key=lambda field: field.order,
    )


def has_pricing(field: FormField) -> bool:
    return field.price_info.enabled and field.price_info.price > 0


def should_price_radio_value(value: Any) -> bool:
    return value not in (None, "") and str(value) != NO_CHARGE_VALUE


def _unit_count(value: Any) -> Decimal:
    count = parse_amount(value)
    return count if count > 0 else ZERO


def price_add_on(
    field: FormField,
    value: Any,
    guest_count: int,
    commission_percentage: Decimal,
) -> LinePricing:
    """Subtotal, commission and total charged for one add-on value.

    Must be recomputed on every change of value, guest count or commission.
    """
    if not has_pricing(field) or field.price_info.unit == "n":
        return LinePricing()

    per_pax = field.price_info.unit == "priceperpax"
    match field:
        case CheckboxField():
            units = Decimal(guest_count if per_pax else 1) if value is True else ZERO
        case RadioField():
            selected = should_price_radio_value(value)
            units = Decimal(guest_count if per_pax else 1) if selected else ZERO
        case NumberField():
            # An explicit unit count is never multiplied by the guest count
            units = _unit_count(value)
        case SelectField() | TextField() | TextAreaField():
            units = ZERO

    subtotal = field.price_info.price * units
    commission = percentage_of(subtotal, commission_percentage)
    return LinePricing(subtotal=subtotal, commission=commission, total=subtotal + commission)


def default_value(field: FormField) -> Any:
    match field:
        case CheckboxField():
            return field.default == "true"
        case NumberField():
            return int(parse_amount(field.default))
        case RadioField() | SelectField() | TextField() | TextAreaField():
            return field.default or ""


def initial_values(fields: Iterable[FormField]) -> dict[str, Any]:
    return {field.id: default_value(field) for field in visible_fields(fields)}


def validate_field(field: FormField, value: Any) -> bool:
    """Whether `value` satisfies the field's required flag."""
    if not field.required:
        return True
    match field:
        case CheckboxField():
            return value is True
        case NumberField():
            return _unit_count(value) > 0
        case _:
            if isinstance(value, str):
                return value.strip() != ""
            return value is not None


def is_selected(field: FormField, value: Any) -> bool:
    """Whether a value counts as chosen when the booking is put in the cart."""
    match field:
        case CheckboxField():
            return value is True
        case RadioField():
            return should_price_radio_value(value)
        case NumberField():
            return _unit_count(value) > 0
        case SelectField() | TextField() | TextAreaField():
            return isinstance(value, str) and value.strip() != ""


def selected_add_ons(
    fields: Iterable[FormField],
    values: Mapping[str, Any],
    guest_count: int,
    commission_percentage: Decimal,
) -> list[AddOnSelection]:
    return [
        AddOnSelection(
            field_id=field.id,
            name=field.name,
            type=field.type,
            value=values[field.id],
            pricing=price_add_on(
                field, values[field.id], guest_count, commission_percentage
            ),
        )
        for field in visible_fields(fields)
        if field.id in values and is_selected(field, values[field.id])
    ]


def pricing_display(field: FormField) -> str:
    if not has_pricing(field):
        return ""
    price = f"+${field.price_info.price:.2f}"
    match field.price_info.unit:
        case "setprice":
            return price
        case "priceperpax":
            return f"{price} per person"
        case _:
            return ""


def field_label(field: FormField) -> str:
    return f"{field.name} *" if field.required else field.name


def min_value(field: NumberField) -> int:
    return field.attrs.min if field.attrs.min is not None else DEFAULT_MIN_VALUE


def max_value(field: NumberField) -> int:
    return field.attrs.max if field.attrs.max is not None else DEFAULT_MAX_VALUE


def clamp_number(field: NumberField, value: Any) -> int:
    """Keep a number add-on within the field's bounds."""
    count = int(parse_amount(value))
    return max(min_value(field), min(count, max_value(field)))
