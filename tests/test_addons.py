from decimal import Decimal

import pytest
from pydantic import TypeAdapter

from tourbook import addons
from tourbook.models import FormField, LinePricing

_form_field = TypeAdapter(FormField)

TEN_PERCENT = Decimal("10")


def make_field(
    type_: str,
    unit: str = "setprice",
    price: str = "10.00",
    enabled: str = "true",
    **extra,
):
    return _form_field.validate_python(
        {
            "id": extra.pop("id", "f1"),
            "name": extra.pop("name", "Extra"),
            "type": type_,
            "required": extra.pop("required", "false"),
            "visibility": extra.pop("visibility", "frontend"),
            "order": extra.pop("order", "1"),
            "priceInfo": {"enabled": enabled, "price": price, "unit": unit},
            **extra,
        }
    )


def test_form_fields_parse_into_their_variant():
    radio = make_field(
        "radio",
        attrs={"options": [{"id": "1", "name": "None", "value": "0"}]},
    )
    number = make_field("number", attrs={"min": "1", "max": "5"})

    assert type(radio).__name__ == "RadioField"
    assert radio.attrs.options[0].value == "0"
    assert addons.min_value(number) == 1
    assert addons.max_value(number) == 5


def test_checkbox_set_price():
    pricing = addons.price_add_on(make_field("checkbox"), True, 4, TEN_PERCENT)

    assert pricing == LinePricing(
        subtotal=Decimal("10.00"), commission=Decimal("1.00"), total=Decimal("11.00")
    )


def test_unchecked_checkbox_is_free():
    assert addons.price_add_on(make_field("checkbox"), False, 4, TEN_PERCENT) == LinePricing()


def test_checkbox_price_per_pax_multiplies_guests():
    pricing = addons.price_add_on(
        make_field("checkbox", unit="priceperpax"), True, 3, TEN_PERCENT
    )

    assert pricing.subtotal == Decimal("30.00")
    assert pricing.commission == Decimal("3.00")
    assert pricing.total == Decimal("33.00")


@pytest.mark.parametrize("unit", ["setprice", "priceperpax"])
@pytest.mark.parametrize("value", ["0", "", None, 0])
def test_radio_none_option_is_never_charged(unit, value):
    field = make_field("radio", unit=unit, price="99.00")

    assert addons.price_add_on(field, value, 5, TEN_PERCENT) == LinePricing()


def test_radio_selected_value():
    assert addons.price_add_on(
        make_field("radio"), "kayak", 3, TEN_PERCENT
    ).subtotal == Decimal("10.00")
    assert addons.price_add_on(
        make_field("radio", unit="priceperpax"), "kayak", 3, TEN_PERCENT
    ).subtotal == Decimal("30.00")


@pytest.mark.parametrize("unit", ["setprice", "priceperpax"])
def test_number_field_charges_per_unit_not_per_guest(unit):
    pricing = addons.price_add_on(make_field("number", unit=unit), 3, 5, TEN_PERCENT)

    assert pricing.subtotal == Decimal("30.00")
    assert pricing.commission == Decimal("3.00")


def test_number_field_zero_is_free():
    assert addons.price_add_on(make_field("number"), 0, 5, TEN_PERCENT) == LinePricing()


@pytest.mark.parametrize("type_", ["select", "text", "textarea"])
def test_informational_fields_never_price(type_):
    assert addons.price_add_on(make_field(type_), "anything", 5, TEN_PERCENT) == LinePricing()


def test_unit_n_never_prices():
    assert addons.price_add_on(make_field("checkbox", unit="n"), True, 5, TEN_PERCENT) == LinePricing()


def test_disabled_or_free_pricing_is_zero():
    assert addons.price_add_on(
        make_field("checkbox", enabled="false"), True, 5, TEN_PERCENT
    ) == LinePricing()
    assert addons.price_add_on(
        make_field("checkbox", price="0"), True, 5, TEN_PERCENT
    ) == LinePricing()


def test_commission_is_rounded_up():
    field = make_field("checkbox", price="9.99")

    pricing = addons.price_add_on(field, True, 1, Decimal("7.5"))

    assert pricing.commission == Decimal("0.75")
    assert pricing.total == Decimal("10.74")


def test_visible_fields_filters_and_sorts_by_order():
    fields = [
        make_field("checkbox", id="a", order="10"),
        make_field("checkbox", id="b", order="2", visibility="both"),
        make_field("checkbox", id="c", order="1", visibility="backend"),
    ]

    assert [field.id for field in addons.visible_fields(fields)] == ["b", "a"]


def test_default_values():
    assert addons.default_value(make_field("checkbox", default="true")) is True
    assert addons.default_value(make_field("checkbox")) is False
    assert addons.default_value(make_field("number", default="3")) == 3
    assert addons.default_value(make_field("number")) == 0
    assert addons.default_value(make_field("radio")) == ""
    assert addons.default_value(make_field("select", default="blue")) == "blue"


def test_validate_required_fields():
    assert not addons.validate_field(make_field("checkbox", required="true"), False)
    assert addons.validate_field(make_field("checkbox", required="true"), True)
    assert not addons.validate_field(make_field("number", required="true"), 0)
    assert not addons.validate_field(make_field("text", required="true"), "  ")
    assert addons.validate_field(make_field("text", required="true"), "Vegetarian")
    assert addons.validate_field(make_field("text"), "")


def test_selected_add_ons_keeps_only_chosen_values():
    fields = [
        make_field("checkbox", id="snacks"),
        make_field("radio", id="boat"),
        make_field("select", id="shirt"),
        make_field("number", id="photos"),
        make_field("text", id="notes"),
    ]
    values = {"snacks": True, "boat": "0", "shirt": "M", "photos": 2, "notes": ""}

    selected = addons.selected_add_ons(fields, values, 2, TEN_PERCENT)

    assert [add_on.field_id for add_on in selected] == ["snacks", "shirt", "photos"]
    assert selected[0].pricing.subtotal == Decimal("10.00")
    assert selected[1].pricing == LinePricing()
    assert selected[2].pricing.subtotal == Decimal("20.00")


def test_pricing_display():
    assert addons.pricing_display(make_field("checkbox", price="12")) == "+$12.00"
    assert addons.pricing_display(
        make_field("checkbox", unit="priceperpax", price="12")
    ) == "+$12.00 per person"
    assert addons.pricing_display(make_field("checkbox", enabled="false")) == ""


def test_field_label():
    assert addons.field_label(make_field("text", name="Diet", required="true")) == "Diet *"
    assert addons.field_label(make_field("text", name="Diet")) == "Diet"


def test_number_bounds_default():
    field = make_field("number")

    assert addons.min_value(field) == 0
    assert addons.max_value(field) == 999


def test_blank_numeric_attributes_fall_back_to_defaults():
    field = make_field("number", order="", attrs={"min": "", "max": None})

    assert field.order == 0
    assert addons.min_value(field) == 0
    assert addons.max_value(field) == 999


@pytest.mark.parametrize(
    "value, expected", [(5000, 5), ("3", 3), (0, 1), (-2, 1), ("lots", 1)]
)
def test_clamp_number_keeps_value_in_bounds(value, expected):
    field = make_field("number", attrs={"min": "1", "max": "5"})

    assert addons.clamp_number(field, value) == expected
