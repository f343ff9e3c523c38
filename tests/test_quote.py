import argparse
from types import SimpleNamespace

import pytest
from pydantic import TypeAdapter

from tourbook.models import FormField
from tourbook.scripts.quote import add_on_lines, parse_add_on_value, parse_assignment

_form_field = TypeAdapter(FormField)


def test_parse_assignment():
    assert parse_assignment(" Adult = 2 ") == ("Adult", "2")

    with pytest.raises(argparse.ArgumentTypeError):
        parse_assignment("Adult")


@pytest.mark.parametrize(
    "raw, expected", [("true", True), ("False", False), ("3", 3), ("blue", "blue")]
)
def test_parse_add_on_value(raw, expected):
    assert parse_add_on_value(raw) == expected


def test_add_on_lines_show_label_and_price():
    fields = [
        _form_field.validate_python(
            {
                "id": "snacks",
                "name": "Snack box",
                "type": "checkbox",
                "required": "true",
                "order": "2",
                "priceInfo": {"enabled": "true", "price": "12", "unit": "priceperpax"},
            }
        ),
        _form_field.validate_python(
            {"id": "notes", "name": "Notes", "type": "text", "order": "1"}
        ),
    ]
    session = SimpleNamespace(
        form_fields=fields, add_on_values={"snacks": True, "notes": "Vegetarian"}
    )

    assert add_on_lines(session) == [
        "  Notes: Vegetarian",
        "  Snack box * (+$12.00 per person): True",
    ]
