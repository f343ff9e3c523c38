import datetime
from decimal import Decimal

import pytest

from tourbook.cart import CartStore, MemoryStorage, pop_completed_booking
from tourbook.checkout import build_booking_request, checkout, validate_customer_info
from tourbook.exceptions import BackendError, CheckoutValidationError, EmptyCart
from tourbook.models import CustomerInfo, PaymentIntent


class FakeClient:
    def __init__(self, confirmation=None, fail_bookings=False):
        self.confirmation = confirmation if confirmation is not None else {}
        self.fail_bookings = fail_bookings
        self.intents = []
        self.bookings = []

    def create_payment_intent(self, amount, currency="usd", metadata=None):
        self.intents.append((amount, metadata))
        return PaymentIntent(id="pi_123", client_secret="secret", amount=amount)

    def create_bookings(self, payload):
        if self.fail_bookings:
            raise BackendError("Booking failed", 500)
        self.bookings.append(payload)
        return self.confirmation


@pytest.fixture
def customer() -> CustomerInfo:
    return CustomerInfo(
        first_name="Ana",
        last_name="Lopez",
        email="ana@example.com",
        phone="+1 602 555 0100",
        agree_to_terms=True,
    )


@pytest.fixture
def cart(make_cart_item) -> CartStore:
    cart = CartStore(MemoryStorage())
    cart.add(make_cart_item("a"))
    cart.add(make_cart_item("b", total_amount="23.45"))
    return cart


def test_valid_customer_has_no_errors(customer):
    assert validate_customer_info(customer) == {}


def test_missing_customer_details():
    errors = validate_customer_info(CustomerInfo(email="ana@example"))

    assert set(errors) == {
        "first_name",
        "last_name",
        "email",
        "phone",
        "agree_to_terms",
    }
    assert errors["email"] == "Please enter a valid email address"
    assert validate_customer_info(CustomerInfo())["email"] == "Email is required"


def test_booking_request_carries_prices_as_computed(make_cart_item, customer):
    request = build_booking_request([make_cart_item()], customer, "card", "pi_1")

    booking = request["bookings"][0]
    assert request["payment_intent_id"] == "pi_1"
    assert request["customer"]["email"] == "ana@example.com"
    assert booking["tenant_id"] == "acme"
    assert booking["slot_id"] == 2
    assert booking["coupon"] is None
    assert booking["rate_groups"] == [
        {
            "rate_group_id": 1,
            "quantity": 3,
            "subtotal": "160.50",
            "commission": "16.05",
            "total": "176.55",
        }
    ]
    assert booking["pricing"]["total_amount"] == "176.55"


def test_checkout_books_and_clears_the_cart(cart, customer, now):
    client = FakeClient(confirmation={"booking_id": "BK-42"})

    booking = checkout(client, cart, customer, now=now)

    assert client.intents == [(Decimal("200.00"), {"email": "ana@example.com"})]
    assert len(client.bookings[0]["bookings"]) == 2
    assert booking.booking_id == "BK-42"
    assert booking.total_amount == Decimal("200.00")
    assert [item.id for item in booking.cart_items] == ["a", "b"]
    assert cart.count() == 0
    assert cart.customer_info == customer
    assert pop_completed_booking(cart.storage) == booking


def test_checkout_generates_booking_id(cart, customer, now):
    booking = checkout(FakeClient(), cart, customer, now=now)

    assert booking.booking_id == f"TN-{int(now.timestamp() * 1000)}"


def test_checkout_rejects_invalid_details(cart, customer):
    client = FakeClient()
    customer.agree_to_terms = False

    with pytest.raises(CheckoutValidationError) as excinfo:
        checkout(client, cart, customer, payment_method="cash")

    assert set(excinfo.value.errors) == {"agree_to_terms", "payment_method"}
    assert client.intents == []
    assert cart.count() == 2


def test_checkout_rejects_empty_cart(customer):
    with pytest.raises(EmptyCart):
        checkout(FakeClient(), CartStore(MemoryStorage()), customer)


def test_failed_booking_keeps_the_cart(cart, customer):
    with pytest.raises(BackendError):
        checkout(
            FakeClient(fail_bookings=True),
            cart,
            customer,
            now=datetime.datetime(2024, 6, 10, tzinfo=datetime.UTC),
        )

    assert cart.count() == 2
    assert pop_completed_booking(cart.storage) is None
