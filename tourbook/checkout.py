import datetime
import logging
import re
from typing import Any

from tourbook.cart import CartStore, record_completed_booking
from tourbook.clients.tour_client import LiveTourClient
from tourbook.exceptions import CheckoutValidationError, EmptyCart
from tourbook.models import CartItem, CompletedBooking, CustomerInfo

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"\S+@\S+\.\S+")
PAYMENT_METHODS = ("card", "paypal", "bank")


def validate_customer_info(info: CustomerInfo) -> dict[str, str]:
    """Field name -> message for every problem; empty when the details are valid."""
    errors = {}
    if not info.first_name.strip():
        errors["first_name"] = "First name is required"
    if not info.last_name.strip():
        errors["last_name"] = "Last name is required"
    if not info.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.search(info.email):
        errors["email"] = "Please enter a valid email address"
    if not info.phone.strip():
        errors["phone"] = "Phone number is required"
    if not info.agree_to_terms:
        errors["agree_to_terms"] = "You must agree to the terms and conditions"
    return errors


def build_booking_request(
    cart_items: list[CartItem],
    customer_info: CustomerInfo,
    payment_method: str,
    payment_intent_id: str | None = None,
) -> dict[str, Any]:
    """Payload for `create-bookings`; prices are sent exactly as computed."""
    return {
        "customer": customer_info.model_dump(mode="json"),
        "payment_method": payment_method,
        "payment_intent_id": payment_intent_id,
        "bookings": [
            {
                "tenant_id": item.tenant_id,
                "package_id": item.package_id,
                "date": item.selected_date,
                "slot_id": item.selected_slot.id if item.selected_slot else None,
                "coupon": (
                    item.applied_promo_code.coupon_code
                    if item.applied_promo_code
                    else None
                ),
                "guests": item.total_guests,
                "rate_groups": [
                    {
                        "rate_group_id": selection.rate_group.id,
                        "quantity": selection.quantity,
                        "subtotal": str(selection.subtotal),
                        "commission": str(selection.commission),
                        "total": str(selection.total),
                    }
                    for selection in item.rate_group_selections
                ],
                "add_ons": [
                    add_on.model_dump(mode="json") for add_on in item.add_on_selections
                ],
                "pricing": item.pricing.model_dump(mode="json"),
            }
            for item in cart_items
        ],
    }


def checkout(
    client: LiveTourClient,
    cart: CartStore,
    customer_info: CustomerInfo,
    payment_method: str = "card",
    now: datetime.datetime | None = None,
) -> CompletedBooking:
    """Pay for and book everything in the cart.

    The completed booking is recorded for the confirmation view and the
    cart is cleared only once the backend has accepted the bookings.
    """
    errors = validate_customer_info(customer_info)
    if payment_method not in PAYMENT_METHODS:
        errors["payment_method"] = f"Unsupported payment method {payment_method!r}"
    if errors:
        raise CheckoutValidationError(errors)
    if not cart.count():
        raise EmptyCart("Cannot check out an empty cart")

    cart.customer_info = customer_info
    now = now or datetime.datetime.now(datetime.UTC)
    total = cart.total()

    logger.info(f"Checking out {cart.count()} item(s) for {total}")
    intent = client.create_payment_intent(
        total, metadata={"email": customer_info.email}
    )
    confirmation = client.create_bookings(
        build_booking_request(cart.items, customer_info, payment_method, intent.id)
    )

    booking = CompletedBooking(
        booking_id=str(
            confirmation.get("booking_id") or f"TN-{int(now.timestamp() * 1000)}"
        ),
        cart_items=list(cart.items),
        customer_info=customer_info,
        total_amount=total,
        payment_method=payment_method,
        booking_date=now,
        confirmation=confirmation,
    )
    record_completed_booking(cart.storage, booking)
    cart.clear()
    logger.info(f"Booking {booking.booking_id} completed")
    return booking
