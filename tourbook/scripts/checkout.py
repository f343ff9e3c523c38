import argparse
import logging

from dotenv import load_dotenv

from tourbook.cart import CartStore, JsonFileStorage, pop_completed_booking
from tourbook.checkout import PAYMENT_METHODS, checkout
from tourbook.clients.tour_client import get_client
from tourbook.config import load_config
from tourbook.exceptions import CheckoutValidationError, EmptyCart
from tourbook.models import CustomerInfo

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Book everything in the cart")
    parser.add_argument("--first-name", required=True)
    parser.add_argument("--last-name", required=True)
    parser.add_argument("--email", required=True)
    parser.add_argument("--phone", required=True)
    parser.add_argument("--agree-to-terms", action="store_true")
    parser.add_argument("--newsletter", action="store_true")
    parser.add_argument("--payment-method", choices=PAYMENT_METHODS, default="card")
    parser.add_argument("--config", default="config.yaml", help="Config file")
    args = parser.parse_args()

    load_dotenv()
    config = load_config(args.config)
    storage = JsonFileStorage(config.storage_path)
    cart = CartStore(storage)

    customer_info = CustomerInfo(
        first_name=args.first_name,
        last_name=args.last_name,
        email=args.email,
        phone=args.phone,
        agree_to_terms=args.agree_to_terms,
        subscribe_to_newsletter=args.newsletter,
    )

    try:
        with get_client(config.api) as client:
            checkout(client, cart, customer_info, args.payment_method)
    except (CheckoutValidationError, EmptyCart) as e:
        raise SystemExit(str(e))

    booking = pop_completed_booking(storage)
    print(f"Booking {booking.booking_id} confirmed")
    for item in booking.cart_items:
        slot = f" at {item.selected_slot.time}" if item.selected_slot else ""
        print(
            f"  {item.package_name} on {item.selected_date}{slot} | "
            f"{item.total_guests} guest(s) | {item.pricing.total_amount}"
        )
    print(f"Total paid: {booking.total_amount}")


if __name__ == "__main__":
    main()
