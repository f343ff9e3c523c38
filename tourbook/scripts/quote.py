import argparse
import logging
from typing import Any

from dotenv import load_dotenv

from tourbook.addons import field_label, pricing_display, visible_fields
from tourbook.cart import CartStore, JsonFileStorage
from tourbook.clients.tour_client import get_client
from tourbook.config import load_config
from tourbook.scheduling import ScheduleSession

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_assignment(value: str) -> tuple[str, str]:
    """Split NAME=VALUE command-line arguments."""
    name, sep, raw = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected NAME=VALUE, got {value!r}")
    return name.strip(), raw.strip()


def parse_add_on_value(raw: str) -> Any:
    if raw.lower() in ("true", "false"):
        return raw.lower() == "true"
    if raw.isdigit():
        return int(raw)
    return raw


def select_guests(session: ScheduleSession, guests: list[tuple[str, str]]) -> None:
    lines = {
        selection.rate_group.rate_for.lower(): index
        for index, selection in enumerate(session.allocation.selections)
    }
    for rate_for, quantity in guests:
        index = lines.get(rate_for.lower())
        if index is None:
            raise ValueError(f"Unknown rate group {rate_for!r}, expected one of {sorted(lines)}")
        if not session.update_quantity(index, int(quantity)):
            logger.warning(
                f"Not enough seats for {quantity} x {rate_for} "
                f"({session.remaining_seats} remaining)"
            )


def add_on_lines(session: ScheduleSession) -> list[str]:
    lines = []
    for field in visible_fields(session.form_fields):
        price = pricing_display(field)
        label = f"{field_label(field)} ({price})" if price else field_label(field)
        lines.append(f"  {label}: {session.add_on_values.get(field.id)}")
    return lines


def main():
    parser = argparse.ArgumentParser(description="Price a tour booking")
    parser.add_argument("--tenant", required=True, help="Tenant (operator) id")
    parser.add_argument("--package", required=True, type=int, help="Package id")
    parser.add_argument("--date", help="Tour date (YYYY-MM-DD), defaults to today")
    parser.add_argument("--slot", help="Slot time (HH:MM)")
    parser.add_argument(
        "--guests", type=parse_assignment, action="append", default=[],
        help="Guests per rate group, e.g. Adult=2",
    )
    parser.add_argument("--group-size", type=int, help="Group size for group-rate packages")
    parser.add_argument(
        "--add-on", type=parse_assignment, action="append", default=[],
        help="Add-on field value, e.g. 12=true",
    )
    parser.add_argument("--promo", help="Promo code")
    parser.add_argument("--add-to-cart", action="store_true", help="Store the quote in the cart")
    parser.add_argument("--config", default="config.yaml", help="Config file")
    args = parser.parse_args()

    load_dotenv()
    config = load_config(args.config)

    with get_client(config.api) as client:
        session = ScheduleSession(
            client, args.tenant, args.package, default_timezone=config.default_timezone
        )
        session.load()
        if args.date and args.date != session.selected_date:
            session.select_date(args.date)
        if session.error:
            raise SystemExit(session.error)

        if args.slot:
            slot = next((s for s in session.filtered_slots if s.time == args.slot), None)
            if slot is None or not session.select_slot(slot):
                raise SystemExit(f"No open slot at {args.slot} on {session.selected_date}")

        if args.group_size is not None:
            if not session.select_group_size(args.group_size):
                raise SystemExit(f"No group rate for {args.group_size} guests fits the available seats")
        select_guests(session, args.guests)

        for field_id, raw in args.add_on:
            session.set_add_on(field_id, parse_add_on_value(raw))

        if args.promo and not session.apply_promo_code(args.promo):
            logger.warning(session.promo_error)

    for line in add_on_lines(session):
        print(line)

    breakdown = session.breakdown()
    print(f"Tour subtotal:   {breakdown.tour_subtotal}")
    print(f"Promo discount: -{breakdown.promo_discount}")
    print(f"Add-ons:         {breakdown.add_on_subtotal}")
    print(f"Subtotal:        {breakdown.total_subtotal}")
    print(f"Service fees:    {breakdown.total_fees}")
    print(f"Total:           {breakdown.total_amount}")

    if args.add_to_cart:
        if not session.can_book:
            raise SystemExit("Selection is not bookable yet")
        cart = CartStore(JsonFileStorage(config.storage_path))
        cart.add(session.create_cart_item())
        logger.info(f"Cart now holds {cart.count()} item(s), total {cart.total()}")


if __name__ == "__main__":
    main()
