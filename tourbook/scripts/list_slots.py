import argparse
import logging

from dotenv import load_dotenv

from tourbook import timezones
from tourbook.allocation import available_seats, uses_slot_pricing
from tourbook.clients.tour_client import get_client
from tourbook.config import load_config

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="List bookable time slots of a tour package")
    parser.add_argument("--tenant", required=True, help="Tenant (operator) id")
    parser.add_argument("--package", required=True, type=int, help="Package id")
    parser.add_argument("--date", help="Tour date (YYYY-MM-DD), defaults to today")
    parser.add_argument("--config", default="config.yaml", help="Config file")
    args = parser.parse_args()

    load_dotenv()
    config = load_config(args.config)

    with get_client(config.api) as client:
        package = client.get_package(args.tenant, args.package)
        timezone = timezones.package_timezone(package.timezone, config.default_timezone)
        date = args.date or timezones.today(timezone)

        slots = client.get_time_slots(args.tenant, args.package, date)
        slots = timezones.filter_future_slots(slots, date, timezone)

    if not slots:
        logger.info(f"No time slots found for {date}")
        return

    slot_pricing = uses_slot_pricing(slots)
    logger.info(
        f"Found {len(slots)} time slots on {timezones.format_date_for_display(date)} "
        f"({timezones.timezone_abbreviation(timezone)}):"
    )
    for slot in slots:
        pricing = "slot pricing" if slot.custom_rate > 0 else "date pricing"
        print(f"  {slot.time} | {slot.bookable_status} | {slot.seats} seats | {pricing}")
    if not slot_pricing:
        print(f"  Bookable seats for the day: {available_seats(slots, None, False)}")


if __name__ == "__main__":
    main()
