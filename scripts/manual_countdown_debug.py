"""One-off script for debugging the daily countdown refresh."""

import argparse
from datetime import datetime, timedelta

from config.settings import load_config
from modules.services.countdown_service import build_service
from modules.utils.logging import setup_logging


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--event", default="Summer vacation")
    parser.add_argument("--days", type=int, default=5, help="days from today to the target date")
    parser.add_argument("--style", default="")
    parser.add_argument("--force", action="store_true", help="regenerate even if today's image exists")
    args = parser.parse_args()

    # 1. Real configuration and services
    config = load_config()
    setup_logging(config)
    service = build_service(config)

    # 2. Set up a countdown when none exists yet, otherwise run the daily check
    view = service.load_countdown_data()
    if not view.is_setup:
        target = datetime.now() + timedelta(days=args.days)
        view = service.start_countdown(args.event, target, args.style or None)
    elif args.force:
        view = service.regenerate()

    print("Status:", view.status.value)
    print(view.headline)
    if view.error is not None:
        print("Error:", view.error)
    if view.artifact_path is not None:
        print("Image:", view.artifact_path)


if __name__ == "__main__":
    main()
