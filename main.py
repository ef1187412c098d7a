import argparse
import asyncio
import sys

from pydantic import ValidationError

from core.config import Settings, load_settings
from core.exceptions import NotifierException
from core.logger import get_logger, setup_logging
from services.scraper_service import ScraperService

logger = get_logger(__name__)


def validate_startup(settings: Settings) -> bool:
    """Logs configuration problems; False if any of them is fatal."""
    validation_errors = settings.validate_all()
    for msg in validation_errors:
        if "❌" in msg:
            logger.critical(msg)
        else:
            logger.warning(msg)

    return not any("❌" in msg for msg in validation_errors)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="AO3 -> Discord new works notifier")
    parser.add_argument(
        "--init",
        action="store_true",
        help="Store the current newest work as the watermark without notifying",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Log the messages that would be sent; send nothing, save nothing",
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
    except ValidationError as e:
        sys.stderr.write(f"Invalid configuration:\n{e}\n")
        return 1

    setup_logging(settings)

    if not validate_startup(settings):
        logger.critical("Configuration validation failed")
        return 1

    if args.init:
        logger.info("🚀 Starting in INIT MODE (watermark seeding, notifications disabled)")

    service = ScraperService(settings, init_mode=args.init, dry_run=args.dry_run)

    try:
        report = asyncio.run(service.run())
    except NotifierException as e:
        logger.critical(f"Run failed: {type(e).__name__}: {e}", exc_info=True)
        return 1
    except Exception as e:
        logger.critical(f"Unexpected error: {e}", exc_info=True)
        return 1

    logger.info(
        f"Run completed: {report.outcome.value}",
        context={
            "new_works": report.new_entries,
            "messages": report.messages_sent,
            "watermark": report.watermark,
        },
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
