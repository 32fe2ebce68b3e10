#!/usr/bin/env python3
"""
Orthodox Daily - the day's scripture readings for voice assistants.

Usage:
    python main.py --serve      # Run the skill webhook (HTTP)
    python main.py --telegram   # Run the Telegram bot
    python main.py --preview    # Preview today's readings turn by turn
"""

import argparse
import logging
import sys

import uvicorn
from dotenv import load_dotenv

from orthodox_daily.bot import OrthodoxDailyBot
from orthodox_daily.config import Config
from orthodox_daily.delivery import DeliveryStateMachine, Signal, Turn
from orthodox_daily.orthocal import OrthocalClient
from orthodox_daily.server import create_app
from orthodox_daily.speech import to_plain_text

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Orthodox Daily scripture readings",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py --serve --port 8080     Serve the skill webhook
    python main.py --telegram              Run the Telegram bot with polling
    python main.py --preview --date 2026-04-12
        """,
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Serve the Alexa skill webhook over HTTP",
    )
    parser.add_argument(
        "--telegram",
        action="store_true",
        help="Run the Telegram bot in polling mode",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Print every turn of a full reading session without serving",
    )
    parser.add_argument(
        "--date",
        type=str,
        help="Date for preview (YYYY-MM-DD format)",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=8080, help="Port for --serve")
    return parser.parse_args()


def preview_readings(config: Config, date_override: str | None = None) -> int:
    """Walk through a whole reading session and print each turn."""
    client = OrthocalClient(
        calendar=config.calendar,
        base_url=config.orthocal_base_url,
        timeout=config.request_timeout,
    )
    delivery = DeliveryStateMachine(client, config.budget(), config.tz)
    today = delivery.today()

    print(f"\n{'=' * 60}")
    print(f"Preview for: {date_override or today}")
    print("=" * 60)

    result = delivery.handle(Turn(Signal.SCRIPTURES, date_override), None, today)
    turns = [result]
    while result.session is not None:
        previous = result.session
        result = delivery.handle(Turn(Signal.CONTINUE), previous, today)
        turns.append(result)
        if result.session == previous:
            print("ERROR: reading session did not advance", file=sys.stderr)
            return 1

    for i, turn in enumerate(turns, 1):
        cursor = turn.session.to_attributes() if turn.session else "end"
        print(f"\n--- Turn {i} ({len(turn.speech)} chars, next: {cursor}) ---")
        print(to_plain_text(turn.speech))

    print(f"\n{'=' * 60}")
    print(f"Total turns: {len(turns)}")
    print(f"Longest turn: {max(len(t.speech) for t in turns)} chars")
    print(f"Limit: {config.max_speech_length} chars")
    return 0


def main() -> int:
    """Main entry point."""
    load_dotenv()

    args = parse_args()

    try:
        config = Config.from_env()
    except ValueError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    config.setup_logging()

    if args.preview:
        return preview_readings(config, args.date)

    if args.telegram:
        if not config.telegram_bot_token:
            print(
                "Configuration error: TELEGRAM_BOT_TOKEN is required",
                file=sys.stderr,
            )
            return 1
        logger.info("Orthodox Daily Telegram bot starting...")
        logger.info(f"Token: {config.telegram_bot_token[:10]}...")
        OrthodoxDailyBot(config).run_polling()
        return 0

    if args.serve:
        logger.info(f"Orthodox Daily skill starting on {args.host}:{args.port}...")
        logger.info(f"Calendar: {config.calendar}, time zone: {config.time_zone}")
        uvicorn.run(create_app(config), host=args.host, port=args.port)
        return 0

    print("Nothing to do: pass --serve, --telegram or --preview", file=sys.stderr)
    return 2


if __name__ == "__main__":
    sys.exit(main())
