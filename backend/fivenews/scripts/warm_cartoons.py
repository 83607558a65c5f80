# backend/fivenews/scripts/warm_cartoons.py
"""
Generate missing cartoons for the latest headlines outside the web process
Run with: python -m fivenews.scripts.warm_cartoons --limit 60 --max-new 12
"""
import argparse
import asyncio
import logging

from fivenews.ai_pipeline.cartoon_warmer import CartoonWarmer
from fivenews.config import (
    CARTOON_WARM_LIMIT,
    CARTOON_WARM_MAX_NEW,
    CARTOON_WARM_MIN_DELAY_SECONDS,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Pre-generate cartoons for the latest headlines")
    parser.add_argument("--limit", type=int, default=CARTOON_WARM_LIMIT,
                        help="How many of the newest headlines to consider")
    parser.add_argument("--max-new", type=int, default=CARTOON_WARM_MAX_NEW,
                        help="Most cartoons to generate this run")
    parser.add_argument("--min-delay", type=float, default=CARTOON_WARM_MIN_DELAY_SECONDS,
                        help="Seconds between generation starts")
    return parser.parse_args(argv)


async def main(argv=None):
    """Main entry point"""
    args = parse_args(argv)
    stats = await CartoonWarmer().warm_cartoons(
        limit=args.limit,
        max_new=args.max_new,
        min_delay_seconds=args.min_delay,
    )

    if stats["failed"] == 0:
        logger.info("✅ Warming completed successfully")
        return 0
    logger.error(f"❌ Warming completed with {stats['failed']} failures")
    return 1


if __name__ == "__main__":
    exit_code = asyncio.run(main())
    exit(exit_code)
