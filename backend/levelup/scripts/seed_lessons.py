"""
LevelUp Learning - Lesson Seeder
Generates lessons for every subtopic that does not have any yet.

Progress is checkpointed to SEED_CHECKPOINT_PATH after each batch, so an
interrupted run picks up where it stopped.
"""
import argparse
import asyncio
import logging
from pathlib import Path

from levelup.ai.core.llm import get_llm_client
from levelup.ai.lesson_generator import LessonGenerator
from levelup.core.config import settings
from levelup.core.database import async_session_maker, init_db
from levelup.services.lesson_seeding import LessonSeeder

logger = logging.getLogger(__name__)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed AI-generated lessons for all subtopics")
    parser.add_argument("--checkpoint", type=Path, default=Path(settings.SEED_CHECKPOINT_PATH))
    parser.add_argument("--concurrency", type=int, default=settings.SEED_CONCURRENCY)
    parser.add_argument("--lessons", type=int, default=settings.SEED_LESSONS_PER_SUBTOPIC)
    return parser.parse_args()


async def main(args: argparse.Namespace) -> int:
    await init_db()
    seeder = LessonSeeder(
        async_session_maker,
        LessonGenerator(get_llm_client()),
        checkpoint_path=args.checkpoint,
        concurrency=args.concurrency,
        lessons_per_subtopic=args.lessons,
    )
    report = await seeder.run()
    if report.failed:
        logger.warning("%d subtopics failed; re-run to retry them", report.failed)
        return 1
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    raise SystemExit(asyncio.run(main(parse_args())))
