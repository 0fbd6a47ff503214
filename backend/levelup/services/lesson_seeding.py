"""
LevelUp Learning - Lesson Seeding
Resumable batch generation of lessons for every curriculum subtopic
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from levelup.ai.lesson_generator import LessonGenerator
from levelup.core.config import settings
from levelup.models.curriculum import Level, Subject, Subtopic
from levelup.services.lesson import LessonService

logger = logging.getLogger(__name__)


@dataclass
class Checkpoint:
    """Subtopics already seeded, persisted as JSON between runs."""
    completed_subtopic_ids: list[str] = field(default_factory=list)
    last_updated: Optional[str] = None

    @classmethod
    def load(cls, path: Path) -> "Checkpoint":
        if not path.exists():
            logger.info("No checkpoint at %s, starting fresh", path)
            return cls()
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            completed_subtopic_ids=list(data.get("completed_subtopic_ids", [])),
            last_updated=data.get("last_updated"),
        )

    def save(self, path: Path) -> None:
        self.last_updated = datetime.now(timezone.utc).isoformat()
        path.write_text(
            json.dumps(
                {"completed_subtopic_ids": self.completed_subtopic_ids, "last_updated": self.last_updated},
                indent=2,
            ),
            encoding="utf-8",
        )


@dataclass
class SeedReport:
    processed: int = 0
    failed: int = 0
    pending: int = 0


class LessonSeeder:
    """
    Generates lessons for all subtopics in batches.

    Each batch runs concurrently, one database session per subtopic. The
    checkpoint is rewritten after every batch; failed subtopics are left
    out of it so the next run retries them.
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession],
        generator: LessonGenerator,
        checkpoint_path: Optional[Path] = None,
        concurrency: Optional[int] = None,
        batch_delay: Optional[float] = None,
        lessons_per_subtopic: Optional[int] = None,
    ):
        self.session_factory = session_factory
        self.generator = generator
        self.checkpoint_path = Path(checkpoint_path or settings.SEED_CHECKPOINT_PATH)
        self.concurrency = concurrency or settings.SEED_CONCURRENCY
        self.batch_delay = settings.SEED_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay
        self.lessons_per_subtopic = lessons_per_subtopic or settings.SEED_LESSONS_PER_SUBTOPIC

    async def load_subtopics(self) -> list[Subtopic]:
        """All subtopics in subject, level, subtopic order."""
        async with self.session_factory() as db:
            result = await db.execute(
                select(Subtopic)
                .join(Level, Level.id == Subtopic.level_id)
                .join(Subject, Subject.id == Level.subject_id)
                .options(selectinload(Subtopic.level).selectinload(Level.subject))
                .order_by(Subject.sort_order, Level.sort_order, Subtopic.sort_order)
            )
            return list(result.scalars().all())

    async def seed_subtopic(self, subtopic: Subtopic) -> bool:
        """
        Generate and store lessons for one subtopic.

        Returns True when the subtopic ends up with lessons (including when
        it already had some), False when generation or storage failed.
        """
        try:
            async with self.session_factory() as db:
                lessons = LessonService(db)
                existing = await lessons.count_lessons(subtopic.id)
                if existing:
                    logger.info("Skipping %s, already has %d lessons", subtopic.name, existing)
                    return True

                logger.info("Generating lessons for %s", subtopic.name)
                generated = await self.generator.generate_for_subtopic(
                    subject=subtopic.level.subject.name,
                    level=subtopic.level.name,
                    subtopic=subtopic.name,
                    subtopic_prompt=subtopic.prompt,
                    lesson_count=self.lessons_per_subtopic,
                )
                await lessons.save_generated(subtopic.id, generated)
                logger.info("Created %d lessons for %s", len(generated), subtopic.name)
                return True
        except Exception:
            logger.exception("Lesson generation failed for %s", subtopic.name)
            return False

    async def run(self) -> SeedReport:
        checkpoint = Checkpoint.load(self.checkpoint_path)
        completed = set(checkpoint.completed_subtopic_ids)
        logger.info("Checkpoint: %d subtopics already completed", len(completed))

        subtopics = await self.load_subtopics()
        pending = [s for s in subtopics if str(s.id) not in completed]
        report = SeedReport(pending=len(pending))
        logger.info("Total subtopics: %d, pending: %d", len(subtopics), len(pending))

        for start in range(0, len(pending), self.concurrency):
            batch = pending[start:start + self.concurrency]
            results = await asyncio.gather(*(self.seed_subtopic(s) for s in batch))

            for subtopic, ok in zip(batch, results):
                if ok:
                    checkpoint.completed_subtopic_ids.append(str(subtopic.id))
                    report.processed += 1
                else:
                    report.failed += 1
            checkpoint.save(self.checkpoint_path)

            done = start + len(batch)
            logger.info("Progress: %.1f%% (%d/%d)", done / len(pending) * 100, done, len(pending))

            if done < len(pending) and self.batch_delay:
                await asyncio.sleep(self.batch_delay)

        logger.info("Lesson seeding complete: %d processed, %d failed", report.processed, report.failed)
        return report
