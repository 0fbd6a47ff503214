"""
LevelUp Learning - Curriculum Seeder
Seeds subjects, their ordered levels, and subtopics with fixed generation prompts.

Safe to re-run: existing subjects, levels and subtopics are matched by name
and only subtopic prompts and ordering are refreshed.
"""
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from levelup.core.database import async_session_maker, init_db
from levelup.models.curriculum import Level, Subject, Subtopic

logger = logging.getLogger(__name__)


SUBJECTS = [
    {"name": "Math", "icon": "📐", "sort_order": 1},
    {"name": "Spanish", "icon": "🇪🇸", "sort_order": 2},
]

# Levels are listed from easiest to hardest; list position becomes sort_order.
CURRICULUM_DATA: dict[str, dict[str, list[tuple[str, str]]]] = {
    "Math": {
        "1st Grade": [
            ("Counting & Number Sense", "Counting numbers to 120, skip counting by 2s, 5s, and 10s"),
            ("Place Value", "Understanding place value for tens and ones"),
            ("Addition & Subtraction", "Addition and subtraction within 20, related facts and fact families"),
            ("Time", "Telling time to the hour and half-hour on analog and digital clocks"),
            ("2D & 3D Shapes", "Identifying and describing 2D and 3D shapes and their attributes"),
        ],
        "2nd Grade": [
            ("Place Value", "Understanding place value to 1,000 (ones, tens, hundreds)"),
            ("Addition & Subtraction", "Adding and subtracting within 100 and 1,000 with regrouping"),
            ("Multiplication Foundations", "Introduction to multiplication using arrays and repeated addition"),
            ("Fractions Introduction", "Understanding halves, thirds, and fourths as equal parts"),
            ("Money", "Making change and solving money word problems"),
        ],
        "3rd Grade": [
            ("Multiplication & Division Facts", "Multiplication and division facts and strategies through 10x10"),
            ("Place Value & Rounding", "Place value to 10,000 and rounding to nearest 10 and 100"),
            ("Fractions", "Unit fractions, equivalent fractions, and comparing fractions"),
            ("Area & Perimeter", "Calculating area and perimeter of rectangles using arrays"),
            ("Data & Graphs", "Creating and interpreting bar graphs and line plots"),
        ],
        "4th Grade": [
            ("Multi-digit Multiplication", "Multiplying multi-digit numbers using standard algorithm"),
            ("Long Division", "Dividing multi-digit numbers by 1-digit divisors"),
            ("Factors & Multiples", "Finding factors, multiples, prime and composite numbers"),
            ("Decimals", "Understanding decimals to hundredths, comparing and ordering"),
            ("Angle Measurement", "Measuring angles with a protractor, understanding lines and rays"),
        ],
        "5th Grade": [
            ("Decimal Operations", "Adding, subtracting, multiplying, and dividing decimals"),
            ("Fraction Operations", "All four operations with fractions and mixed numbers"),
            ("Order of Operations", "Order of operations and evaluating numerical expressions"),
            ("Coordinate Plane", "Graphing points and patterns on the coordinate plane"),
            ("Volume", "Volume of rectangular prisms and additive volume"),
        ],
    },
    "Spanish": {
        "Novice": [
            ("Greetings", "Basic Spanish greetings and introductions"),
            ("Numbers", "Spanish numbers 1-100"),
            ("Family", "Family members vocabulary in Spanish"),
        ],
        "Beginner": [
            ("Present Tense", "Regular present tense verb conjugation in Spanish"),
            ("Nouns & Articles", "Spanish noun gender, articles, and plurals"),
            ("Common Verbs", "High-frequency verbs ser, estar, tener, ir in Spanish"),
        ],
        "Intermediate": [
            ("Past Tense", "Preterite and imperfect tense in Spanish"),
            ("Reflexive Verbs", "Reflexive verbs and daily routine in Spanish"),
            ("Commands", "Imperative mood and giving commands in Spanish"),
        ],
        "Advanced": [
            ("Past Subjunctive", "Imperfect subjunctive and si clauses in Spanish"),
            ("Passive Voice", "Passive constructions and se impersonal in Spanish"),
            ("Regional Variations", "Dialectal differences across Spanish-speaking regions"),
        ],
    },
}


async def _get_or_create_subject(session: AsyncSession, data: dict) -> Subject:
    result = await session.execute(select(Subject).where(Subject.name == data["name"]))
    subject = result.scalar_one_or_none()
    if subject is None:
        subject = Subject(name=data["name"], icon=data["icon"], sort_order=data["sort_order"])
        session.add(subject)
        await session.flush()
        logger.info("Created subject: %s", subject.name)
    return subject


async def _get_or_create_level(
    session: AsyncSession, subject: Subject, name: str, sort_order: int
) -> Level:
    result = await session.execute(
        select(Level).where(Level.subject_id == subject.id, Level.name == name)
    )
    level = result.scalar_one_or_none()
    if level is None:
        level = Level(subject_id=subject.id, name=name, sort_order=sort_order)
        session.add(level)
        await session.flush()
    return level


async def seed_curriculum(session: AsyncSession, curriculum: dict | None = None) -> int:
    """
    Seed the curriculum into ``session`` and commit.

    Returns the number of subtopics created on this run.
    """
    curriculum = curriculum if curriculum is not None else CURRICULUM_DATA
    created = 0

    for subject_data in SUBJECTS:
        levels = curriculum.get(subject_data["name"])
        if not levels:
            continue
        subject = await _get_or_create_subject(session, subject_data)

        for level_order, (level_name, subtopics) in enumerate(levels.items(), 1):
            level = await _get_or_create_level(session, subject, level_name, level_order)

            for subtopic_order, (name, prompt) in enumerate(subtopics, 1):
                result = await session.execute(
                    select(Subtopic).where(Subtopic.level_id == level.id, Subtopic.name == name)
                )
                subtopic = result.scalar_one_or_none()
                if subtopic is None:
                    session.add(
                        Subtopic(level_id=level.id, name=name, prompt=prompt, sort_order=subtopic_order)
                    )
                    created += 1
                else:
                    subtopic.prompt = prompt
                    subtopic.sort_order = subtopic_order

        logger.info("Seeded %d levels for %s", len(levels), subject.name)

    await session.commit()
    return created


async def main() -> None:
    await init_db()
    async with async_session_maker() as session:
        created = await seed_curriculum(session)
    logger.info("Curriculum seeding complete: %d new subtopics", created)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    asyncio.run(main())
