"""
LevelUp Learning - Question Pool Builder Tests
"""
import json

import pytest

from levelup.ai.assessment_generator import QuestionPoolBuilder
from levelup.core.exceptions import GenerationFailed
from levelup.schemas.assessment import LevelInfo

from factories import fake_llm, pool_json, question

LEVELS = [
    LevelInfo(id="lvl-1", name="1st Grade", sort_order=1),
    LevelInfo(id="lvl-2", name="2nd Grade", sort_order=2),
    LevelInfo(id="lvl-3", name="3rd Grade", sort_order=3),
]


def test_prompt_lists_levels_and_counts():
    builder = QuestionPoolBuilder(fake_llm(["{}"]), questions_per_level=3)
    prompt = builder.render_prompt("Math", LEVELS)

    assert "- 2nd Grade (ID: lvl-2)" in prompt
    assert "9 questions" in prompt
    assert "exactly 3 questions for EACH level" in prompt


@pytest.mark.asyncio
async def test_build_pool_buckets_questions_by_level():
    builder = QuestionPoolBuilder(fake_llm([pool_json(["lvl-1", "lvl-2", "lvl-3"], per_level=2)]))
    pool = await builder.build_pool("Math", LEVELS)

    assert pool.level_ids == ["lvl-1", "lvl-2", "lvl-3"]
    assert [q.id for q in pool.questions_for("lvl-2")] == ["L1-q0", "L1-q1"]
    assert pool.find_question("L2-q1").level_id == "lvl-3"


@pytest.mark.asyncio
async def test_build_pool_drops_unknown_levels_and_keeps_empty_buckets():
    response = json.dumps({"questions": [
        question("q1", level_id="lvl-1"),
        question("q2", level_id="somewhere-else"),
    ]})
    builder = QuestionPoolBuilder(fake_llm([response]))
    pool = await builder.build_pool("Math", LEVELS)

    assert [q.id for q in pool.questions_for("lvl-1")] == ["q1"]
    assert pool.questions_by_level["lvl-2"] == []
    assert pool.questions_by_level["lvl-3"] == []
    assert pool.find_question("q2") is None


@pytest.mark.asyncio
async def test_build_pool_requires_levels():
    builder = QuestionPoolBuilder(fake_llm(["{}"]))
    with pytest.raises(ValueError):
        await builder.build_pool("Math", [])


@pytest.mark.asyncio
async def test_build_pool_rejects_invalid_questions():
    bad = question("q1", level_id="lvl-1")
    bad["correct_answer"] = "Z"
    builder = QuestionPoolBuilder(fake_llm([json.dumps({"questions": [bad]})], max_retries=2))

    with pytest.raises(GenerationFailed):
        await builder.build_pool("Math", LEVELS)
