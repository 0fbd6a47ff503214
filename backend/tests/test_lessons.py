"""
LevelUp Learning - Lessons API Tests
"""
import uuid
from datetime import datetime

import pytest
from httpx import AsyncClient
from pydantic import TypeAdapter
from sqlalchemy import select

from levelup.ai.go_deeper import GoDeeperTutor
from levelup.ai.lesson_quiz_generator import LessonQuizGenerator
from levelup.core.exceptions import GenerationFailed
from levelup.models.lesson import LessonProgress
from levelup.schemas.lesson import GeneratedLesson, LessonContext, LessonSection
from levelup.services.lesson import LessonService, lessons_unlock_test, percent_score

from factories import (
    CORRECT,
    add_lessons,
    complete_lesson,
    explanation_json,
    fake_llm,
    lesson_json,
    quiz_json,
    relevance_json,
)

parse_datetime = TypeAdapter(datetime).validate_python


def all_correct(count: int = 5) -> dict:
    return {"answers": [{"question_id": f"q{n}", "selected_answer": CORRECT} for n in range(1, count + 1)]}


async def take_quiz(client: AsyncClient, headers, lesson_id, body=None):
    created = await client.post(f"/api/v1/lessons/{lesson_id}/quiz", headers=headers)
    assert created.status_code == 201
    return await client.put(f"/api/v1/lessons/{lesson_id}/quiz", headers=headers, json=body or all_correct())


def context(**overrides) -> LessonContext:
    data = {
        "title": "Counting On",
        "introduction": "Count up from a number.",
        "sections": [LessonSection(heading="Start big", content="x" * 300)],
        "key_takeaways": ["Start from the bigger number", "Count the rest"],
        "subtopic_name": "Addition",
        "level_name": "1st Grade",
        "subject_name": "Math",
    }
    data.update(overrides)
    return LessonContext(**data)


def test_percent_score_rounds_halves_up():
    assert [percent_score(c, 8) for c in (0, 1, 3, 8)] == [0, 13, 38, 100]
    assert percent_score(0, 0) == 0


def test_lessons_unlock_test():
    assert lessons_unlock_test(0, 0) is True
    assert lessons_unlock_test(3, 2) is False
    assert lessons_unlock_test(3, 3) is True


@pytest.mark.asyncio
async def test_list_lessons_with_completion(client: AsyncClient, auth_headers, user, curriculum, db_session):
    subtopic = curriculum.subtopics[0]
    lessons = await add_lessons(db_session, subtopic, count=3)
    await complete_lesson(db_session, user, lessons[1], quiz_score=80)

    response = await client.get(f"/api/v1/subtopics/{subtopic.id}/lessons", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["subtopic_name"] == subtopic.name
    assert [lesson["title"] for lesson in data["lessons"]] == ["Lesson 1", "Lesson 2", "Lesson 3"]
    assert [lesson["completed"] for lesson in data["lessons"]] == [False, True, False]
    assert data["lessons"][1]["quiz_score"] == 80
    assert (data["total_lessons"], data["completed_lessons"]) == (3, 1)
    assert data["lessons"][0]["sections"][0]["heading"] == "Part"


@pytest.mark.asyncio
async def test_lesson_detail_and_navigation(client: AsyncClient, auth_headers, curriculum, db_session):
    first, middle, last = await add_lessons(db_session, curriculum.subtopics[0], count=3)

    data = (await client.get(f"/api/v1/lessons/{middle.id}", headers=auth_headers)).json()
    assert data["lesson"]["title"] == "Lesson 2"
    assert data["total_lessons"] == 3
    assert data["subtopic"]["name"] == curriculum.subtopics[0].name
    assert data["level"]["name"] == "1st Grade"
    assert data["subject"]["name"] == "Math"
    assert data["navigation"] == {"previous_lesson_id": str(first.id), "next_lesson_id": str(last.id)}
    assert data["progress"] is None

    edges = [(await client.get(f"/api/v1/lessons/{lesson.id}", headers=auth_headers)).json()["navigation"]
             for lesson in (first, last)]
    assert edges[0]["previous_lesson_id"] is None
    assert edges[1]["next_lesson_id"] is None


@pytest.mark.asyncio
async def test_viewing_tracks_without_completing(client: AsyncClient, auth_headers, user, curriculum, db_session):
    viewed, done = await add_lessons(db_session, curriculum.subtopics[0], count=2)
    await complete_lesson(db_session, user, done)

    response = await client.post(f"/api/v1/lessons/{viewed.id}/view", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["completed"] is False

    progress = (await client.get(f"/api/v1/lessons/{viewed.id}", headers=auth_headers)).json()["progress"]
    assert progress["completed"] is False
    assert progress["first_viewed_at"] is not None

    # Viewing a completed lesson leaves it completed
    again = await client.post(f"/api/v1/lessons/{done.id}/view", headers=auth_headers)
    assert again.json()["completed"] is True


@pytest.mark.asyncio
async def test_lesson_quiz_completes_the_lesson(client: AsyncClient, auth_headers, curriculum, db_session, llm_responses):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]
    llm_responses[:] = [quiz_json(5)]

    created = await client.post(f"/api/v1/lessons/{lesson.id}/quiz", headers=auth_headers)
    assert created.status_code == 201
    questions = created.json()["questions"]
    assert len(questions) == 5
    assert all("correct_answer" not in q for q in questions)

    answers = all_correct()
    answers["answers"][0]["selected_answer"] = "A"
    response = await client.put(f"/api/v1/lessons/{lesson.id}/quiz", headers=auth_headers, json=answers)

    assert response.status_code == 200
    data = response.json()
    assert (data["score"], data["correct"], data["total"]) == (80, 4, 5)
    assert data["results"][0] == {
        "question_id": "q1",
        "selected_answer": "A",
        "correct_answer": CORRECT,
        "is_correct": False,
        "explanation": "B is correct.",
    }

    listed = (await client.get(f"/api/v1/subtopics/{lesson.subtopic_id}/lessons", headers=auth_headers)).json()
    assert listed["lessons"][0]["completed"] is True
    assert listed["lessons"][0]["quiz_score"] == 80


@pytest.mark.asyncio
async def test_unanswered_lesson_quiz_questions_count_as_wrong(
    client: AsyncClient, auth_headers, curriculum, db_session, llm_responses
):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]
    llm_responses[:] = [quiz_json(5)]

    response = await take_quiz(
        client, auth_headers, lesson.id, {"answers": [{"question_id": "q2", "selected_answer": CORRECT}]}
    )
    assert (response.json()["score"], response.json()["correct"]) == (20, 1)
    assert response.json()["results"][0]["selected_answer"] == ""


@pytest.mark.asyncio
async def test_retaking_keeps_first_completion_time(
    client: AsyncClient, auth_headers, curriculum, db_session, llm_responses
):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]
    llm_responses[:] = [quiz_json(5)]

    first = (await take_quiz(client, auth_headers, lesson.id, {"answers": [{"question_id": "q1", "selected_answer": "A"}]})).json()
    second = (await take_quiz(client, auth_headers, lesson.id)).json()

    first_at, second_at = parse_datetime(first["completed_at"]), parse_datetime(second["completed_at"])
    assert first_at.tzinfo is not None and second_at.tzinfo is not None
    assert first_at == second_at
    assert (first["score"], second["score"]) == (0, 100)


@pytest.mark.asyncio
async def test_completion_time_loads_as_utc(session_factory, curriculum, user, db_session):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]
    await complete_lesson(db_session, user, lesson)

    async with session_factory() as fresh:
        row = (await fresh.execute(
            select(LessonProgress).where(LessonProgress.lesson_id == lesson.id)
        )).scalar_one()

    assert row.completed_at.utcoffset().total_seconds() == 0


@pytest.mark.asyncio
async def test_submitting_needs_a_pending_quiz(client: AsyncClient, auth_headers, curriculum, db_session, llm_responses):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]

    response = await client.put(f"/api/v1/lessons/{lesson.id}/quiz", headers=auth_headers, json=all_correct())
    assert response.status_code == 400
    assert response.json()["error"] == "validation_failed"

    # A submitted quiz is used up
    llm_responses[:] = [quiz_json(5)]
    await take_quiz(client, auth_headers, lesson.id)
    again = await client.put(f"/api/v1/lessons/{lesson.id}/quiz", headers=auth_headers, json=all_correct())
    assert again.status_code == 400


@pytest.mark.asyncio
async def test_completing_all_lessons_unlocks_the_test(
    client: AsyncClient, auth_headers, curriculum, db_session, llm_responses
):
    subtopic = curriculum.subtopics[0]
    lessons = await add_lessons(db_session, subtopic, count=2)
    llm_responses[:] = [quiz_json(5)]
    url = f"/api/v1/subtopics/{subtopic.id}/test-eligibility"

    assert (await client.get(url, headers=auth_headers)).json()["eligible"] is False
    for lesson in lessons:
        await client.post(f"/api/v1/lessons/{lesson.id}/view", headers=auth_headers)
    assert (await client.get(url, headers=auth_headers)).json()["eligible"] is False

    for lesson in lessons:
        await take_quiz(client, auth_headers, lesson.id)

    data = (await client.get(url, headers=auth_headers)).json()
    assert data["eligible"] is True
    assert (data["lessons_completed"], data["lessons_total"]) == (2, 2)


@pytest.mark.asyncio
async def test_go_deeper_explains_relevant_questions(
    client: AsyncClient, auth_headers, curriculum, db_session, llm_responses
):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]
    llm_responses[:] = [relevance_json(True, confidence=0.8), explanation_json("Here is more detail.")]

    response = await client.post(
        f"/api/v1/lessons/{lesson.id}/go-deeper", headers=auth_headers, json={"prompt": "  Can you explain more?  "}
    )

    assert response.status_code == 200
    data = response.json()
    assert data["is_relevant"] is True
    assert data["confidence"] == 0.8
    assert data["response"] == "Here is more detail."
    assert data["prompt"] == "Can you explain more?"


@pytest.mark.asyncio
async def test_go_deeper_redirects_off_topic_questions(
    client: AsyncClient, auth_headers, curriculum, db_session, llm_responses
):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]
    url = f"/api/v1/lessons/{lesson.id}/go-deeper"

    llm_responses[:] = [relevance_json(False, redirect="Try the fractions lesson.")]
    redirected = (await client.post(url, headers=auth_headers, json={"prompt": "What about fractions?"})).json()
    assert redirected["is_relevant"] is False
    assert redirected["response"] == "Try the fractions lesson."

    llm_responses[:] = [relevance_json(False)]
    fallback = (await client.post(url, headers=auth_headers, json={"prompt": "Who won the game?"})).json()
    assert 'lesson on "Lesson 1"' in fallback["response"]
    assert "remember this" in fallback["response"]

    history = (await client.get(url, headers=auth_headers)).json()["history"]
    assert [entry["prompt"] for entry in history] == ["Who won the game?", "What about fractions?"]


@pytest.mark.asyncio
@pytest.mark.parametrize("prompt", ["", "   ", "x" * 501])
async def test_go_deeper_prompt_validation(client: AsyncClient, auth_headers, curriculum, db_session, prompt):
    lesson = (await add_lessons(db_session, curriculum.subtopics[0], count=1))[0]
    response = await client.post(
        f"/api/v1/lessons/{lesson.id}/go-deeper", headers=auth_headers, json={"prompt": prompt}
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_lesson_and_subtopic(client: AsyncClient, auth_headers):
    missing = uuid.uuid4()
    for method, path, body in [
        ("GET", f"/api/v1/lessons/{missing}", None),
        ("POST", f"/api/v1/lessons/{missing}/view", None),
        ("POST", f"/api/v1/lessons/{missing}/quiz", None),
        ("PUT", f"/api/v1/lessons/{missing}/quiz", all_correct()),
        ("POST", f"/api/v1/lessons/{missing}/go-deeper", {"prompt": "Why?"}),
        ("GET", f"/api/v1/lessons/{missing}/go-deeper", None),
        ("GET", f"/api/v1/subtopics/{missing}/lessons", None),
    ]:
        response = await client.request(method, path, headers=auth_headers, json=body)
        assert response.status_code == 404, path


@pytest.mark.asyncio
async def test_lesson_quiz_generator_trims_to_count():
    generator = LessonQuizGenerator(fake_llm([quiz_json(7)]), question_count=5)
    questions = await generator.generate(context())

    assert [q.id for q in questions] == ["q1", "q2", "q3", "q4", "q5"]
    prompt = generator.render_prompt(context())
    assert "Start big: " + "x" * 200 + "..." in prompt
    assert "x" * 201 not in prompt
    assert "2. Count the rest" in prompt


@pytest.mark.asyncio
async def test_lesson_quiz_generator_rejects_empty_quiz():
    generator = LessonQuizGenerator(fake_llm(['{"questions": []}'], max_retries=1))
    with pytest.raises(GenerationFailed):
        await generator.generate(context())


def test_redirect_message_without_takeaways():
    message = GoDeeperTutor.redirect_message(context(key_takeaways=[]))
    assert message.endswith("like the main ideas.")


@pytest.mark.asyncio
async def test_save_generated_keeps_plan_order(db_session, curriculum):
    generated = [GeneratedLesson.model_validate_json(lesson_json(title)) for title in ("First", "Second")]
    rows = await LessonService(db_session).save_generated(curriculum.subtopics[0].id, generated)

    assert [(row.title, row.sort_order) for row in rows] == [("First", 1), ("Second", 2)]
    assert rows[0].key_takeaways == ["Point one", "Point two", "Point three"]
    assert rows[0].content["sections"][0]["examples"] == ["An example"]
