"""
LevelUp Learning - Placement Engine Tests
"""
import pytest

from levelup.core.exceptions import AlreadyCompleted
from levelup.schemas.assessment import AdaptiveAnswer
from levelup.services.placement import (
    PlacementSession,
    PlacementStatus,
    aggregate_scores,
    default_starting_index,
    select_next_question,
)

from factories import CORRECT, make_pool

WRONG = "A"


@pytest.mark.parametrize("level_count,expected", [(1, 0), (2, 1), (4, 2), (5, 2), (13, 6)])
def test_default_starting_index_is_middle(level_count, expected):
    assert default_starting_index(level_count) == expected


class TestSelectNextQuestion:

    def test_prefers_first_unused_at_current_level(self):
        pool = make_pool(3, 3)
        assert select_next_question(pool, 1, []).id == "L1-q0"
        assert select_next_question(pool, 1, ["L1-q0"]).id == "L1-q1"

    def test_searches_harder_level_before_easier(self):
        pool = make_pool(3, 1)
        assert select_next_question(pool, 1, ["L1-q0"]).id == "L2-q0"
        assert select_next_question(pool, 1, ["L1-q0", "L2-q0"]).id == "L0-q0"

    def test_searches_outward_by_distance(self):
        pool = make_pool(5, 1, empty_levels=[1, 2, 3])
        # Distance 1 from level 2 is empty in both directions; distance 2 finds L4 first
        assert select_next_question(pool, 2, []).id == "L4-q0"
        assert select_next_question(pool, 2, ["L4-q0"]).id == "L0-q0"

    def test_returns_none_when_everything_is_used(self):
        pool = make_pool(2, 1)
        assert select_next_question(pool, 0, ["L0-q0", "L1-q0"]) is None

    def test_out_of_range_index_returns_none(self):
        pool = make_pool(2, 1)
        assert select_next_question(pool, 5, []) is None
        assert select_next_question(pool, -1, []) is None


class TestPlacementSession:

    def test_start_selects_first_question(self):
        session = PlacementSession(pool=make_pool(5, 3), current_level_index=2)
        question = session.start()

        assert question.id == "L2-q0"
        assert session.status == PlacementStatus.IN_PROGRESS
        assert session.used_question_ids == ["L2-q0"]
        assert session.question_number == 1

    def test_correct_moves_up_and_incorrect_moves_down(self):
        session = PlacementSession(pool=make_pool(5, 3), current_level_index=2)
        session.start()

        answer = session.answer(CORRECT)
        assert answer.is_correct
        assert answer.level_id == "L2"
        assert session.current_level_index == 3
        assert session.last_direction == "up"
        assert session.current_question.id == "L3-q0"

        answer = session.answer(WRONG)
        assert not answer.is_correct
        assert answer.question_number == 2
        assert session.current_level_index == 2
        assert session.last_direction == "down"
        assert session.current_question.id == "L2-q1"

    def test_clamps_at_top_and_bottom(self):
        session = PlacementSession(pool=make_pool(2, 3), current_level_index=1)
        session.start()
        session.answer(CORRECT)
        assert session.current_level_index == 1
        assert session.last_direction is None

        session = PlacementSession(pool=make_pool(2, 3), current_level_index=0)
        session.start()
        session.answer(WRONG)
        assert session.current_level_index == 0
        assert session.last_direction is None

    def test_answer_is_tagged_with_the_questions_level(self):
        # Level 0 has no questions, so the first question comes from level 1
        session = PlacementSession(pool=make_pool(2, 2, empty_levels=[0]), current_level_index=0)
        session.start()
        answer = session.answer(WRONG)
        assert answer.level_id == "L1"

    def test_completes_when_budget_is_spent(self):
        session = PlacementSession(pool=make_pool(3, 5), current_level_index=1, question_budget=3)
        session.start()
        for _ in range(3):
            session.answer(CORRECT)

        assert session.is_completed
        assert session.current_question is None
        assert len(session.answers) == 3

    def test_completes_when_pool_is_exhausted(self):
        session = PlacementSession(pool=make_pool(1, 2), current_level_index=0, question_budget=10)
        session.start()
        session.answer(CORRECT)
        assert not session.is_completed
        session.answer(CORRECT)
        assert session.is_completed

    def test_empty_pool_completes_at_start(self):
        session = PlacementSession(pool=make_pool(3, 0), current_level_index=1)
        assert session.start() is None
        assert session.is_completed
        assert session.result().suggested_level_id == "L1"
        assert session.result().level_scores == []

    def test_answer_after_completion_raises(self):
        session = PlacementSession(pool=make_pool(1, 1), current_level_index=0)
        session.start()
        session.answer(CORRECT)
        with pytest.raises(AlreadyCompleted):
            session.answer(CORRECT)

    def test_answer_before_start_raises(self):
        session = PlacementSession(pool=make_pool(2, 2), current_level_index=0)
        with pytest.raises(ValueError):
            session.answer(CORRECT)

    def test_start_twice_raises(self):
        session = PlacementSession(pool=make_pool(2, 2), current_level_index=0)
        session.start()
        with pytest.raises(ValueError):
            session.start()

    def test_rejects_bad_construction(self):
        with pytest.raises(ValueError):
            PlacementSession(pool=make_pool(0, 0), current_level_index=0)
        with pytest.raises(ValueError):
            PlacementSession(pool=make_pool(3, 1), current_level_index=3)
        with pytest.raises(ValueError):
            PlacementSession(pool=make_pool(3, 1), current_level_index=0, question_budget=0)

    def test_result_suggests_final_level(self):
        session = PlacementSession(pool=make_pool(4, 3), current_level_index=1, question_budget=4)
        session.start()
        for selected in (CORRECT, CORRECT, WRONG, CORRECT):
            session.answer(selected)

        result = session.result()
        # 1 -> 2 -> 3 -> 2 -> 3
        assert result.suggested_level_id == "L3"
        scores = {s.level_id: (s.correct, s.total) for s in result.level_scores}
        assert scores == {"L1": (1, 1), "L2": (2, 2), "L3": (0, 1)}

    def test_three_level_walk_falls_back_to_the_easier_level(self):
        session = PlacementSession(pool=make_pool(3, 1), current_level_index=1)
        assert session.start().id == "L1-q0"

        session.answer(CORRECT)
        assert (session.current_level_index, session.current_question.id) == (2, "L2-q0")

        # Back at L1, whose only question is used: the nearest unused one is on L0
        session.answer(WRONG)
        assert session.current_level_index == 1
        assert session.current_question.id == "L0-q0"

        session.answer(CORRECT)
        assert session.is_completed
        assert len(session.answers) == 3
        assert session.used_question_ids == ["L1-q0", "L2-q0", "L0-q0"]

        result = session.result()
        assert result.suggested_level_id == "L2"
        scores = {s.level_id: (s.correct, s.total) for s in result.level_scores}
        assert scores == {"L0": (1, 1), "L1": (1, 1), "L2": (0, 1)}


def test_aggregate_scores_omits_unanswered_levels():
    answers = [
        AdaptiveAnswer(question_id="a", selected_answer="x", is_correct=True, level_id="L0", question_number=1),
        AdaptiveAnswer(question_id="b", selected_answer="x", is_correct=False, level_id="L0", question_number=2),
        AdaptiveAnswer(question_id="c", selected_answer="x", is_correct=True, level_id="L2", question_number=3),
    ]
    result = aggregate_scores(answers, "L2", {"L0": "Level 0", "L2": "Level 2"})

    assert result.suggested_level_id == "L2"
    assert [(s.level_id, s.level_name, s.correct, s.total) for s in result.level_scores] == [
        ("L0", "Level 0", 1, 2),
        ("L2", "Level 2", 1, 1),
    ]
