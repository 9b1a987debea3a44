"""
Tests for b2_grading_engine.py and the scoring policy in models.py.
Run: python -m pytest tests/ -v
"""
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from factories import make_question, make_quiz

from cert_quiz.b2_grading_engine import GradingEngine, grade, preview_score
from cert_quiz.models import (
    PASS_THRESHOLD_PCT,
    is_passing,
    score_percentage,
)


class TestScorePercentage:
    @pytest.mark.parametrize("score, total, expected", [
        (3, 4, 75),
        (1, 8, 13),       # 12.5 rounds up
        (5, 8, 63),       # 62.5 rounds up
        (2, 8, 25),
        (1, 3, 33),
        (2, 3, 67),
        (0, 5, 0),
        (5, 5, 100),
        (149, 200, 75),   # 74.5 rounds up to the pass mark
        (74, 100, 74),
    ])
    def test_round_half_up(self, score, total, expected):
        assert score_percentage(score, total) == expected

    def test_zero_total(self):
        assert score_percentage(0, 0) == 0

    def test_threshold(self):
        assert PASS_THRESHOLD_PCT == 75
        assert is_passing(75)
        assert not is_passing(74)


class TestGradeScenario:
    """Two A01 + two A02 questions, answer keys 0, 1, 2, 3."""

    def test_three_of_four(self, passed_result):
        assert passed_result.score == 3
        assert passed_result.total == 4
        assert passed_result.percentage == 75
        assert passed_result.passed is True

    def test_per_category(self, passed_result):
        a01 = passed_result.per_category["A01"]
        a02 = passed_result.per_category["A02"]
        assert (a01.correct, a01.total) == (1, 2)
        assert (a02.correct, a02.total) == (2, 2)
        assert a01.percentage == 50
        assert a02.percentage == 100

    def test_weak_categories(self, passed_result):
        assert passed_result.weak_categories == ["A01"]

    def test_failing(self, failed_result):
        assert failed_result.score == 1
        assert failed_result.percentage == 25
        assert failed_result.passed is False

    def test_echo_fields_default_from_quiz(self, passed_result):
        assert passed_result.all_categories == ("A01", "A02")
        assert passed_result.selected_categories == ("A01", "A02")
        assert passed_result.category_names["A01"] == "A01: Category A01"
        assert passed_result.quiz_id == "quiz-test"

    def test_attempt_id_unique(self, quiz_a01_a02):
        r1 = grade(quiz_a01_a02, {})
        r2 = grade(quiz_a01_a02, {})
        assert r1.attempt_id and r1.attempt_id != r2.attempt_id

    def test_graded_at(self, quiz_a01_a02):
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert GradingEngine().grade(quiz_a01_a02, {}, now=now).graded_at == now

    def test_graded_at_via_shortcut(self, quiz_a01_a02):
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        assert grade(quiz_a01_a02, {}, now=now).graded_at == now


class TestAnswerHandling:
    def test_answer_dict_order_irrelevant(self, quiz_a01_a02):
        forward = {"q0": 0, "q1": 0, "q2": 2, "q3": 3}
        backward = dict(reversed(list(forward.items())))
        assert grade(quiz_a01_a02, forward).score == grade(quiz_a01_a02, backward).score

    @pytest.mark.parametrize("order", [(3, 2, 1, 0), (2, 0, 3, 1), (1, 3, 0, 2)])
    def test_question_order_irrelevant(self, quiz_a01_a02, order):
        answers = {"q0": 0, "q1": 0, "q2": 2, "q3": 3}
        permuted = replace(quiz_a01_a02, questions=tuple(quiz_a01_a02.questions[i] for i in order))
        original = grade(quiz_a01_a02, answers)
        shuffled = grade(permuted, answers)
        assert shuffled.score == original.score
        assert shuffled.percentage == original.percentage
        assert shuffled.per_category == original.per_category

    def test_unanswered_is_wrong(self, quiz_a01_a02):
        r = grade(quiz_a01_a02, {})
        assert r.score == 0
        assert r.total == 4
        assert all(fb.chosen_index is None for fb in r.feedback)

    @pytest.mark.parametrize("bad", [-1, 4, 99, "0", 0.0, None, True, False])
    def test_invalid_answer_is_wrong(self, bad):
        quiz = make_quiz([make_question("q0", "A01", answer_index=0)], all_categories=("A01",))
        r = grade(quiz, {"q0": bad})
        assert r.score == 0

    def test_unknown_ids_ignored(self, quiz_a01_a02):
        r = grade(quiz_a01_a02, {"q0": 0, "q99": 1, "b3": 0})
        assert r.score == 1
        assert r.total == 4

    def test_feedback_per_question(self, passed_result):
        fb = {f.question_id: f for f in passed_result.feedback}
        assert fb["q1"].correct is False
        assert fb["q1"].chosen_index == 0
        assert fb["q1"].correct_index == 1
        assert fb["q1"].explanation == "Because q1."
        assert fb["q3"].correct is True


class TestCategoryAggregation:
    def test_empty_category_reported_as_zero(self, quiz_a01_a02):
        r = GradingEngine().grade(quiz_a01_a02, {"q0": 0},
                                  all_categories=("A01", "A02", "A03"))
        assert "A03" in r.per_category
        assert (r.per_category["A03"].correct, r.per_category["A03"].total) == (0, 0)
        assert r.per_category["A03"].percentage == 0

    def test_per_category_order_follows_all_categories(self, quiz_a01_a02):
        r = GradingEngine().grade(quiz_a01_a02, {}, all_categories=("A02", "A03", "A01"))
        assert list(r.per_category) == ["A02", "A03", "A01"]

    def test_category_totals_sum_to_total(self, passed_result):
        assert sum(cs.total for cs in passed_result.per_category.values()) == passed_result.total
        assert sum(cs.correct for cs in passed_result.per_category.values()) == passed_result.score

    def test_question_outside_all_categories_still_counts(self):
        quiz = make_quiz([
            make_question("q0", "A01", 0),
            make_question("q1", "X99", 0),
        ], all_categories=("A01",))
        r = grade(quiz, {"q0": 0, "q1": 0})
        assert r.score == 2
        assert r.total == 2
        assert list(r.per_category) == ["A01"]

    def test_explicit_echo_parameters(self, quiz_a01_a02):
        r = grade(quiz_a01_a02, {}, selected_categories=("A02",),
                  category_names={"A01": "Access", "A02": "Crypto"})
        assert r.selected_categories == ("A02",)
        assert r.category_names == {"A01": "Access", "A02": "Crypto"}

    def test_empty_quiz(self):
        r = grade(make_quiz([], all_categories=("A01",)), {})
        assert (r.score, r.total, r.percentage, r.passed) == (0, 0, 0, False)


class TestPreviewScore:
    def test_matches_grade(self, quiz_a01_a02):
        answers = {"q0": 0, "q1": 0, "q2": 2, "q3": 3}
        preview = preview_score(quiz_a01_a02, answers)
        result = grade(quiz_a01_a02, answers)
        assert preview.score == result.score
        assert preview.percentage == result.percentage
        assert preview.passing == result.passed

    def test_partial_progress(self, quiz_a01_a02):
        preview = preview_score(quiz_a01_a02, {"q0": 0, "q2": 1})
        assert preview.answered == 2
        assert preview.score == 1
        assert preview.total == 4
        assert preview.percentage == 25
        assert preview.passing is False

    def test_invalid_answers_not_counted_as_answered(self, quiz_a01_a02):
        preview = preview_score(quiz_a01_a02, {"q0": "A", "q1": True})
        assert preview.answered == 0
