"""
b2_grading_engine.py — Grading Engine (Block 2)
===============================================
Compares submitted answers against the answer keys of an assembled quiz
and aggregates overall and per-category statistics.

---------------------------------------------------------------------------
Engine: GradingEngine
---------------------------------------------------------------------------
  Input:   Quiz, answers {question_id: option_index}, category echo fields
  Output:  GradedResult

  Scoring:
    per_category[c]  initialised to 0/0 for every id in all_categories,
                     so a category with no questions still renders as 0/0
    score            count of answers equal to the question's answer_index
    percentage       round-half-up(score / total × 100)
    passed           percentage ≥ 75

  Never raises: unanswered questions, unknown ids, non-integer and
  out-of-range option indices all count as incorrect.

  preview_score() is the in-progress counterpart used while the candidate
  is still answering.  Both go through models.score_percentage /
  models.is_passing, so the preview verdict always matches the final one.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional

from cert_quiz.models import (
    CategoryScore,
    GradedResult,
    QuestionFeedback,
    Quiz,
    is_passing,
    score_percentage,
)

logger = logging.getLogger(__name__)


def _chosen_index(value: Any) -> Optional[int]:
    """Normalise a submitted answer to an int, or None if it is not one."""
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


@dataclass(frozen=True)
class PreviewScore:
    """Running score shown while the quiz is still open."""
    answered:   int
    score:      int
    total:      int
    percentage: int
    passing:    bool


def preview_score(quiz: Quiz, answers: Mapping[str, Any]) -> PreviewScore:
    """Score the answers given so far, using the same policy as ``grade``."""
    answered = 0
    score = 0
    for q in quiz.questions:
        chosen = _chosen_index(answers.get(q.id))
        if chosen is None:
            continue
        answered += 1
        if chosen == q.answer_index:
            score += 1
    total = len(quiz.questions)
    pct = score_percentage(score, total)
    return PreviewScore(
        answered=answered, score=score, total=total,
        percentage=pct, passing=is_passing(pct),
    )


class GradingEngine:
    """
    Block 2 — Grading Engine.

    Usage::

        engine = GradingEngine()
        result = engine.grade(quiz, {"q0": 1, "q1": 3})
    """

    def grade(
        self,
        quiz: Quiz,
        answers: Mapping[str, Any],
        all_categories: Optional[Iterable[str]] = None,
        selected_categories: Optional[Iterable[str]] = None,
        category_names: Optional[Mapping[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> GradedResult:
        """
        Grade *answers* against *quiz*.

        The category echo parameters default to the values the assembler
        stored on the quiz.
        """
        all_ids = tuple(all_categories) if all_categories is not None else quiz.all_categories
        selected = (
            tuple(selected_categories) if selected_categories is not None
            else quiz.selected_categories
        )
        names = dict(category_names) if category_names is not None else dict(quiz.category_names)

        correct_by_cat = {cid: 0 for cid in all_ids}
        total_by_cat   = {cid: 0 for cid in all_ids}
        feedback: list[QuestionFeedback] = []
        score = 0

        for q in quiz.questions:
            chosen = _chosen_index(answers.get(q.id))
            is_correct = chosen is not None and chosen == q.answer_index
            if is_correct:
                score += 1

            if q.category_id in total_by_cat:
                total_by_cat[q.category_id] += 1
                correct_by_cat[q.category_id] += int(is_correct)

            feedback.append(QuestionFeedback(
                question_id=q.id,
                category_id=q.category_id,
                correct=is_correct,
                chosen_index=chosen,
                correct_index=q.answer_index,
                explanation=q.explanation,
            ))

        total = len(quiz.questions)
        percentage = score_percentage(score, total)
        passed = is_passing(percentage)

        logger.info("Graded quiz %s: %d/%d (%d%%) passed=%s",
                    quiz.id, score, total, percentage, passed)

        return GradedResult(
            score=score,
            total=total,
            percentage=percentage,
            passed=passed,
            per_category={
                cid: CategoryScore(correct=correct_by_cat[cid], total=total_by_cat[cid])
                for cid in all_ids
            },
            category_names=names,
            all_categories=all_ids,
            selected_categories=selected,
            attempt_id=uuid.uuid4().hex,
            quiz_id=quiz.id,
            graded_at=now or datetime.now(timezone.utc),
            feedback=tuple(feedback),
        )


def grade(
    quiz: Quiz,
    answers: Mapping[str, Any],
    all_categories: Optional[Iterable[str]] = None,
    selected_categories: Optional[Iterable[str]] = None,
    category_names: Optional[Mapping[str, str]] = None,
    now: Optional[datetime] = None,
) -> GradedResult:
    """Functional shortcut for ``GradingEngine().grade(...)``."""
    return GradingEngine().grade(
        quiz, answers,
        all_categories=all_categories,
        selected_categories=selected_categories,
        category_names=category_names,
        now=now,
    )
