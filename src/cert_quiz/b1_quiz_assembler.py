"""
b1_quiz_assembler.py — Quiz Assembler (Block 1)
===============================================
Selects and randomises a subset of bank questions for one quiz session.

---------------------------------------------------------------------------
Assembler: QuizAssembler
---------------------------------------------------------------------------
  Input:   BankIndex, category filter, question count, optional seed
  Output:  Quiz (questions + category echo fields)

  Algorithm:
    1. Filter bank questions by category id (empty filter = every category).
    2. Empty pool → EmptyPoolError (caller re-prompts with another filter).
    3. Fisher–Yates shuffle driven by a RandomSource.
         seed given   → random.Random(seed)      deterministic order
         no seed      → random.SystemRandom()    fresh order every time
    4. count is clamped to [5, 50]; take the first min(count, len(pool)).
    5. Re-key each selected question as q0, q1, … so in-quiz ids never
       collide with bank ids or with other open quizzes.

  Echo fields on the Quiz:
    all_categories       every category id known to the bank
    selected_categories  the effective filter (defaults to all_categories)
    category_names       id → display name, for grading and rendering
"""

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import replace
from typing import Iterable, Optional, Protocol, Sequence, TypeVar

from cert_quiz.b0_bank_index import BankIndex
from cert_quiz.errors import EmptyPoolError
from cert_quiz.models import DEFAULT_QUESTION_COUNT, Question, Quiz, clamp_question_count

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RandomSource(Protocol):
    """The slice of ``random.Random`` the shuffle needs."""

    def randrange(self, stop: int) -> int: ...


def make_random_source(seed: Optional[str] = None) -> RandomSource:
    """Seeded PRNG when *seed* is non-empty, system entropy otherwise."""
    if seed:
        return random.Random(seed)
    return random.SystemRandom()


def fisher_yates(items: Sequence[T], rng: RandomSource) -> list[T]:
    """Return a shuffled copy of *items* (in-place Fisher–Yates on the copy)."""
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.randrange(i + 1)
        out[i], out[j] = out[j], out[i]
    return out


class QuizAssembler:
    """
    Block 1 — Quiz Assembler.

    Usage::

        assembler = QuizAssembler(bank_index)
        quiz      = assembler.assemble({"A01", "A03"}, count=20, seed="demo")
    """

    def __init__(self, bank: BankIndex):
        self.bank = bank

    def assemble(
        self,
        category_ids: Iterable[str] = (),
        count: int = DEFAULT_QUESTION_COUNT,
        seed: Optional[str] = None,
        rng: Optional[RandomSource] = None,
    ) -> Quiz:
        """Return a new ``Quiz``; raises ``EmptyPoolError`` when nothing matches."""
        requested = {c.strip() for c in category_ids if c and c.strip()}
        seed = (seed.strip() or None) if seed else None

        pool = self.bank.questions_in(requested)
        if not pool:
            raise EmptyPoolError(requested)

        source = rng if rng is not None else make_random_source(seed)
        shuffled = fisher_yates(pool, source)

        n = min(clamp_question_count(count), len(shuffled))
        selected: list[Question] = [
            replace(q, id=f"q{i}") for i, q in enumerate(shuffled[:n])
        ]

        all_ids = tuple(self.bank.category_ids())
        if requested:
            selected_ids = tuple(c for c in all_ids if c in requested)
        else:
            selected_ids = all_ids

        logger.debug(
            "Assembled quiz: pool=%d selected=%d categories=%s seeded=%s",
            len(pool), n, ",".join(selected_ids), bool(seed),
        )

        return Quiz(
            id=uuid.uuid4().hex,
            questions=tuple(selected),
            all_categories=all_ids,
            selected_categories=selected_ids,
            category_names=self.bank.category_names(),
            seed=seed,
        )


def assemble(
    bank: BankIndex,
    category_ids: Iterable[str] = (),
    count: int = DEFAULT_QUESTION_COUNT,
    seed: Optional[str] = None,
) -> Quiz:
    """Functional shortcut for ``QuizAssembler(bank).assemble(...)``."""
    return QuizAssembler(bank).assemble(category_ids, count=count, seed=seed)
