"""
session.py — One candidate's pass through the pipeline
======================================================
Composition helper used by the Streamlit app and the terminal demo:

  GuardrailsPipeline [G-01..G-03] → QuizAssembler → GuardrailsPipeline [G-04..G-05]
  ** candidate answers (presentation layer) **
  → GuardrailsPipeline [G-06] → GradingEngine → CertificateRenderer

The BankIndex is passed in by the caller and never owned by the session,
so many sessions can share one loaded bank.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional

from cert_quiz.b0_bank_index import BankIndex, load_bank
from cert_quiz.b1_quiz_assembler import QuizAssembler
from cert_quiz.b2_grading_engine import GradingEngine, PreviewScore, preview_score
from cert_quiz.b3_certificate_renderer import Certificate, CertificateRenderer
from cert_quiz.config import Settings, get_settings
from cert_quiz.errors import CertQuizError
from cert_quiz.guardrails import GuardrailResult, GuardrailsPipeline, validate_candidate
from cert_quiz.models import Attempt, CandidateInfo, ExtraDetails, GradedResult, Quiz

logger = logging.getLogger(__name__)


def load_bank_from_settings(settings: Optional[Settings] = None) -> BankIndex:
    settings = settings or get_settings()
    return load_bank(settings.bank.source, timeout_s=settings.bank.timeout_s)


class QuizSession:
    """
    Usage::

        session = QuizSession(bank)
        quiz    = session.start("Ada Lovelace", category_ids={"A01"}, count=10)
        session.answer("q0", 2)
        result  = session.submit()
        cert    = session.certificate()
    """

    def __init__(self, bank: BankIndex, settings: Optional[Settings] = None):
        self.bank = bank
        self.settings = settings or get_settings()
        self.guardrails = GuardrailsPipeline()
        self.candidate: Optional[CandidateInfo] = None
        self.quiz: Optional[Quiz] = None
        self.answers: dict[str, int] = {}
        self.result: Optional[GradedResult] = None
        self.answer_check: Optional[GuardrailResult] = None

    def start(
        self,
        name: str,
        email: str = "",
        job_title: str = "",
        department: str = "",
        category_ids: Iterable[str] = (),
        count: Optional[int] = None,
        seed: Optional[str] = None,
    ) -> Quiz:
        """Validate the candidate and assemble a fresh quiz."""
        self.candidate = validate_candidate(name, email, job_title, department)
        quiz = QuizAssembler(self.bank).assemble(
            category_ids,
            count=count if count is not None else self.settings.quiz.default_count,
            seed=seed,
        )
        check = self.guardrails.check_quiz(quiz)
        if check.blocked:
            raise CertQuizError(check.summary())
        self.quiz = quiz
        self.answers = {}
        self.result = None
        return quiz

    def answer(self, question_id: str, option_index: int) -> None:
        self.answers[question_id] = option_index

    def preview(self) -> PreviewScore:
        self._require_quiz()
        return preview_score(self.quiz, self.answers)

    @property
    def attempt(self) -> Attempt:
        self._require_quiz()
        return Attempt(candidate=self.candidate, quiz=self.quiz, answers=dict(self.answers))

    def submit(self, answers: Optional[dict[str, Any]] = None) -> GradedResult:
        """Grade the attempt; answers default to those recorded via ``answer()``."""
        self._require_quiz()
        if answers is not None:
            self.answers = dict(answers)
        attempt = self.attempt
        self.answer_check = self.guardrails.check_answers(attempt.quiz, attempt.answers)
        for v in self.answer_check.warnings:
            logger.warning("[%s] %s", v.code, v.message)
        self.result = GradingEngine().grade(attempt.quiz, attempt.answers)
        return self.result

    def certificate(
        self,
        extra_details: Optional[ExtraDetails] = None,
        issued_at: Optional[datetime] = None,
    ) -> Certificate:
        if self.result is None:
            raise CertQuizError("Submit the quiz before requesting a certificate.")
        renderer = CertificateRenderer(title=self.settings.certificate.title)
        return renderer.render(
            self.result,
            self.candidate.name,
            self.result.category_names,
            extra_details,
            candidate=self.candidate,
            meta=self.bank.meta,
            issued_at=issued_at,
        )

    def _require_quiz(self) -> None:
        if self.quiz is None or self.candidate is None:
            raise CertQuizError("No quiz in progress; call start() first.")
