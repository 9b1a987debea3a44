"""
guardrails.py – Input and session guardrails
============================================
Validation checks that wrap every transition of the quiz pipeline.

Guardrail levels
----------------
BLOCK   – Hard-stop: the pipeline does not proceed.
WARN    – Soft-stop: the pipeline proceeds with a visible warning.
INFO    – Advisory only.

Guards implemented
------------------
Candidate guards (before assembly):
  G-01  Name present and at least 2 characters after sanitising
  G-02  Email well-formed (≤ 254 chars) when supplied
  G-03  Field was altered by sanitising (markup stripped / truncated)

Quiz guards (after assembly):
  G-04  Quiz contains at least one question
  G-05  No duplicate question IDs

Answer guards (before grading):
  G-06  Answers reference unknown question IDs or out-of-range options
        (grading still treats them as incorrect)
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping

from cert_quiz.errors import ValidationError
from cert_quiz.models import CandidateInfo, Quiz


# ─── Enums & data models ─────────────────────────────────────────────────────

class GuardrailLevel(str, Enum):
    BLOCK = "BLOCK"
    WARN  = "WARN"
    INFO  = "INFO"


@dataclass
class GuardrailViolation:
    code:    str
    level:   GuardrailLevel
    message: str
    field:   str = ""   # which field triggered the violation


@dataclass
class GuardrailResult:
    passed:     bool
    violations: list[GuardrailViolation] = field(default_factory=list)

    @property
    def blocked(self) -> bool:
        return any(v.level == GuardrailLevel.BLOCK for v in self.violations)

    @property
    def warnings(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.WARN]

    @property
    def infos(self) -> list[GuardrailViolation]:
        return [v for v in self.violations if v.level == GuardrailLevel.INFO]

    def summary(self) -> str:
        if not self.violations:
            return "✅ All guardrails passed."
        lines = [f"{'🚫' if v.level == GuardrailLevel.BLOCK else '⚠️' if v.level == GuardrailLevel.WARN else 'ℹ️'} [{v.code}] {v.message}" for v in self.violations]
        return "\n".join(lines)


def _result(violations: list[GuardrailViolation]) -> GuardrailResult:
    return GuardrailResult(
        passed=not any(v.level == GuardrailLevel.BLOCK for v in violations),
        violations=violations,
    )


# ─── Constants & sanitising ───────────────────────────────────────────────────

MAX_FIELD_LENGTH = 200
MAX_EMAIL_LENGTH = 254
MIN_NAME_LENGTH  = 2

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_MARKUP_CHARS  = re.compile(r"[<>]")


def sanitize_input(value: Any) -> str:
    """Trim, cap at 200 characters and strip ``<`` / ``>``."""
    if not isinstance(value, str):
        return ""
    return _MARKUP_CHARS.sub("", value.strip()[:MAX_FIELD_LENGTH])


def is_valid_email(email: str) -> bool:
    """Empty is valid (the field is optional)."""
    if not email:
        return True
    return len(email) <= MAX_EMAIL_LENGTH and bool(_EMAIL_PATTERN.match(email))


_CANDIDATE_FIELDS = (
    ("name",       "Name"),
    ("email",      "Email"),
    ("job_title",  "Job Title"),
    ("department", "Department"),
)


# ─── Guardrail checks ─────────────────────────────────────────────────────────

class CandidateGuardrails:
    """G-01 – G-03: Validates candidate details before a quiz is assembled."""

    def check(self, raw: Mapping[str, Any]) -> GuardrailResult:
        violations: list[GuardrailViolation] = []
        clean = {key: sanitize_input(raw.get(key, "")) for key, _ in _CANDIDATE_FIELDS}

        # G-01 Name
        if len(clean["name"]) < MIN_NAME_LENGTH:
            violations.append(GuardrailViolation(
                code="G-01", level=GuardrailLevel.BLOCK,
                field="name",
                message=f"Please enter a valid name (at least {MIN_NAME_LENGTH} characters).",
            ))

        # G-02 Email
        if clean["email"] and not is_valid_email(clean["email"]):
            violations.append(GuardrailViolation(
                code="G-02", level=GuardrailLevel.BLOCK,
                field="email",
                message="Please enter a valid email address.",
            ))

        # G-03 Sanitising notice
        for key, label in _CANDIDATE_FIELDS:
            original = raw.get(key, "")
            if isinstance(original, str) and original.strip() != clean[key]:
                violations.append(GuardrailViolation(
                    code="G-03", level=GuardrailLevel.WARN,
                    field=key,
                    message=f"\"{label}\" was shortened or had markup characters removed.",
                ))

        return _result(violations)


class QuizGuardrails:
    """G-04 – G-05: Validates an assembled Quiz before presenting it."""

    def check(self, quiz: Quiz) -> GuardrailResult:
        violations: list[GuardrailViolation] = []

        # G-04 Non-empty
        if not quiz.questions:
            violations.append(GuardrailViolation(
                code="G-04", level=GuardrailLevel.BLOCK,
                message="Quiz has no questions.",
            ))

        # G-05 No duplicate IDs
        ids = [q.id for q in quiz.questions]
        dups = {i for i in ids if ids.count(i) > 1}
        if dups:
            violations.append(GuardrailViolation(
                code="G-05", level=GuardrailLevel.BLOCK,
                message=f"Duplicate question IDs detected: {sorted(dups)}.",
            ))

        return _result(violations)


class AnswerGuardrails:
    """G-06: Flags answers that can never score (grading continues regardless)."""

    def check(self, quiz: Quiz, answers: Mapping[str, Any]) -> GuardrailResult:
        violations: list[GuardrailViolation] = []
        by_id = {q.id: q for q in quiz.questions}

        for qid, chosen in answers.items():
            q = by_id.get(qid)
            if q is None:
                violations.append(GuardrailViolation(
                    code="G-06", level=GuardrailLevel.WARN,
                    field=str(qid),
                    message=f"Answer for unknown question '{qid}' will be ignored.",
                ))
            elif isinstance(chosen, bool) or not isinstance(chosen, int) \
                    or not 0 <= chosen < len(q.options):
                violations.append(GuardrailViolation(
                    code="G-06", level=GuardrailLevel.WARN,
                    field=str(qid),
                    message=f"Answer {chosen!r} for '{qid}' is not a valid option and counts as incorrect.",
                ))

        return _result(violations)


# ─── Convenience façade ───────────────────────────────────────────────────────

class GuardrailsPipeline:
    """
    Single entry-point that runs all applicable guardrails for a given pipeline stage.

    Usage::

        gp = GuardrailsPipeline()
        result = gp.check_candidate({"name": "Ada", "email": "ada@example.com"})
        result = gp.check_quiz(quiz)
        result = gp.check_answers(quiz, answers)
    """

    def __init__(self):
        self.candidate_guard = CandidateGuardrails()
        self.quiz_guard      = QuizGuardrails()
        self.answer_guard    = AnswerGuardrails()

    def check_candidate(self, raw: Mapping[str, Any]) -> GuardrailResult:
        return self.candidate_guard.check(raw)

    def check_quiz(self, quiz: Quiz) -> GuardrailResult:
        return self.quiz_guard.check(quiz)

    def check_answers(self, quiz: Quiz, answers: Mapping[str, Any]) -> GuardrailResult:
        return self.answer_guard.check(quiz, answers)

    def merge(self, *results: GuardrailResult) -> GuardrailResult:
        """Merge multiple GuardrailResult objects into one."""
        all_v = []
        for r in results:
            all_v.extend(r.violations)
        return _result(all_v)


def validate_candidate(
    name: str,
    email: str = "",
    job_title: str = "",
    department: str = "",
) -> CandidateInfo:
    """
    Sanitise and validate candidate details.

    Returns a ``CandidateInfo`` built from the sanitised values, or raises
    ``ValidationError`` carrying the BLOCK violations.
    """
    raw = {"name": name, "email": email, "job_title": job_title, "department": department}
    result = CandidateGuardrails().check(raw)
    if result.blocked:
        raise ValidationError(
            [v for v in result.violations if v.level == GuardrailLevel.BLOCK]
        )
    return CandidateInfo(
        name=sanitize_input(name),
        email=sanitize_input(email),
        job_title=sanitize_input(job_title),
        department=sanitize_input(department),
    )
