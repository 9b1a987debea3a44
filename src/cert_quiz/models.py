"""
Data models for the quiz assessment engine.

Raw bank documents are validated with Pydantic; everything the engine
produces afterwards (questions, quizzes, graded results) is a plain
frozen dataclass so it can be shared between sessions without copying.

The scoring policy (pass threshold + rounding) lives here as well so that
the live preview and the authoritative grading pass use the same code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ─── Policy constants ────────────────────────────────────────────────────────

PASS_THRESHOLD_PCT: int = 75       # fixed policy, not user-configurable
MIN_QUESTIONS:      int = 5
MAX_QUESTIONS:      int = 50
DEFAULT_QUESTION_COUNT: int = 20


def score_percentage(score: int, total: int) -> int:
    """Return ``score / total * 100`` rounded half-up to an int (0 when total is 0)."""
    if total <= 0:
        return 0
    # exact integer round-half-up: floor(score*100/total + 1/2)
    return (200 * score + total) // (2 * total)


def is_passing(percentage: int) -> bool:
    return percentage >= PASS_THRESHOLD_PCT


def clamp_question_count(count: int) -> int:
    return max(MIN_QUESTIONS, min(MAX_QUESTIONS, int(count)))


def derive_category_id(topic: str) -> str:
    """``"A01: Broken Access Control"`` → ``"A01"``."""
    return topic.split(":")[0].strip()


# ─── Raw bank document (input) ───────────────────────────────────────────────

class RawQuestion(BaseModel):
    """One item of the ``questions`` array as it appears in the bank JSON."""
    model_config = ConfigDict(extra="ignore")

    id:          Optional[str] = None
    question:    str
    options:     list[str] = Field(min_length=2)
    answer:      int
    topic:       str
    source:      str = ""
    explanation: str = ""
    difficulty:  str = ""
    tags:        list[str] = Field(default_factory=list)

    @field_validator("source", "explanation", "difficulty", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # optional text fields may be written as JSON null
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _null_tags(cls, value: Any) -> Any:
        return [] if value is None else value

    @model_validator(mode="after")
    def _answer_in_range(self) -> "RawQuestion":
        if not 0 <= self.answer < len(self.options):
            raise ValueError(
                f"answer index {self.answer} out of range for {len(self.options)} options"
            )
        if not derive_category_id(self.topic):
            raise ValueError(f"topic {self.topic!r} has no category id before ':'")
        return self


class RawBank(BaseModel):
    """Top-level bank document: ``{"meta": {...}, "questions": [...]}``."""
    model_config = ConfigDict(extra="ignore")

    meta:      dict[str, Any] = Field(default_factory=dict)
    questions: list[RawQuestion]


# ─── Bank-derived records ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Question:
    """A single multiple-choice question."""
    id:             str
    stem:           str
    options:        tuple[str, ...]
    answer_index:   int              # 0-based index into options
    category_id:    str              # e.g. "A01"
    category_label: str              # e.g. "A01: Broken Access Control"
    source:         str = ""         # attribution URL or title
    explanation:    str = ""
    difficulty:     str = ""
    tags:           tuple[str, ...] = ()


@dataclass(frozen=True)
class Category:
    id:           str
    display_name: str


@dataclass(frozen=True)
class BankMeta:
    """Attribution metadata shipped with the bank."""
    title:   str = ""
    license: str = ""
    sources: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, meta: dict[str, Any]) -> "BankMeta":
        raw_sources = meta.get("sources") or meta.get("source") or ()
        if isinstance(raw_sources, dict):
            sources = tuple(str(v) for v in raw_sources.values())
        elif isinstance(raw_sources, str):
            sources = (raw_sources,)
        else:
            sources = tuple(str(s) for s in raw_sources)
        return cls(
            title=str(meta.get("title", "") or ""),
            license=str(meta.get("license", "") or ""),
            sources=sources,
        )


# ─── Quiz session records ────────────────────────────────────────────────────

@dataclass(frozen=True)
class Quiz:
    """An assembled, ordered subset of bank questions."""
    id:                  str
    questions:           tuple[Question, ...]
    all_categories:      tuple[str, ...] = ()
    selected_categories: tuple[str, ...] = ()
    category_names:      dict[str, str] = field(default_factory=dict)
    seed:                Optional[str] = None

    def question_by_id(self, question_id: str) -> Optional[Question]:
        return next((q for q in self.questions if q.id == question_id), None)


@dataclass(frozen=True)
class CandidateInfo:
    """Who is taking the quiz. Only ``name`` is required."""
    name:       str
    email:      str = ""
    job_title:  str = ""
    department: str = ""


@dataclass(frozen=True)
class Attempt:
    """
    A candidate's answers for one quiz.

    ``answers`` maps question id → chosen option index.  Unanswered
    questions are simply absent.
    """
    candidate: CandidateInfo
    quiz:      Quiz
    answers:   dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class CategoryScore:
    correct: int = 0
    total:   int = 0

    @property
    def percentage(self) -> int:
        return score_percentage(self.correct, self.total)


@dataclass(frozen=True)
class QuestionFeedback:
    """Per-question result after the attempt is graded."""
    question_id:   str
    category_id:   str
    correct:       bool
    chosen_index:  Optional[int]     # None when unanswered
    correct_index: int
    explanation:   str


@dataclass(frozen=True)
class GradedResult:
    """Scored outcome of an attempt; the sole input to the certificate renderer."""
    score:               int
    total:               int
    percentage:          int
    passed:              bool
    per_category:        dict[str, CategoryScore]
    category_names:      dict[str, str]
    all_categories:      tuple[str, ...]
    selected_categories: tuple[str, ...]
    attempt_id:          str = ""
    quiz_id:             str = ""
    graded_at:           Optional[datetime] = None
    feedback:            tuple[QuestionFeedback, ...] = ()

    @property
    def weak_categories(self) -> list[str]:
        """Category ids with at least one question and a failing percentage."""
        return [
            cid for cid, cs in self.per_category.items()
            if cs.total and not is_passing(cs.percentage)
        ]


# ─── Optional environment details (certificate) ──────────────────────────────

@dataclass(frozen=True)
class GeoLocation:
    latitude:  float
    longitude: float
    accuracy:  Optional[float] = None   # metres


@dataclass(frozen=True)
class ExtraDetails:
    """
    Optional environment fields printed on the certificate.

    Every field is independently present (a value) or absent (``None``).
    Use :meth:`from_mapping` to build one from loosely-typed input, which
    normalises blank strings to ``None``.
    """
    local_time: Optional[str] = None
    utc_time:   Optional[str] = None
    time_zone:  Optional[str] = None
    user_agent: Optional[str] = None
    location:   Optional[GeoLocation] = None

    FIELD_ORDER = ("local_time", "utc_time", "time_zone", "user_agent", "location")

    @classmethod
    def from_mapping(cls, data: Optional[dict[str, Any]]) -> "ExtraDetails":
        data = data or {}

        def _text(key: str) -> Optional[str]:
            value = data.get(key)
            if value is None:
                return None
            value = str(value).strip()
            return value or None

        loc = data.get("location")
        if isinstance(loc, dict):
            try:
                loc = GeoLocation(
                    latitude=float(loc["latitude"]),
                    longitude=float(loc["longitude"]),
                    accuracy=float(loc["accuracy"]) if loc.get("accuracy") is not None else None,
                )
            except (KeyError, TypeError, ValueError):
                loc = None
        elif not isinstance(loc, GeoLocation):
            loc = None

        return cls(
            local_time=_text("local_time"),
            utc_time=_text("utc_time"),
            time_zone=_text("time_zone"),
            user_agent=_text("user_agent"),
            location=loc,
        )

    def present_fields(self) -> list[str]:
        return [name for name in self.FIELD_ORDER if getattr(self, name) is not None]

    @property
    def has_any(self) -> bool:
        return bool(self.present_fields())
