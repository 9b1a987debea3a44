"""
b0_bank_index.py — Question Bank Index (Block 0)
================================================
Parses a raw question-bank document into an immutable ``BankIndex``:
the question list plus an ordered category map.  Leaf component — no
dependencies on the rest of the engine.

---------------------------------------------------------------------------
Bank document
---------------------------------------------------------------------------
  {
    "meta": {"title": ..., "license": ..., "sources": {...}},
    "questions": [
      {"question": ..., "options": [...], "answer": 1,
       "topic": "A01: Broken Access Control", "source": "https://...",
       "explanation": "..."},
      ...
    ]
  }

  category_id  = topic.split(":")[0].strip()        e.g. "A01"
  display_name = first-seen full topic for that id   e.g. "A01: Broken Access Control"

Questions repeating an earlier stem are dropped; categories are still
discovered from every item so the first-seen label rule holds.

---------------------------------------------------------------------------
Loading
---------------------------------------------------------------------------
  load_bank(source, timeout_s)  reads a local path or an http(s) URL once,
                                 bounded by *timeout_s*, and fails closed with
                                 BankLoadError / MalformedBankError.

The index is built once per load and owned by the caller (Streamlit session,
CLI main); it is read-only and safe to share between quizzes.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from cert_quiz.errors import BankLoadError, MalformedBankError
from cert_quiz.models import (
    BankMeta,
    Category,
    Question,
    RawBank,
    derive_category_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BankIndex:
    """Immutable, indexed view of a question bank."""
    questions:  tuple[Question, ...]
    categories: tuple[Category, ...]
    lookup:     Mapping[str, Category] = field(default_factory=lambda: MappingProxyType({}))
    meta:       BankMeta = field(default_factory=BankMeta)

    def category_ids(self) -> list[str]:
        return [c.id for c in self.categories]

    def category_names(self) -> dict[str, str]:
        return {c.id: c.display_name for c in self.categories}

    def questions_in(self, category_ids: Iterable[str]) -> list[Question]:
        """Questions whose category is in *category_ids*; all questions when empty."""
        wanted = set(category_ids)
        if not wanted:
            return list(self.questions)
        return [q for q in self.questions if q.category_id in wanted]

    def stats(self) -> dict[str, int]:
        """Question count per category id, in category order (0 for empty categories)."""
        counts = {c.id: 0 for c in self.categories}
        for q in self.questions:
            counts[q.category_id] = counts.get(q.category_id, 0) + 1
        return counts

    def sources(self) -> list[str]:
        """Unique, sorted attribution sources referenced by the questions."""
        return sorted({q.source for q in self.questions if q.source})


def _describe_first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    loc = ""
    for part in err.get("loc", ()):
        loc += f"[{part}]" if isinstance(part, int) else (f".{part}" if loc else str(part))
    return f"{loc or 'document'}: {err.get('msg', 'invalid value')}"


def index(raw_bank: Any) -> BankIndex:
    """
    Build a ``BankIndex`` from a parsed bank document.

    Raises
    ------
    MalformedBankError
        If the document is not an object, has no ``questions`` field,
        ``questions`` is not a sequence, or any item is invalid.
    """
    if not isinstance(raw_bank, Mapping):
        raise MalformedBankError("Question bank must be a JSON object")
    if "questions" not in raw_bank:
        raise MalformedBankError("Question bank has no 'questions' field")
    items = raw_bank["questions"]
    if isinstance(items, (str, bytes)) or not isinstance(items, Sequence):
        raise MalformedBankError("Question bank 'questions' field must be a sequence")

    try:
        bank = RawBank.model_validate({
            "meta":      raw_bank.get("meta") or {},
            "questions": list(items),
        })
    except PydanticValidationError as exc:
        raise MalformedBankError(
            f"Invalid question bank ({exc.error_count()} error(s)); "
            f"first: {_describe_first_error(exc)}"
        ) from exc

    categories: dict[str, Category] = {}
    questions:  list[Question] = []
    seen_stems: set[str] = set()
    dropped = 0

    for pos, raw_q in enumerate(bank.questions):
        cat_id = derive_category_id(raw_q.topic)
        if cat_id not in categories:
            categories[cat_id] = Category(id=cat_id, display_name=raw_q.topic.strip())

        if raw_q.question in seen_stems:
            dropped += 1
            continue
        seen_stems.add(raw_q.question)

        questions.append(Question(
            id=raw_q.id or f"b{pos}",
            stem=raw_q.question,
            options=tuple(raw_q.options),
            answer_index=raw_q.answer,
            category_id=cat_id,
            category_label=raw_q.topic.strip(),
            source=raw_q.source,
            explanation=raw_q.explanation,
            difficulty=raw_q.difficulty,
            tags=tuple(raw_q.tags),
        ))

    if dropped:
        logger.debug("Dropped %d question(s) with duplicate stems", dropped)
    logger.info(
        "Indexed question bank: %d questions across %d categories",
        len(questions), len(categories),
    )

    return BankIndex(
        questions=tuple(questions),
        categories=tuple(categories.values()),
        lookup=MappingProxyType(dict(categories)),
        meta=BankMeta.from_dict(bank.meta),
    )


# ─── Loading ──────────────────────────────────────────────────────────────────

def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def load_bank_document(source: str, timeout_s: float = 10.0) -> Any:
    """Read and JSON-decode the bank at *source* (path or http(s) URL)."""
    try:
        if _is_url(source):
            req = urllib.request.Request(source, headers={"Accept": "application/json"})
            with urllib.request.urlopen(req, timeout=timeout_s) as resp:
                payload = resp.read()
        else:
            payload = Path(source).read_bytes()
    except TimeoutError as exc:
        logger.warning("Question bank load timed out after %.1fs: %s", timeout_s, source)
        raise BankLoadError(f"Timed out loading question bank from {source}") from exc
    except (urllib.error.URLError, OSError) as exc:
        raise BankLoadError(f"Could not load question bank from {source}: {exc}") from exc

    try:
        return json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise MalformedBankError(f"Question bank at {source} is not valid JSON: {exc}") from exc


def load_bank(source: str, timeout_s: float = 10.0) -> BankIndex:
    """Load *source* once and index it.  Fails closed on any error."""
    return index(load_bank_document(source, timeout_s=timeout_s))
