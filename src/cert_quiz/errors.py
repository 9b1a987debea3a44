"""
errors.py — Exception hierarchy for the quiz assessment engine
==============================================================

  CertQuizError            base class for everything raised by cert_quiz
  MalformedBankError       bank document is missing required structure (fatal)
  BankLoadError            bank could not be fetched / read in time (fatal)
  EmptyPoolError           category filter left no eligible questions (recoverable)
  ValidationError          candidate details rejected by guardrails (recoverable)
  RenderingOverflowError   content cannot fit a page even after pagination (fatal)

Grading never raises: unanswered or out-of-range answers are simply wrong.
"""

from __future__ import annotations


class CertQuizError(Exception):
    """Base class for all cert_quiz errors."""


class MalformedBankError(CertQuizError):
    """The question bank document does not have the required shape."""


class BankLoadError(CertQuizError):
    """The question bank could not be loaded (I/O failure or timeout)."""


class EmptyPoolError(CertQuizError):
    """No questions match the requested category filter."""

    def __init__(self, category_ids):
        self.category_ids = sorted(category_ids)
        super().__init__(
            "No questions available for categories: "
            + (", ".join(self.category_ids) or "(all)")
        )


class ValidationError(CertQuizError):
    """Candidate input failed one or more BLOCK-level guardrails."""

    def __init__(self, violations):
        self.violations = list(violations)
        super().__init__("; ".join(f"[{v.code}] {v.message}" for v in self.violations))


class RenderingOverflowError(CertQuizError):
    """A single block is taller than an entire page content area."""
