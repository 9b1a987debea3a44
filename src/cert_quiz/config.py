"""
config.py — Central settings for the quiz assessment engine
===========================================================
All configuration is loaded from environment variables / .env file.
Copy .env.example → .env and adjust as needed.

The pass threshold (75 %) is a fixed policy constant in models.py and has
no environment variable.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from cert_quiz.models import DEFAULT_QUESTION_COUNT, clamp_question_count

# Load .env into os.environ (no-op if already set, safe to call multiple times)
load_dotenv(override=False)


# ─── Helpers ────────────────────────────────────────────────────────────────

def _is_placeholder(value: str) -> bool:
    """Return True if the value looks like an unfilled template placeholder."""
    return not value or "<" in value or value.startswith("your-") or value == "PLACEHOLDER"


# ─── Question bank source ───────────────────────────────────────────────────

@dataclass(frozen=True)
class BankConfig:
    path:      str
    url:       str
    timeout_s: float

    @property
    def use_url(self) -> bool:
        """True when a real (non-placeholder) bank URL is configured."""
        return bool(self.url) and not _is_placeholder(self.url)

    @property
    def source(self) -> str:
        return self.url if self.use_url else self.path


# ─── Quiz defaults ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class QuizConfig:
    default_count:       int
    location_timeout_s:  float


# ─── Certificate ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class CertificateConfig:
    title: str


# ─── App-level settings ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class AppConfig:
    log_level: str


# ─── Master settings object ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Settings:
    bank:        BankConfig
    quiz:        QuizConfig
    certificate: CertificateConfig
    app:         AppConfig

    def status_summary(self) -> dict[str, str]:
        """Return a dict of setting → human-readable value for the UI."""
        return {
            "Question bank":     ("🌐 " if self.bank.use_url else "📄 ") + self.bank.source,
            "Bank load timeout": f"{self.bank.timeout_s:g} s",
            "Default questions": str(self.quiz.default_count),
            "Location timeout":  f"{self.quiz.location_timeout_s:g} s",
        }


def get_settings() -> Settings:
    """Load all configuration from environment variables."""
    _str   = lambda k, d="": os.getenv(k, d).strip()
    _int   = lambda k, d=0: int(os.getenv(k, str(d)) or d)
    _float = lambda k, d=0.0: float(os.getenv(k, str(d)) or d)

    return Settings(
        bank=BankConfig(
            path      = _str("QUIZ_BANK_PATH", "data/question_bank.json"),
            url       = _str("QUIZ_BANK_URL"),
            timeout_s = _float("QUIZ_BANK_TIMEOUT_S", 10.0),
        ),
        quiz=QuizConfig(
            default_count      = clamp_question_count(_int("QUIZ_DEFAULT_COUNT", DEFAULT_QUESTION_COUNT)),
            location_timeout_s = _float("QUIZ_LOCATION_TIMEOUT_S", 3.0),
        ),
        certificate=CertificateConfig(
            title = _str("QUIZ_CERT_TITLE", "Security Quiz Certificate"),
        ),
        app=AppConfig(
            log_level = _str("QUIZ_LOG_LEVEL", "INFO").upper(),
        ),
    )


def configure_logging(level: str | None = None) -> None:
    """Configure root logging for the CLI / Streamlit entry points."""
    level = (level or get_settings().app.log_level).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
