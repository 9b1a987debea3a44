"""
Shared pytest fixtures for the cert_quiz test suite.
Factory helpers live in tests/factories.py so they can be imported
directly by test modules as well as being used here.
"""
import sys
import os

_tests_dir = os.path.dirname(__file__)
_src_dir   = os.path.join(_tests_dir, "..", "src")
for _p in (_tests_dir, _src_dir):
    if _p not in sys.path:
        sys.path.insert(0, _p)


import pytest

from factories import SAMPLE_BANK_PATH, make_bank, make_quiz

from cert_quiz.b0_bank_index import load_bank
from cert_quiz.b2_grading_engine import GradingEngine


# ─── pytest fixtures ──────────────────────────────────────────────────────────

@pytest.fixture
def bank():
    return make_bank()


@pytest.fixture
def sample_bank():
    return load_bank(SAMPLE_BANK_PATH)


@pytest.fixture
def quiz_a01_a02():
    return make_quiz()


@pytest.fixture
def passed_result(quiz_a01_a02):
    return GradingEngine().grade(quiz_a01_a02, {"q0": 0, "q1": 0, "q2": 2, "q3": 3})


@pytest.fixture
def failed_result(quiz_a01_a02):
    return GradingEngine().grade(quiz_a01_a02, {"q0": 0})


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every QUIZ_* variable so get_settings() sees defaults."""
    for key in list(os.environ):
        if key.startswith("QUIZ_"):
            monkeypatch.delenv(key, raising=False)
    return monkeypatch
