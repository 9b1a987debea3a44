"""
Smoke tests for guardrails pipeline.
Run: python -m pytest tests/ -v
"""
import sys
import os

# Ensure src is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

import pytest

from factories import make_question, make_quiz

from cert_quiz.errors import ValidationError
from cert_quiz.guardrails import (
    GuardrailLevel,
    GuardrailsPipeline,
    MAX_FIELD_LENGTH,
    is_valid_email,
    sanitize_input,
    validate_candidate,
)


class TestSanitizeInput:
    def test_trims_whitespace(self):
        assert sanitize_input("  Ada  ") == "Ada"

    def test_strips_markup_chars(self):
        assert sanitize_input("<b>Ada</b>") == "bAda/b"

    def test_truncates(self):
        assert len(sanitize_input("x" * 500)) == MAX_FIELD_LENGTH

    def test_non_string_is_empty(self):
        assert sanitize_input(None) == ""
        assert sanitize_input(42) == ""


class TestEmail:
    @pytest.mark.parametrize("email", ["", "ada@example.com", "a.b+c@sub.example.org"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["ada", "ada@", "@example.com", "ada@example", "a b@example.com"])
    def test_invalid(self, email):
        assert not is_valid_email(email)

    def test_too_long(self):
        assert not is_valid_email("a" * 250 + "@example.com")


class TestCandidateGuardrails:
    def setup_method(self):
        self.gp = GuardrailsPipeline()

    def test_clean_input_passes(self):
        result = self.gp.check_candidate({"name": "Ada Lovelace", "email": "ada@example.com"})
        assert result.passed
        assert not result.violations

    @pytest.mark.parametrize("name", ["", " ", "A", "<>"])
    def test_g01_short_name_blocks(self, name):
        result = self.gp.check_candidate({"name": name})
        codes = [v.code for v in result.violations if v.level == GuardrailLevel.BLOCK]
        assert "G-01" in codes
        assert result.blocked

    def test_g02_bad_email_blocks(self):
        result = self.gp.check_candidate({"name": "Ada", "email": "not-an-email"})
        assert [v.code for v in result.violations] == ["G-02"]
        assert result.blocked

    def test_g03_markup_warns(self):
        result = self.gp.check_candidate({"name": "Ada <script>"})
        assert not result.blocked
        assert [v.code for v in result.warnings] == ["G-03"]
        assert result.warnings[0].field == "name"

    def test_g03_truncation_warns(self):
        result = self.gp.check_candidate({"name": "Ada", "department": "d" * 300})
        assert [v.field for v in result.warnings] == ["department"]

    def test_summary_lists_codes(self):
        result = self.gp.check_candidate({"name": "", "email": "bad"})
        text = result.summary()
        assert "[G-01]" in text and "[G-02]" in text


class TestQuizGuardrails:
    def test_g04_empty_quiz_blocks(self):
        result = GuardrailsPipeline().check_quiz(make_quiz([]))
        assert [v.code for v in result.violations] == ["G-04"]
        assert result.blocked

    def test_g05_duplicate_ids_block(self):
        quiz = make_quiz([make_question("q0", "A01"), make_question("q0", "A02")])
        result = GuardrailsPipeline().check_quiz(quiz)
        assert [v.code for v in result.violations] == ["G-05"]

    def test_valid_quiz_passes(self, quiz_a01_a02):
        assert GuardrailsPipeline().check_quiz(quiz_a01_a02).passed


class TestAnswerGuardrails:
    def test_g06_unknown_question_warns(self, quiz_a01_a02):
        result = GuardrailsPipeline().check_answers(quiz_a01_a02, {"q9": 0})
        assert not result.blocked
        assert [v.code for v in result.warnings] == ["G-06"]

    @pytest.mark.parametrize("bad", [-1, 4, "1", True, None])
    def test_g06_invalid_option_warns(self, quiz_a01_a02, bad):
        result = GuardrailsPipeline().check_answers(quiz_a01_a02, {"q0": bad})
        assert [v.code for v in result.warnings] == ["G-06"]

    def test_valid_answers_clean(self, quiz_a01_a02):
        result = GuardrailsPipeline().check_answers(quiz_a01_a02, {"q0": 0, "q1": 3})
        assert not result.violations


class TestMerge:
    def test_merge_blocks_if_any_blocks(self, quiz_a01_a02):
        gp = GuardrailsPipeline()
        merged = gp.merge(
            gp.check_candidate({"name": "Ada"}),
            gp.check_quiz(make_quiz([])),
        )
        assert merged.blocked
        assert not merged.passed


class TestValidateCandidate:
    def test_returns_sanitised_info(self):
        info = validate_candidate("  Ada <Lovelace> ", "ada@example.com", " Engineer ", "")
        assert info.name == "Ada Lovelace"
        assert info.email == "ada@example.com"
        assert info.job_title == "Engineer"
        assert info.department == ""

    def test_raises_with_block_violations(self):
        with pytest.raises(ValidationError) as exc:
            validate_candidate("A", "bad")
        assert {v.code for v in exc.value.violations} == {"G-01", "G-02"}
        assert "[G-01]" in str(exc.value)
