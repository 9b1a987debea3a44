"""
cert_quiz — Timed multiple-choice assessment with PDF certificates
==================================================================
Package containing the assessment engine, data models, configuration
and guardrails for the certificate quiz.

Module map
----------
  models.py                     Dataclasses, Pydantic bank schema, scoring policy
                                (75 % pass threshold, round-half-up percentage).
  errors.py                     Exception hierarchy.
  config.py                     Settings loaded from .env.
  guardrails.py                 Candidate / quiz / answer guardrails (G-01..G-06).
  environment.py                Optional certificate environment details.

  b0_bank_index.py              Block 0: Question bank loading + category index.
  b1_quiz_assembler.py          Block 1: Filter, seeded Fisher–Yates, q0..qN ids.
  b2_grading_engine.py          Block 2: Per-question + per-category grading.
  b3_certificate_renderer.py    Block 3: Paginated reportlab certificate.

  session.py                    QuizSession composition helper for the UIs.

Pipeline order
--------------
  B0 (index) → GuardrailsPipeline [G-01..G-03] → B1 (assemble)
  → GuardrailsPipeline [G-04..G-05]
  ** candidate answers the quiz **
  → GuardrailsPipeline [G-06] → B2 (grade) → B3 (certificate)
"""
__version__ = "0.1.0"
