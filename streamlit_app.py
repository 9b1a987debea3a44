# streamlit_app.py – Certificate Quiz
# Candidate details → quiz → score → downloadable PDF certificate

import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(override=False)

# make src/ importable without installing the package
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st

from cert_quiz.config import configure_logging, get_settings
from cert_quiz.environment import collect_extra_details
from cert_quiz.errors import (
    BankLoadError,
    CertQuizError,
    MalformedBankError,
    ValidationError,
)
from cert_quiz.models import MAX_QUESTIONS, MIN_QUESTIONS, PASS_THRESHOLD_PCT
from cert_quiz.session import QuizSession, load_bank_from_settings

# Color constants
BLUE = "#2196F3"
RED = "#F44336"
TEXT_MUTED = "#646464"

configure_logging()
settings = get_settings()

# ─── Page config ─────────────────────────────────────────────────────────────
st.set_page_config(
    page_title="Certificate Quiz",
    page_icon="🎓",
    layout="centered",
)


@st.cache_resource(show_spinner="Loading question bank…")
def _load_bank():
    return load_bank_from_settings(settings)


try:
    bank = _load_bank()
except (BankLoadError, MalformedBankError) as e:
    st.error(f"Question bank could not be loaded: {e}")
    st.stop()

title = bank.meta.title or settings.certificate.title
st.title(f"🎓 {title}")

if "session" not in st.session_state:
    st.session_state["session"] = QuizSession(bank, settings)
session: QuizSession = st.session_state["session"]


def _reset() -> None:
    st.session_state["session"] = QuizSession(bank, settings)
    for key in [k for k in st.session_state if k.startswith("q_")]:
        del st.session_state[key]


# ─── Stage 1: candidate details ──────────────────────────────────────────────
if session.quiz is None:
    names = bank.category_names()
    stats = bank.stats()
    with st.form("candidate_form"):
        st.subheader("Your details")
        c1, c2 = st.columns(2)
        name = c1.text_input("Name *")
        email = c2.text_input("Email")
        job_title = c1.text_input("Job title")
        department = c2.text_input("Department")

        st.subheader("Quiz options")
        selected = st.multiselect(
            "Categories (leave empty for all)",
            options=bank.category_ids(),
            format_func=lambda cid: f"{names[cid]} ({stats.get(cid, 0)})",
        )
        count = st.slider(
            "Number of questions", MIN_QUESTIONS, MAX_QUESTIONS,
            value=settings.quiz.default_count,
        )
        seed = st.text_input("Seed (optional, repeats the same quiz)")
        started = st.form_submit_button("▶️ Start quiz", type="primary", width="stretch")

    if started:
        try:
            session.start(
                name, email=email, job_title=job_title, department=department,
                category_ids=selected, count=count, seed=seed or None,
            )
        except ValidationError as e:
            for v in e.violations:
                st.warning(v.message)
        except CertQuizError as e:
            st.error(str(e))
        else:
            st.rerun()

# ─── Stage 2: answering ──────────────────────────────────────────────────────
elif session.result is None:
    quiz = session.quiz
    st.caption(f"{session.candidate.name} · {len(quiz.questions)} questions · "
               f"pass mark ≥ {PASS_THRESHOLD_PCT}%")

    with st.form("quiz_form"):
        for n, q in enumerate(quiz.questions, start=1):
            st.markdown(f"**Q{n}. {q.stem}**  \n"
                        f"<span style='color:{TEXT_MUTED};font-size:0.8rem'>{q.category_label}</span>",
                        unsafe_allow_html=True)
            if q.source:
                if q.source.startswith(("http://", "https://")):
                    st.caption(f"[source: {q.source}]({q.source})")
                else:
                    st.caption(f"source: {q.source}")
            st.radio(
                label=q.id,
                options=list(range(len(q.options))),
                format_func=lambda i, opts=q.options: opts[i],
                index=None,
                label_visibility="collapsed",
                key=f"q_{q.id}",
            )
        submitted = st.form_submit_button("📤 Submit answers", type="primary", width="stretch")

    if submitted:
        for q in quiz.questions:
            chosen = st.session_state.get(f"q_{q.id}")
            if chosen is not None:
                session.answer(q.id, chosen)
        session.submit()
        st.rerun()

    st.button("↩️ Start over", on_click=_reset)

# ─── Stage 3: results + certificate ──────────────────────────────────────────
else:
    result = session.result
    colour = BLUE if result.passed else RED
    verdict = "PASSED" if result.passed else "NOT PASSED"
    st.markdown(
        f"<div style='background:{colour};color:white;border-radius:8px;padding:16px 20px;'>"
        f"<b style='font-size:1.4rem'>{verdict}</b><br/>"
        f"Score {result.score}/{result.total} · {result.percentage}% "
        f"(pass mark ≥ {PASS_THRESHOLD_PCT}%)</div>",
        unsafe_allow_html=True,
    )

    st.subheader("Category breakdown")
    st.table([
        {
            "Category": cat_id,
            "Name": result.category_names.get(cat_id, cat_id),
            "Correct": cs.correct,
            "Total": cs.total,
            "Percent": f"{cs.percentage}%" if cs.total else "—",
        }
        for cat_id, cs in result.per_category.items()
    ])

    with st.expander("Review answers"):
        for n, fb in enumerate(result.feedback, start=1):
            q = session.quiz.question_by_id(fb.question_id)
            mark = "✅" if fb.correct else "❌"
            st.markdown(f"{mark} **Q{n}. {q.stem}**  \nCorrect answer: {q.options[fb.correct_index]}")
            if fb.explanation:
                st.caption(fb.explanation)

    user_agent = st.context.headers.get("User-Agent")
    cert = session.certificate(
        extra_details=collect_extra_details(
            user_agent=user_agent,
            location_timeout_s=settings.quiz.location_timeout_s,
        ),
    )
    st.download_button(
        label="⬇️ Download certificate (PDF)",
        data=cert.content,
        file_name=cert.filename,
        mime=cert.mime_type,
        type="primary",
        width="stretch",
    )
    st.button("🔁 Take another quiz", on_click=_reset)
