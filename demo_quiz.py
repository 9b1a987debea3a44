"""
demo_quiz.py – Interactive terminal quiz

Run:
    python demo_quiz.py

Reads the question bank configured in .env (QUIZ_BANK_PATH / QUIZ_BANK_URL),
asks the candidate's details, runs the quiz and writes the PDF certificate
to the current directory.
"""

from __future__ import annotations

import platform
import sys
from pathlib import Path

# ── make src/ importable without installing the package ──────────────────────
sys.path.insert(0, str(Path(__file__).parent / "src"))

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from cert_quiz.b0_bank_index import BankIndex
from cert_quiz.config import configure_logging, get_settings
from cert_quiz.environment import collect_extra_details
from cert_quiz.errors import (
    BankLoadError,
    EmptyPoolError,
    MalformedBankError,
    ValidationError,
)
from cert_quiz.models import GradedResult, PASS_THRESHOLD_PCT, Quiz
from cert_quiz.session import QuizSession, load_bank_from_settings

console = Console()

OPTION_LETTERS = "ABCDEFGH"


# ─── Display helpers ─────────────────────────────────────────────────────────

def _bar(pct: int, width: int = 16) -> str:
    filled = round(pct / 100 * width)
    return "[" + "█" * filled + "░" * (width - filled) + f"] {pct}%"


def show_categories(bank: BankIndex) -> None:
    table = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_violet", padding=(0, 1))
    table.add_column("ID",        style="bold cyan", no_wrap=True)
    table.add_column("Category",  style="white")
    table.add_column("Questions", justify="right")
    stats = bank.stats()
    for cat in bank.categories:
        table.add_row(cat.id, cat.display_name, str(stats.get(cat.id, 0)))
    console.print(Panel(table, title="[bold]Available Categories[/bold]", border_style="blue"))


def ask_questions(session: QuizSession, quiz: Quiz) -> None:
    for n, q in enumerate(quiz.questions, start=1):
        console.print()
        console.print(f"[bold]Q{n}.[/bold] {q.stem}  [dim]({q.category_label})[/dim]")
        for ix, opt in enumerate(q.options):
            console.print(f"   [cyan]{OPTION_LETTERS[ix]}.[/cyan] {opt}")
        letters = OPTION_LETTERS[:len(q.options)]
        while True:
            choice = Prompt.ask("   Your answer [dim](letter, blank to skip)[/dim]",
                                default="", show_default=False).strip().upper()
            if not choice or (len(choice) == 1 and choice in letters):
                break
            console.print(f"   [red]Choose one of {', '.join(letters)}.[/red]")
        if choice:
            session.answer(q.id, OPTION_LETTERS.index(choice))
        preview = session.preview()
        console.print(f"   [dim]Progress: {preview.answered}/{preview.total}[/dim]")


def show_result(result: GradedResult) -> None:
    console.print()
    verdict = "[bold green]✅ PASSED[/bold green]" if result.passed else "[bold red]❌ NOT PASSED[/bold red]"
    console.print(Panel(
        f"{verdict}\nScore: [bold]{result.score}/{result.total}[/bold] "
        f"({result.percentage}%)   Threshold: ≥ {PASS_THRESHOLD_PCT}%",
        title="[bold]Result[/bold]", border_style="green" if result.passed else "red",
    ))

    table = Table(box=box.SIMPLE_HEAD, header_style="bold white on dark_violet", padding=(0, 1))
    table.add_column("Category", style="bold cyan", no_wrap=True)
    table.add_column("Name",     style="white")
    table.add_column("Score",    justify="center")
    table.add_column("Progress", justify="left", min_width=24)
    for cat_id, cs in result.per_category.items():
        table.add_row(
            cat_id,
            result.category_names.get(cat_id, cat_id),
            f"{cs.correct}/{cs.total}",
            _bar(cs.percentage) if cs.total else "[dim]—[/dim]",
        )
    console.print(Panel(table, title="[bold]Category Scorecard[/bold]", border_style="blue"))


# ─── Main ────────────────────────────────────────────────────────────────────

def main() -> None:
    configure_logging()
    settings = get_settings()

    console.print()
    console.print(Panel(
        "[bold]Certificate Quiz[/bold]\n"
        f"[dim]Question bank: {settings.bank.source}[/dim]",
        style="on dark_violet",
        expand=False,
    ))

    try:
        bank = load_bank_from_settings(settings)
    except (BankLoadError, MalformedBankError) as e:
        console.print(f"\n[bold red]Question bank error:[/bold red] {e}")
        sys.exit(1)

    session = QuizSession(bank, settings)
    show_categories(bank)

    try:
        while True:
            name  = Prompt.ask("[cyan]1.[/cyan] Your name")
            email = Prompt.ask("[cyan]2.[/cyan] Email [dim](optional)[/dim]", default="")
            cats_raw = Prompt.ask(
                "[cyan]3.[/cyan] Categories [dim](comma-separated IDs, blank = all)[/dim]",
                default="",
            )
            count = IntPrompt.ask("[cyan]4.[/cyan] Number of questions", default=settings.quiz.default_count)
            seed  = Prompt.ask("[cyan]5.[/cyan] Seed [dim](optional)[/dim]", default="")
            try:
                quiz = session.start(
                    name, email=email,
                    category_ids=[c.strip() for c in cats_raw.split(",") if c.strip()],
                    count=count, seed=seed or None,
                )
                break
            except (ValidationError, EmptyPoolError) as e:
                console.print(f"[bold yellow]⚠ {e}[/bold yellow]")

        ask_questions(session, quiz)
        result = session.submit()
        show_result(result)

        if Confirm.ask("Save your certificate as PDF?", default=True):
            extra = collect_extra_details(
                user_agent=f"{platform.system()} {platform.release()} / Python {platform.python_version()}",
                location_timeout_s=settings.quiz.location_timeout_s,
            )
            cert = session.certificate(extra_details=extra)
            Path(cert.filename).write_bytes(cert.content)
            console.print(f"[green]Saved[/green] {cert.filename} ({cert.page_count} page(s))")

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted.[/yellow]")
        sys.exit(0)

    except Exception:
        console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()
