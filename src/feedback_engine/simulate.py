"""Simulate a full feedback session end-to-end against the YAML catalog.

Builds a fake edition, answers every section with random (but valid)
answers, and submits to an in-memory store, printing each step with rich.
Useful for eyeballing the question catalog and the navigation flow without
a database.

Usage::

    # Default run: 3 products, random answers
    feedback-simulate

    # Reproducible run with 5 products
    feedback-simulate --products 5 --seed 42

    # Make every product-specific fetch fail (global questions only)
    feedback-simulate --fail-product-fetch

    # Verbose mode (-v prints Q&A pairs, -vv the final payload as JSON)
    feedback-simulate -v
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import random
import sys
import time
import uuid
from typing import Any

from rich.console import Console
from rich.table import Table

from feedback_engine.catalog import QuestionCatalog
from feedback_engine.config import configure_logging, load_settings
from feedback_engine.errors import FeedbackError
from feedback_engine.interfaces import FeedbackStore, IdentityProvider, QuestionSource
from feedback_engine.models.edition import Edition, Product, Respondent
from feedback_engine.models.payload import FeedbackPayload, SubmitResult
from feedback_engine.models.question import (
    BaseQuestion,
    BooleanQuestion,
    ChoiceQuestion,
    EmojiRatingQuestion,
    RatingQuestion,
)
from feedback_engine.orchestrator import FeedbackOrchestrator
from feedback_engine.retry import RetryPolicy

logger = logging.getLogger(__name__)

SIM_EMAIL = "simulacao@experimentai.com.br"

_PRODUCT_POOL = [
    ("Granola Crocante", "Grão Bom", "Cereais"),
    ("Kombucha de Gengibre", "Fermenta", "Bebidas"),
    ("Chocolate 70%", "Cacau Vivo", "Doces"),
    ("Chips de Mandioca", "Raiz", "Snacks"),
    ("Geleia de Jabuticaba", "Quintal", "Pastas"),
    ("Café Especial", "Serra Alta", "Bebidas"),
]

_TEXT_POOL = [
    "Gostei bastante!",
    "Achei um pouco doce demais.",
    "Compraria de novo.",
    "Embalagem muito bonita.",
    "",
]


# ---------------------------------------------------------------------------
# Simulated collaborators
# ---------------------------------------------------------------------------

class InMemoryFeedbackStore(FeedbackStore):
    """Keeps submitted payloads in a list, keyed by (edition, respondent)."""

    def __init__(self) -> None:
        self.payloads: list[FeedbackPayload] = []

    async def submit(self, payload: FeedbackPayload) -> SubmitResult:
        self.payloads.append(payload)
        return SubmitResult(success=True, session_reference=uuid.uuid4().hex)

    async def has_already_submitted(self, edition_id: str, respondent_id: str) -> bool:
        return any(
            p.edition_id == edition_id and p.respondent_email == respondent_id
            for p in self.payloads
        )


class SimIdentity(IdentityProvider):
    def __init__(self) -> None:
        self.signed_out = False

    async def sign_out(self) -> None:
        self.signed_out = True


class ProductFetchFailingSource(QuestionSource):
    """Delegates to ``inner`` but fails every product-specific call."""

    def __init__(self, inner: QuestionSource) -> None:
        self.inner = inner

    async def get_questions_by_category_and_product(
        self, category: str, product_id: str | None = None
    ) -> list[BaseQuestion]:
        raise ConnectionError(f"simulated outage for {category}/{product_id}")

    async def get_questions_by_category(self, category: str) -> list[BaseQuestion]:
        return await self.inner.get_questions_by_category(category)


# ---------------------------------------------------------------------------
# Answer generation
# ---------------------------------------------------------------------------

def build_edition(n_products: int, rng: random.Random) -> Edition:
    picks = rng.sample(_PRODUCT_POOL, k=min(n_products, len(_PRODUCT_POOL)))
    products = [
        Product(id=f"prod-{i + 1}", name=name, brand=brand, category=category)
        for i, (name, brand, category) in enumerate(picks)
    ]
    return Edition(edition_id="sim-edition", edition_name="Sabores do Brasil", products=products)


def random_answer(question: BaseQuestion, rng: random.Random) -> Any:
    """A valid random answer for ``question``."""
    if isinstance(question, RatingQuestion):
        return rng.randint(question.config.min, question.config.max)
    if isinstance(question, EmojiRatingQuestion):
        return rng.choice(question.config.emojis).value
    if isinstance(question, ChoiceQuestion):
        values = question.option_values
        if question.config.multi_select:
            return rng.sample(values, k=rng.randint(1, len(values)))
        return rng.choice(values)
    if isinstance(question, BooleanQuestion):
        return rng.choice([True, False])
    return rng.choice([t for t in _TEXT_POOL if t or not question.is_required])


# ---------------------------------------------------------------------------
# Session driver
# ---------------------------------------------------------------------------

async def run_session(
    orchestrator: FeedbackOrchestrator,
    rng: random.Random,
    console: Console,
    verbosity: int = 0,
) -> SubmitResult | None:
    """Drive ``orchestrator`` from start() to submit()."""
    view = await orchestrator.start()

    while True:
        progress = orchestrator.progress
        console.print(
            f"\n[bold cyan][{view.index + 1}/{view.total}][/] {view.label} "
            f"[dim]{progress.emoji} {progress.message} ({progress.percentage:.0f}%)[/]"
        )
        if view.load_error:
            console.print(f"  [yellow]![/] {view.load_error}; retrying")
            view = await orchestrator.retry_section()
            if view.load_error:
                console.print(f"  [red]ERROR[/] section unavailable: {view.load_error}")
                return None
            continue

        # First attempt with nothing answered shows the blocking errors
        attempt = await orchestrator.advance()
        if not attempt.advanced and verbosity >= 1:
            console.print(f"  [dim]{len(attempt.errors)} required field(s) pending[/]")

        if not attempt.advanced:
            for question in view.questions:
                answer = random_answer(question, rng)
                orchestrator.update_answer(view.section_id, question.id, answer)
                if verbosity >= 1:
                    console.print(
                        f"    [dim]Q:[/] {question.display_text(view.edition_name)} "
                        f"({question.id}) [{question.question_type}]"
                    )
                    console.print(f"    [dim]A:[/] {answer!r}")
            attempt = await orchestrator.advance()

        console.print(f"  [green]✓[/] {view.label}: {len(view.questions)} questions")
        if attempt.ready_to_submit:
            break
        view = attempt.view

    if verbosity >= 2:
        payload = orchestrator.build_payload()
        console.print(json.dumps(payload.model_dump(), ensure_ascii=False, indent=2))
    return await orchestrator.submit()


def print_summary(console: Console, payload: FeedbackPayload) -> None:
    console.print()
    console.rule("[bold]Submission Summary")
    table = Table(show_lines=True)
    table.add_column("Section", min_width=24)
    table.add_column("Answered", width=9)
    table.add_column("Questions", width=10)

    rows = [(pf.product_name, pf.answers) for pf in payload.product_feedbacks]
    rows.append(("Sobre a Experimentaí", payload.experimentai_feedback.answers))
    rows.append(("Sobre a Entrega", payload.delivery_feedback.answers))
    for label, records in rows:
        answered = sum(1 for r in records if r.answer not in (None, "", []))
        table.add_row(label, str(answered), str(len(records)))
    console.print(table)
    console.print(f"  Badge: [bold]{payload.completion_badge}[/]")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Simulate a feedback session with random answers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "-p", "--products",
        type=int, default=3,
        help="Number of products in the simulated edition (default: 3)",
    )
    parser.add_argument(
        "--seed",
        type=int, default=None,
        help="RNG seed for reproducibility (default: current timestamp)",
    )
    parser.add_argument(
        "--catalog",
        default=None,
        help="Question catalog YAML (default: bundled default questions)",
    )
    parser.add_argument(
        "--fail-product-fetch",
        action="store_true",
        help="Fail every product-specific question fetch",
    )
    parser.add_argument(
        "--retry-delay",
        type=float, default=0.0,
        help="Base delay between fetch retries in seconds (default: 0)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count", default=0,
        help="Increase verbosity (-v for Q&A pairs, -vv for the payload JSON)",
    )
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = load_settings()
    configure_logging(settings)
    console = Console()

    seed = args.seed if args.seed is not None else int(time.time())
    rng = random.Random(seed)
    console.print(f"[dim]RNG seed: {seed}[/]")

    source: QuestionSource = QuestionCatalog(args.catalog or settings.catalog_path).load()
    if args.fail_product_fetch:
        source = ProductFetchFailingSource(source)

    store = InMemoryFeedbackStore()
    edition = build_edition(args.products, rng)
    orchestrator = FeedbackOrchestrator(
        edition,
        Respondent(status="authorized", email=SIM_EMAIL, may_proceed=True),
        question_source=source,
        feedback_store=store,
        identity=SimIdentity(),
        retry_policy=RetryPolicy(
            max_attempts=settings.fetch_max_attempts,
            base_delay=args.retry_delay,
            multiplier=settings.fetch_retry_multiplier,
        ),
        settings=settings,
    )

    console.print(
        f"[bold]Edition '{edition.edition_name}' with {len(edition.products)} products[/]"
    )
    try:
        result = await run_session(orchestrator, rng, console, verbosity=args.verbose)
    except FeedbackError as exc:
        console.print(f"[red]ERROR[/] {exc}")
        return 1

    if result is None or not store.payloads:
        console.print("[red]Session did not submit.[/]")
        return 1

    print_summary(console, store.payloads[-1])
    console.print(f"[green]Submitted[/] reference={result.session_reference}")
    return 0


def cli() -> None:
    """Console-script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
