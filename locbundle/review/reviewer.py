"""Human review of translations in interactive mode."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from ..models.entity import LocalizationEntity, ReviewOutcome


@dataclass
class ReviewDecision:
    """A reviewer's verdict on one entity."""

    outcome: ReviewOutcome
    # Only set for REFINE_NEEDED
    suggestion: Optional[str] = None


@dataclass
class ReviewContext:
    """Information shown alongside the entity under review."""

    position: int
    total: int
    global_context: Optional[str] = None


class Reviewer(ABC):
    @abstractmethod
    def review_one(self, entity: LocalizationEntity, context: ReviewContext) -> ReviewDecision:
        ...


class ConsoleReviewer(Reviewer):
    """Asks for a decision on the terminal."""

    CHOICES = {
        "a": ReviewOutcome.APPROVED,
        "r": ReviewOutcome.REFINE_NEEDED,
        "d": ReviewOutcome.DECLINED,
        "all": ReviewOutcome.APPROVE_ALL,
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def review_one(self, entity: LocalizationEntity, context: ReviewContext) -> ReviewDecision:
        self.console.print(self._render(entity, context))
        self.console.print(
            "[dim]\\[a] Approve  \\[r] Retry with suggestions  "
            "\\[d] Decline  \\[all] Approve all[/dim]"
        )
        choice = click.prompt(
            "Decision",
            type=click.Choice(list(self.CHOICES)),
            default="a",
            show_choices=False,
        )
        outcome = self.CHOICES[choice]
        if outcome == ReviewOutcome.REFINE_NEEDED:
            suggestion = click.prompt(
                "Enter suggestion to help the translator refine the translation"
            )
            return ReviewDecision(outcome, suggestion)
        return ReviewDecision(outcome)

    def _render(self, entity: LocalizationEntity, context: ReviewContext) -> Panel:
        body = Text()
        if context.global_context:
            body.append("Context:\n", style="bold")
            body.append(f"{context.global_context}\n\n")
        body.append(f"{entity.source_language} (Source)\n", style="yellow")
        body.append(f"{entity.source_text}\n")

        comments = entity.all_comments
        if comments:
            body.append("\nNotes:\n", style="bold")
            for comment in comments:
                body.append(f"• {comment}\n")

        for language in entity.target_languages:
            target = entity.target(language)
            body.append("\n")
            if target.skip:
                body.append(f"{language} [Skipped]\n", style="dim")
            else:
                body.append(f"{language}\n", style="green")
            body.append(f"{target.value or ''}\n")

        return Panel(
            body,
            title=Text(f"[{context.position}/{context.total}] Reviewing {entity.key}"),
            title_align="left",
        )
