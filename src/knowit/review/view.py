"""Review screens for cached correct answers."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, VerticalScroll
from textual.widgets import Footer, Static

from ..cache import AnswerCache, CachedAnswer, StorageResult
from ..quiz.labels import category_style


def count_label(count: int) -> str:
    if count == 0:
        return "No correct answers cached"
    if count == 1:
        return "1 correct answer cached"
    return f"{count} correct answers cached"


def format_saved_at(saved_at: int) -> str:
    try:
        return datetime.fromtimestamp(saved_at / 1000).strftime(
            "%d/%m/%Y %H:%M"
        )
    except (OverflowError, OSError, ValueError):
        return "—"


def answer_text(item: CachedAnswer) -> Text:
    """Rich rendering of one cached answer, shared by both review screens."""

    style = category_style(item.category)
    text = Text.assemble((f" {style.label} ", style.style))
    if item.difficulty:
        text.append(f"  {item.difficulty}", style="dim")
    text.append(f"  {format_saved_at(item.saved_at)}\n", style="dim")
    text.append(item.question + "\n", style="bold")
    text.append(f"— {item.correct_answer}", style="green")
    return text


def render_review_table(console: Console, items: Sequence[CachedAnswer]) -> None:
    console.print(Text(count_label(len(items)), style="bold"))
    if not items:
        console.print(
            "[dim]Nothing to review yet. Play a session and answer correctly "
            "to fill this list.[/]"
        )
        return
    table = Table(box=box.SIMPLE, expand=True)
    table.add_column("Saved", style="dim", no_wrap=True)
    table.add_column("Category")
    table.add_column("Question", overflow="fold")
    table.add_column("Answer", style="green")
    for item in items:
        style = category_style(item.category)
        table.add_row(
            format_saved_at(item.saved_at),
            Text(style.label, style=style.style),
            item.question,
            item.correct_answer,
        )
    console.print(table)


class ReviewApp(App):
    CSS = """
#count { text-style: bold; padding: 0 1; }
#confirm { color: $warning; padding: 0 1; }
.answer { border: round $primary; padding: 0 1; margin: 0 0 1 0; }
"""
    BINDINGS = [
        ("c", "clear", "Clear history"),
        ("q", "quit", "Quit"),
    ]

    def __init__(self, cache: AnswerCache):
        super().__init__()
        self._cache = cache
        self._items: List[CachedAnswer] = cache.load_all()
        self._pending_clear = False
        self.last_result: Optional[StorageResult] = None

    @property
    def items(self) -> List[CachedAnswer]:
        return list(self._items)

    def compose(self) -> ComposeResult:
        yield Static(count_label(len(self._items)), id="count")
        yield Static("", id="confirm")
        with VerticalScroll(id="items"):
            yield from self._item_widgets()
        with Container(id="footer"):
            yield Footer()

    def _item_widgets(self) -> List[Static]:
        if not self._items:
            return [
                Static(
                    "Nothing to review yet. Play a session and answer "
                    "correctly to fill this list.",
                    id="empty",
                )
            ]
        return [
            Static(answer_text(item), classes="answer") for item in self._items
        ]

    def request_clear(self) -> bool:
        """First call arms the confirmation, second call clears.

        Returns ``True`` once the history has actually been cleared.
        """

        if not self._items:
            return False
        if not self._pending_clear:
            self._pending_clear = True
            self._set_confirm("Press c again to clear the history.")
            return False
        self._pending_clear = False
        result = self._cache.clear()
        self.last_result = result
        if result.is_ok:
            self._items = []
            self._set_confirm("")
        else:
            self._set_confirm(f"Could not clear the history ({result.reason}).")
        self._refresh()
        return result.is_ok

    def action_clear(self) -> None:
        self.request_clear()

    def _set_confirm(self, message: str) -> None:
        try:
            self.query_one("#confirm", Static).update(message)
        except Exception:
            pass

    def _refresh(self) -> None:
        try:
            self.query_one("#count", Static).update(count_label(len(self._items)))
            container = self.query_one("#items", VerticalScroll)
        except Exception:
            return
        container.remove_children()
        container.mount(*self._item_widgets())
