import json
import os
from typing import List

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .book import Book
from .catalog import Catalog

# Environment variable to control CLI output mode
# Allowed values: 'plain' (default), 'json', 'rich'
OUTPUT_MODE_ENV = "BOOKSTORE_OUTPUT"
OUTPUT_MODES = ("plain", "json", "rich")

LOADING_MESSAGE = "Loading books..."
EMPTY_TITLE = "No books yet"
EMPTY_HINT = 'Run "add" to get started'

_console = Console()


def set_output_mode(mode: str) -> None:
    mode = (mode or "").lower().strip()
    if mode not in OUTPUT_MODES:
        raise ValueError(f"Unknown output mode '{mode}'. Use one of: {', '.join(OUTPUT_MODES)}")
    os.environ[OUTPUT_MODE_ENV] = mode


def get_output_mode() -> str:
    mode = os.environ.get(OUTPUT_MODE_ENV, "plain").lower()
    return mode if mode in OUTPUT_MODES else "plain"


def print_error_banner(message: str) -> None:
    if get_output_mode() == "rich":
        _console.print(Panel(escape(message), border_style="red", title="Error"))
    else:
        print(f"Error: {message}")


def _print_books(books: List[Book], mode: str) -> None:
    if mode == "rich":
        grid = Table.grid(padding=(0, 2))
        row = []
        for book in books:
            row.append(Panel(
                f"[bold]{escape(book.title)}[/]\n"
                f"by {escape(book.author)}\n"
                f"[dim]ISBN: {book.isbn}[/]",
                title=f"#{book.id}",
                border_style="blue",
                width=32,
            ))
            if len(row) == 3:
                grid.add_row(*row)
                row = []
        if row:
            grid.add_row(*row)
        _console.print(grid)
    else:
        for book in books:
            print(f"[{book.id}] {book.title} by {book.author} (ISBN: {book.isbn})")


def print_catalog(catalog: Catalog) -> None:
    """Print the catalog view according to the current output mode.
    - plain: banner line, then '[id] Title by Author (ISBN: n)' lines or the empty/loading text
    - json: the book array, or {"error": ...} when the banner is set
    - rich: banner panel plus a three-column grid of book cards
    """
    mode = get_output_mode()

    if mode == "json":
        if catalog.error:
            print(json.dumps({"error": catalog.error, "books": [b.to_dict() for b in catalog.books]}, ensure_ascii=False))
        else:
            print(json.dumps([b.to_dict() for b in catalog.books], ensure_ascii=False))
        return

    if catalog.error:
        print_error_banner(catalog.error)

    if not catalog.books:
        if catalog.busy:
            print(LOADING_MESSAGE)
        elif mode == "rich":
            _console.print(Panel.fit(f"[bold]{EMPTY_TITLE}[/]\n[dim]{escape(EMPTY_HINT)}[/]", border_style="blue"))
        else:
            print(EMPTY_TITLE)
            print(EMPTY_HINT)
        return

    _print_books(catalog.books, mode)


def print_form(catalog: Catalog) -> None:
    """Show the open form's header and current draft values."""
    draft = catalog.draft
    if get_output_mode() == "rich":
        _console.print(Panel.fit(
            f"[bold]Title:[/] {escape(draft.title)}\n"
            f"[bold]Author:[/] {escape(draft.author)}\n"
            f"[bold]ISBN:[/] {escape(draft.isbn)}",
            title=catalog.form_title,
            border_style="cyan",
        ))
    else:
        print(catalog.form_title)
        print(f"Title: {draft.title}")
        print(f"Author: {draft.author}")
        print(f"ISBN: {draft.isbn}")
