import asyncio
import logging
from dataclasses import asdict
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from .catalog import Catalog, FormState
from .config import Settings, get_settings
from .services.http_client import BooksAPIClient
from .ui_helpers import get_output_mode, print_catalog, print_form, set_output_mode

logger = logging.getLogger(__name__)

console = Console()

app = typer.Typer(help="Bookstore Manager: manage a remote book catalog")

_settings: Optional[Settings] = None


def current_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings


def make_client(settings: Settings) -> BooksAPIClient:
    """Client factory; tests swap this for one backed by a mock transport."""
    return BooksAPIClient(settings)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _finish(catalog: Catalog) -> None:
    print_catalog(catalog)
    if catalog.error:
        raise typer.Exit(code=1)


def _log_state(catalog: Catalog) -> None:
    logger.debug(
        "catalog state: busy=%s form=%s books=%d error=%r",
        catalog.busy, catalog.form_state.value, len(catalog.books), catalog.error,
    )


async def _with_catalog(action) -> Catalog:
    """Open a client, run the initial fetch, then ``action(catalog)`` if given."""
    async with make_client(current_settings()) as client:
        catalog = Catalog(client)
        catalog.subscribe(_log_state)
        await catalog.start()
        if action is not None:
            await action(catalog)
        return catalog


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    base_url: Optional[str] = typer.Option(None, "--base-url", help="Books API base URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global options for the CLI (output mode, API location, logging)."""
    global _settings
    try:
        _settings = get_settings(api_base_url=base_url)
    except ValueError as e:
        print(f"Configuration error: {e}")
        raise typer.Exit(code=2)
    configure_logging("DEBUG" if verbose else _settings.log_level)
    if output:
        try:
            set_output_mode(output)
        except ValueError as e:
            raise typer.BadParameter(str(e), param_hint="--output")
    elif _settings.output_mode in ("plain", "json", "rich"):
        set_output_mode(_settings.output_mode)
    if ctx.invoked_subcommand is None:
        run_menu()


@app.command("list")
def cli_list():
    """Fetch the catalog and show every book."""
    catalog = asyncio.run(_with_catalog(None))
    _finish(catalog)


@app.command("add")
def cli_add(
    title: str = typer.Option(..., "--title", "-t", prompt=True, help="Book title"),
    author: str = typer.Option(..., "--author", "-a", prompt=True, help="Author name"),
    isbn: str = typer.Option(..., "--isbn", "-i", prompt=True, help="ISBN (digits only)"),
):
    """Create a new book."""

    async def action(catalog: Catalog) -> None:
        catalog.open_create()
        catalog.update_draft(title=title, author=author, isbn=isbn)
        if await catalog.submit():
            print(f"Successfully added: {title} by {author}")

    _finish(asyncio.run(_with_catalog(action)))


@app.command("edit")
def cli_edit(
    book_id: int = typer.Argument(..., help="Id of the book to edit"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    author: Optional[str] = typer.Option(None, "--author", "-a", help="New author"),
    isbn: Optional[str] = typer.Option(None, "--isbn", "-i", help="New ISBN"),
):
    """Update an existing book; fields not given keep their current value."""
    missing = []

    async def action(catalog: Catalog) -> None:
        book = catalog.find_book(book_id)
        if book is None:
            missing.append(book_id)
            return
        catalog.open_edit(book)
        changes = {k: v for k, v in {"title": title, "author": author, "isbn": isbn}.items() if v is not None}
        catalog.update_draft(**changes)
        if await catalog.submit():
            print(f"Book with id {book_id} has been updated.")

    catalog = asyncio.run(_with_catalog(action))
    if missing and not catalog.error:
        print(f"Book with id {book_id} not found.")
        raise typer.Exit(code=1)
    _finish(catalog)


@app.command("delete")
def cli_delete(
    book_id: int = typer.Argument(..., help="Id of the book to delete"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a book after confirmation."""

    def confirm(prompt: str) -> bool:
        return yes or typer.confirm(prompt, default=False)

    async def action(catalog: Catalog) -> None:
        if catalog.error:
            return
        if await catalog.delete(book_id, confirm):
            print(f"Book with id {book_id} has been deleted.")
        elif not catalog.error:
            print("Delete cancelled.")

    _finish(asyncio.run(_with_catalog(action)))


@app.command("config")
def cli_config():
    """Show the effective settings."""
    for key, value in asdict(current_settings()).items():
        print(f"{key}: {value}")


@app.command("menu")
def cli_menu():
    """Interactive catalog browser."""
    run_menu()


# --- Interactive menu ---
def _prompt_draft(catalog: Catalog) -> None:
    draft = catalog.draft
    catalog.update_draft(
        title=Prompt.ask("Title", default=draft.title or None) or "",
        author=Prompt.ask("Author", default=draft.author or None) or "",
        isbn=Prompt.ask("ISBN", default=draft.isbn or None) or "",
    )


async def _form_loop(catalog: Catalog) -> None:
    """Keep the form open until it is submitted successfully or cancelled."""
    while catalog.form_state is not FormState.CLOSED:
        print_form(catalog)
        _prompt_draft(catalog)
        action = Prompt.ask(catalog.submit_label, choices=["save", "cancel"], default="save")
        if action == "cancel":
            catalog.cancel()
            return
        await catalog.submit()
        if catalog.error:
            console.print(f"[bold red]{escape(catalog.error)}[/]")


def _ask_book(catalog: Catalog):
    book_id = IntPrompt.ask("Book id")
    book = catalog.find_book(book_id)
    if book is None:
        console.print(f"[yellow]Book with id {book_id} not found.[/]")
    return book


def _render_menu() -> None:
    menu_items = [
        ("1", "Add book"),
        ("2", "Edit book"),
        ("3", "Delete book"),
        ("4", "Refresh"),
        ("0", "Quit"),
    ]

    table = Table.grid(padding=(0, 2))
    table.add_column(justify="right", style="bold cyan", width=4)
    table.add_column(justify="left", style="white")
    for key, label in menu_items:
        table.add_row(f"[reverse]{key}[/]", label)

    console.print(Panel(
        table,
        title=current_settings().app_name,
        border_style="cyan",
        box=box.HEAVY,
        padding=(1, 2),
    ))


async def _menu(catalog: Catalog) -> None:
    while True:
        print_catalog(catalog)
        _render_menu()
        choice = Prompt.ask("Choose an option", choices=["1", "2", "3", "4", "0"], default="4")

        if choice == "1":
            catalog.open_create()
            await _form_loop(catalog)
        elif choice == "2":
            book = _ask_book(catalog)
            if book is not None:
                catalog.open_edit(book)
                await _form_loop(catalog)
        elif choice == "3":
            book = _ask_book(catalog)
            if book is not None:
                await catalog.delete(book.id, lambda prompt: Confirm.ask(prompt, default=False))
        elif choice == "4":
            with console.status("Loading books..."):
                await catalog.load()
        elif choice == "0":
            console.print("[green]Goodbye![/]")
            break
        print()


def run_menu() -> None:
    """Interactive loop mirroring the single-page view: grid, banner, form."""
    if get_output_mode() == "json":
        set_output_mode("rich")
    asyncio.run(_with_catalog(_menu))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
