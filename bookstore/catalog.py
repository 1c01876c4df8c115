import dataclasses
import enum
import logging
from typing import Callable, List, Optional

from .book import Book, BookDraft
from .services.http_client import BooksAPIClient, BooksAPIError
from .validators import DraftValidationError, DraftValidator

logger = logging.getLogger(__name__)

LOAD_FAILED_MESSAGE = "Failed to load books. Make sure API is running."
SAVE_FAILED_MESSAGE = "Failed to save book"
DELETE_FAILED_MESSAGE = "Failed to delete book"
DELETE_CONFIRM_PROMPT = "Are you sure you want to delete this book?"


class FormState(enum.Enum):
    CLOSED = "closed"
    CREATING = "creating"
    EDITING = "editing"


class FormStateError(RuntimeError):
    """Raised when a form operation is used in a state that does not allow it."""


Listener = Callable[["Catalog"], None]


class Catalog:
    """Client-side state for the book catalog and the flows that change it.

    Holds the last fetched list of books, the form (state + draft), a busy flag
    and a single error banner. Every mutation is one API call followed by a full
    re-fetch, issued only after the mutation's response has arrived. While busy,
    further load/submit/delete calls are rejected without touching the network.
    """

    _draft_fields = frozenset(f.name for f in dataclasses.fields(BookDraft))

    def __init__(self, client: BooksAPIClient) -> None:
        self.client = client
        self.books: List[Book] = []
        self.error: str = ""
        self.busy: bool = False
        self.form_state: FormState = FormState.CLOSED
        self.draft: BookDraft = BookDraft()
        self.editing: Optional[Book] = None
        self._listeners: List[Listener] = []

    # ------------------------- Observers ------------------------- #
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every state change. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------- Queries ------------------------- #
    @property
    def form_title(self) -> str:
        return "Edit Book" if self.form_state is FormState.EDITING else "Add New Book"

    @property
    def submit_label(self) -> str:
        return "Update" if self.form_state is FormState.EDITING else "Create"

    def find_book(self, book_id: int) -> Optional[Book]:
        for book in self.books:
            if book.id == book_id:
                return book
        return None

    # ------------------------- Busy guard ------------------------- #
    def _acquire(self, action: str) -> bool:
        if self.busy:
            logger.warning("Ignoring %s: another request is still in progress", action)
            return False
        self.busy = True
        self._notify()
        return True

    def _release(self) -> None:
        self.busy = False
        self._notify()

    def _set_error(self, message: str) -> None:
        self.error = message
        self._notify()

    # ------------------------- Catalog loader ------------------------- #
    async def start(self) -> bool:
        """Initial fetch, run once when the client comes up."""
        return await self.load()

    async def load(self) -> bool:
        if not self._acquire("load"):
            return False
        try:
            return await self._refresh()
        finally:
            self._release()

    async def _refresh(self) -> bool:
        try:
            books = await self.client.list_books()
        except BooksAPIError as exc:
            logger.error("Loading books failed: %s", exc, exc_info=logger.isEnabledFor(logging.DEBUG))
            self._set_error(LOAD_FAILED_MESSAGE)
            return False
        self.books = books
        self.error = ""
        self._notify()
        return True

    # ------------------------- Form state machine ------------------------- #
    def open_create(self) -> None:
        self.form_state = FormState.CREATING
        self.editing = None
        self.draft = BookDraft()
        self._notify()

    def open_edit(self, book: Book) -> None:
        self.form_state = FormState.EDITING
        self.editing = book
        self.draft = BookDraft.from_book(book)
        self._notify()

    def update_draft(self, **fields: str) -> None:
        if self.form_state is FormState.CLOSED:
            raise FormStateError("Cannot edit the draft while the form is closed")
        for name, value in fields.items():
            if name not in self._draft_fields:
                raise AttributeError(f"BookDraft has no field '{name}'")
            setattr(self.draft, name, value)
        self._notify()

    def cancel(self) -> None:
        self._reset_form()
        self._notify()

    def _reset_form(self) -> None:
        self.form_state = FormState.CLOSED
        self.editing = None
        self.draft = BookDraft()

    # ------------------------- Mutations ------------------------- #
    async def submit(self) -> bool:
        """Create or update from the current draft.

        Editing an existing record sends PUT /books/{id}; otherwise POST /books.
        On failure the form stays open with the draft untouched.
        """
        if self.form_state is FormState.CLOSED:
            raise FormStateError("Cannot submit while the form is closed")
        if self.busy:
            logger.warning("Ignoring submit: another request is still in progress")
            return False

        try:
            payload = DraftValidator.to_payload(self.draft)
        except DraftValidationError as exc:
            logger.info("Draft rejected: %s", exc)
            self._set_error(str(exc))
            return False

        if not self._acquire("submit"):
            return False
        try:
            try:
                if self.form_state is FormState.EDITING and self.editing is not None:
                    await self.client.update_book(self.editing.id, payload)
                else:
                    await self.client.create_book(payload)
            except BooksAPIError as exc:
                logger.error("Saving book failed: %s", exc, exc_info=logger.isEnabledFor(logging.DEBUG))
                self._set_error(SAVE_FAILED_MESSAGE)
                return False

            # A failed refresh keeps its own banner; the write itself went through
            await self._refresh()
            self._reset_form()
            self._notify()
            return True
        finally:
            self._release()

    async def delete(self, book_id: int, confirm: Callable[[str], bool]) -> bool:
        """Delete a record after ``confirm(DELETE_CONFIRM_PROMPT)`` agrees."""
        if self.busy:
            logger.warning("Ignoring delete: another request is still in progress")
            return False
        if not confirm(DELETE_CONFIRM_PROMPT):
            logger.debug("Delete of book %s cancelled", book_id)
            return False

        if not self._acquire("delete"):
            return False
        try:
            try:
                await self.client.delete_book(book_id)
            except BooksAPIError as exc:
                logger.error("Deleting book %s failed: %s", book_id, exc, exc_info=logger.isEnabledFor(logging.DEBUG))
                self._set_error(DELETE_FAILED_MESSAGE)
                return False

            await self._refresh()
            return True
        finally:
            self._release()
