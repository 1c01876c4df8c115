from typing import Optional

from .book import BookDraft


REQUIRED_FIELDS_MESSAGE = "All fields are required"
ISBN_NOT_NUMERIC_MESSAGE = "ISBN must be a number"


class DraftValidationError(ValueError):
    """Raised when a draft cannot be turned into a request payload."""


class DraftValidator:
    """Presence checks and ISBN parsing for form drafts.

    No schema validation is done beyond this: the server is the authority on
    what a valid record looks like.
    """

    @staticmethod
    def is_present(text: Optional[str]) -> bool:
        if text is None:
            return False
        return bool(text.strip())

    @staticmethod
    def parse_isbn(raw: str) -> int:
        s = (raw or "").strip()
        # int() accepts "1_000" and "+12"; an ISBN is digits only
        if not (s.isascii() and s.isdigit()):
            raise DraftValidationError(ISBN_NOT_NUMERIC_MESSAGE)
        try:
            return int(s)
        except ValueError as exc:
            # digit strings past sys.get_int_max_str_digits()
            raise DraftValidationError(ISBN_NOT_NUMERIC_MESSAGE) from exc

    @staticmethod
    def to_payload(draft: BookDraft) -> dict:
        """Validate the draft and return the ``{title, author, isbn}`` body.

        Blank-looking fields fail the presence check, but text is sent as typed.
        """
        if not all(DraftValidator.is_present(v) for v in (draft.title, draft.author, draft.isbn)):
            raise DraftValidationError(REQUIRED_FIELDS_MESSAGE)
        return {
            "title": draft.title,
            "author": draft.author,
            "isbn": DraftValidator.parse_isbn(draft.isbn),
        }
