import logging
from typing import List, Optional

import httpx

from bookstore.book import Book
from bookstore.config import Settings

logger = logging.getLogger(__name__)


class BooksAPIError(Exception):
    """Any failure talking to the books API: transport, non-2xx status or a malformed body."""


class BooksAPIClient:
    """Async client for the ``/books`` collection endpoints.

    Every non-2xx response is a failure; error bodies are not parsed.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        limits = httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0
        )

        timeout = httpx.Timeout(
            timeout=settings.http_timeout,
            connect=min(5.0, settings.http_timeout),
        )

        self.base_url = settings.api_base_url
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            limits=limits,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        logger.debug("%s %s%s", method, self.base_url, path)
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise BooksAPIError(f"{method} {path} returned HTTP {exc.response.status_code}") from exc
        except httpx.RequestError as exc:
            raise BooksAPIError(f"{method} {path} failed: {exc}") from exc
        return response

    @staticmethod
    def _decode_book(response: httpx.Response) -> Optional[Book]:
        # The write already succeeded; an odd echo body does not undo that
        try:
            return Book.from_dict(response.json())
        except (ValueError, KeyError, TypeError):
            logger.warning("Could not decode book from %s %s response", response.request.method, response.request.url)
            return None

    async def list_books(self) -> List[Book]:
        response = await self._request("GET", "/books")
        try:
            data = response.json()
            if not isinstance(data, list):
                raise TypeError(f"expected a JSON array, got {type(data).__name__}")
            return [Book.from_dict(item) for item in data]
        except (ValueError, KeyError, TypeError) as exc:
            raise BooksAPIError("Malformed book list in API response") from exc

    async def create_book(self, payload: dict) -> Optional[Book]:
        response = await self._request("POST", "/books", json=payload)
        return self._decode_book(response)

    async def update_book(self, book_id: int, payload: dict) -> Optional[Book]:
        response = await self._request("PUT", f"/books/{book_id}", json=payload)
        return self._decode_book(response)

    async def delete_book(self, book_id: int) -> None:
        await self._request("DELETE", f"/books/{book_id}")

    async def close(self):
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
