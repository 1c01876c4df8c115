import asyncio
import json

import httpx
import pytest

from bookstore.catalog import Catalog
from bookstore.config import Settings
from bookstore.services.http_client import BooksAPIClient

BASE_URL = "http://books.test"


class FakeBooksAPI:
    """In-memory stand-in for the remote /books service, served through httpx.MockTransport."""

    def __init__(self, books=None):
        self.books = {b["id"]: dict(b) for b in (books or [])}
        self.next_id = max(self.books, default=0) + 1
        self.requests = []
        # method -> status code to answer with instead of handling the request
        self.fail = {}
        # method -> status code for the next such request only
        self.fail_once = {}
        # methods whose requests raise a transport error
        self.unreachable = set()
        # set to an asyncio.Event to suspend requests until it is set
        self.hold = None
        self.entered = None

    def calls(self, method=None):
        return [(r.method, r.url.path) for r in self.requests if method is None or r.method == method]

    def bodies(self, method):
        return [json.loads(r.content) for r in self.requests if r.method == method]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.hold is not None:
            self.entered.set()
            await self.hold.wait()
        if request.method in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if request.method in self.fail_once:
            return httpx.Response(self.fail_once.pop(request.method), text="boom")
        if request.method in self.fail:
            return httpx.Response(self.fail[request.method], text="boom")

        parts = request.url.path.strip("/").split("/")
        if parts[0] != "books":
            return httpx.Response(404)

        if len(parts) == 1:
            if request.method == "GET":
                return httpx.Response(200, json=sorted(self.books.values(), key=lambda b: b["id"]))
            if request.method == "POST":
                book = dict(json.loads(request.content), id=self.next_id)
                self.books[book["id"]] = book
                self.next_id += 1
                return httpx.Response(201, json=book)
            return httpx.Response(405)

        book_id = int(parts[1])
        if book_id not in self.books:
            return httpx.Response(404)
        if request.method == "PUT":
            book = dict(json.loads(request.content), id=book_id)
            self.books[book_id] = book
            return httpx.Response(200, json=book)
        if request.method == "DELETE":
            del self.books[book_id]
            return httpx.Response(204)
        return httpx.Response(405)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    # Code under test writes BOOKSTORE_OUTPUT; setenv makes sure it is restored
    monkeypatch.setenv("BOOKSTORE_OUTPUT", "plain")
    monkeypatch.setenv("BOOKSTORE_API_BASE_URL", BASE_URL)


@pytest.fixture
def api():
    return FakeBooksAPI([
        {"id": 1, "title": "Ulysses", "author": "James Joyce", "isbn": 9780199535675},
        {"id": 3, "title": "Sapiens", "author": "Yuval Noah Harari", "isbn": 9780099590088},
    ])


@pytest.fixture
def settings():
    return Settings(api_base_url=BASE_URL)


@pytest.fixture
def client(api, settings):
    client = BooksAPIClient(settings, transport=httpx.MockTransport(api.handler))
    yield client
    asyncio.run(client.close())


@pytest.fixture
def catalog(client):
    return Catalog(client)
