"""
Pytest configuration and shared fixtures.
"""

import random
from datetime import date
from typing import Dict, List, Optional
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from api.database import BookRepository
from api.main import create_app
from api.models import Book


class InMemoryBookRepository(BookRepository):
    """Dictionary-backed repository; insertion order is store order."""

    def __init__(self):
        self.books: Dict[str, Book] = {}

    async def create(self, book: Book) -> bool:
        if book.isbn in self.books:
            return False
        self.books[book.isbn] = book.model_copy()
        return True

    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        book = self.books.get(isbn)
        return book.model_copy() if book else None

    async def get_all(self) -> List[Book]:
        return [book.model_copy() for book in self.books.values()]

    async def search_by_title(self, search_term: str) -> List[Book]:
        term = search_term.lower()
        return [book.model_copy() for book in self.books.values() if term in book.title.lower()]

    async def update(self, book: Book) -> bool:
        if book.isbn not in self.books:
            return False
        self.books[book.isbn] = book.model_copy()
        return True

    async def delete(self, isbn: str) -> bool:
        return self.books.pop(isbn, None) is not None


def make_book(**overrides) -> Book:
    """Build a valid book with a random ISBN-13."""
    data = {
        "isbn": str(random.randint(10 ** 12, 10 ** 13 - 1)),
        "title": f"The Book of {uuid4().hex[:12]}",
        "short_description": "A short description of a made-up book.",
        "author": "Jane Doe",
        "page_count": random.randint(100, 500),
        "release_date": date(2019, 4, 23),
    }
    data.update(overrides)
    return Book(**data)


@pytest.fixture
def book_factory():
    """Factory for valid books."""
    return make_book


@pytest.fixture
def sample_book():
    """A single valid book."""
    return make_book(
        isbn="9780261103573",
        title="The Fellowship of the Ring",
        short_description="The first volume of The Lord of the Rings.",
        author="J. R. R. Tolkien",
        page_count=423,
        release_date=date(1954, 7, 29),
    )


@pytest.fixture
def repository():
    """Empty in-memory repository."""
    return InMemoryBookRepository()


@pytest.fixture
def client(repository):
    """Test client for an app backed by the in-memory repository."""
    app = create_app(repository=repository)
    with TestClient(app) as test_client:
        yield test_client
