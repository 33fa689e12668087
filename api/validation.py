"""
Validation ruleset for incoming books.

Rules are plain data: the property they report on, a predicate over the
book, and the message used when the predicate fails. They run in declaration
order and every failing rule is reported.
"""

import re
from dataclasses import dataclass
from typing import Callable, List, Sequence

from api.models import Book, ValidationFailure

ISBN_13_PATTERN = re.compile(r"[0-9]{13}")

INVALID_ISBN_MESSAGE = "Value was not a valid ISBN-13"
DUPLICATE_ISBN_MESSAGE = "A book with this ISBN-13 already exists"

# Largest integer the document store can hold
MAX_PAGE_COUNT = 2 ** 63 - 1


def display_name(property_name: str) -> str:
    """Split a PascalCase property name into words: PageCount -> Page Count."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", property_name)


def not_empty_message(property_name: str) -> str:
    return f"'{display_name(property_name)}' must not be empty."


def greater_than_message(property_name: str, value) -> str:
    return f"'{display_name(property_name)}' must be greater than '{value}'."


def less_than_or_equal_message(property_name: str, value) -> str:
    return f"'{display_name(property_name)}' must be less than or equal to '{value}'."


@dataclass(frozen=True)
class Rule:
    """One field constraint."""
    property_name: str
    predicate: Callable[[Book], bool]
    message: str

    def check(self, book: Book) -> bool:
        return self.predicate(book)


def _has_text(value: str) -> bool:
    return bool(value and value.strip())


BOOK_RULES: List[Rule] = [
    Rule("Isbn", lambda book: ISBN_13_PATTERN.fullmatch(book.isbn) is not None, INVALID_ISBN_MESSAGE),
    Rule("Title", lambda book: _has_text(book.title), not_empty_message("Title")),
    Rule("ShortDescription", lambda book: _has_text(book.short_description), not_empty_message("ShortDescription")),
    Rule("PageCount", lambda book: book.page_count > 0, greater_than_message("PageCount", 0)),
    Rule(
        "PageCount",
        lambda book: book.page_count <= MAX_PAGE_COUNT,
        less_than_or_equal_message("PageCount", MAX_PAGE_COUNT)
    ),
    Rule("Author", lambda book: _has_text(book.author), not_empty_message("Author")),
]


def duplicate_isbn_failure() -> ValidationFailure:
    """Failure reported when the store already holds the book's ISBN."""
    return ValidationFailure(property_name="Isbn", error_message=DUPLICATE_ISBN_MESSAGE)


class BookValidator:
    """Evaluates a ruleset against a book."""

    def __init__(self, rules: Sequence[Rule] = BOOK_RULES):
        self.rules = list(rules)

    def validate(self, book: Book) -> List[ValidationFailure]:
        """
        Run every rule against the book.

        Args:
            book: Book to check

        Returns:
            Failures in rule order, empty when the book is valid
        """
        return [
            ValidationFailure(property_name=rule.property_name, error_message=rule.message)
            for rule in self.rules
            if not rule.check(book)
        ]
