import pytest

from booklist.core.booklist import BookList
from booklist.core.models import Book
from booklist.core.textio import format_book


def make_list(capacity, *books):
    """Build a list holding ``books`` by reading their formatted records."""
    result = BookList(capacity)
    result.read_from("\n".join(format_book(b) for b in books))
    return result


@pytest.fixture
def books():
    return [
        Book("9789998287532", "Over in the Meadow", "Ezra Jack Keats", 91.11),
        Book("9780062315007", "The Alchemist", "Paulo Coelho", 14.99),
        Book("9780439139601", 'The "Goblet" of Fire', "J. K. Rowling", 12.5),
    ]


@pytest.fixture
def records(books):
    return "\n".join(format_book(b) for b in books) + "\n"
