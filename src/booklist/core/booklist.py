"""Fixed-capacity list of books."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterator, TextIO

import structlog

from .models import Book
from .textio import BookReader, format_book

log = structlog.get_logger()


class BookList:
    """An ordered list of books in storage allocated once at construction.

    Nothing is ever added past ``capacity``: bulk reads and concatenation
    stop quietly when the list is full, and a bad record ends a read. The
    only way to tell is ``len()``.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be non-negative, got {capacity}")
        self._capacity = capacity
        self._books = [Book() for _ in range(capacity)]
        self._size = 0

    @classmethod
    def from_file(cls, path: str | Path, capacity: int) -> BookList:
        books = cls(capacity)
        books.load_file(path)
        return books

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return self._size

    def __getitem__(self, index: int) -> Book:
        # Only [0, len) is meaningful; slots past the size hold stale books.
        return replace(self._books[index])

    def __iter__(self) -> Iterator[Book]:
        for i in range(self._size):
            yield replace(self._books[i])

    def __repr__(self) -> str:
        return f"BookList(size={self._size}, capacity={self._capacity})"

    def __str__(self) -> str:
        return self.format()

    def find(self, book: Book) -> int:
        """Return the position of the first exact match, or ``len(self)``.

        Prices are compared with ``==`` here, not with the tolerance that
        ``Book.__eq__`` uses, so two books that compare equal can still be
        told apart by ``find``.
        """
        for i in range(self._size):
            stored = self._books[i]
            if (
                stored.isbn == book.isbn
                and stored.title == book.title
                and stored.author == book.author
                and stored.price == book.price
            ):
                return i
        return self._size

    def extend(self, other: BookList) -> None:
        """Append books from ``other`` in order until this list is full."""
        i = 0
        while self._size < self._capacity and i < len(other):
            self._books[self._size] = other[i]
            self._size += 1
            i += 1
        if i < len(other):
            log.debug("booklist_truncated", dropped=len(other) - i, capacity=self._capacity)

    def __iadd__(self, other: BookList) -> BookList:
        self.extend(other)
        return self

    def read_from(self, source: BookReader | str | TextIO) -> BookReader:
        """Fill the list from ``source``, starting over at the first slot.

        Reading stops at the first record that fails to parse or when every
        slot is filled. Returns the reader so the caller can carry on from
        where the list stopped.
        """
        reader = source if isinstance(source, BookReader) else BookReader(source)
        counter = 0
        while reader and counter < self._capacity:
            book = reader.read_book()
            if book is None:
                break
            self._books[counter] = book
            counter += 1
            if counter > self._size:
                self._size = counter

        if counter < self._capacity:
            # Fewer books than slots, so the size is what was actually read.
            self._size = counter
        return reader

    def format(self) -> str:
        return "".join(
            f"\n{i:>5}:  {format_book(self._books[i])}" for i in range(self._size)
        )

    def load_file(self, path: str | Path) -> None:
        """Replace the contents with the books read from ``path``.

        A file that cannot be opened leaves the list empty.
        """
        try:
            # Undecodable bytes only spoil the record they sit in.
            with open(path, encoding="utf-8", errors="replace") as f:
                reader = BookReader(f)
        except OSError as e:
            log.warning("booklist_open_failed", path=str(path), error=str(e))
            self._size = 0
            return

        count = 0
        while count < self._capacity:
            book = reader.read_book()
            if book is None:
                break
            self._books[count] = book
            count += 1
        self._size = count
        log.debug("booklist_loaded", path=str(path), count=count, capacity=self._capacity)

    def save_file(self, path: str | Path) -> None:
        """Write one record per line, in the format ``load_file`` reads."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", encoding="utf-8") as f:
            for book in self:
                f.write(format_book(book) + "\n")
        log.info("booklist_written", path=str(path), books=self._size)
