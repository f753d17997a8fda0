"""Read and write book records as quoted comma-separated text.

A record looks like::

    "9789998287532", "Over in the Meadow", "Ezra Jack Keats", 91.11

String fields are double-quoted, with an embedded quote written twice.
Records are separated by any whitespace, usually one per line.
"""

from __future__ import annotations

import re
from typing import TextIO

import structlog

from .models import Book

log = structlog.get_logger()

QUOTE = '"'
DELIMITER = ",  "

_NUMBER = re.compile(
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)",
    re.IGNORECASE,
)


class RecordSyntaxError(ValueError):
    """A record could not be parsed at ``offset``."""

    def __init__(self, message: str, offset: int) -> None:
        super().__init__(f"{message} at offset {offset}")
        self.offset = offset


def quote(value: str) -> str:
    return QUOTE + value.replace(QUOTE, QUOTE * 2) + QUOTE


def _format_price(price: float) -> str:
    # Short form like "10" or "91.11" unless that would lose precision.
    text = f"{price:g}"
    if float(text) != price:
        text = repr(float(price))
    return text


def format_book(book: Book) -> str:
    """Render one record, fields separated by a comma and two spaces."""
    return DELIMITER.join(
        [
            quote(book.isbn),
            quote(book.title),
            quote(book.author),
            _format_price(book.price),
        ]
    )


class BookReader:
    """A text stream of book records.

    Works like an input stream: it stays truthy until a read fails, and once
    failed every further read returns ``None``. A failed read leaves the
    position where the bad record started.
    """

    def __init__(self, source: str | TextIO) -> None:
        self.text = source if isinstance(source, str) else source.read()
        self.pos = 0
        self.failed = False

    def __bool__(self) -> bool:
        return not self.failed

    @property
    def at_end(self) -> bool:
        return self.text[self.pos :].strip() == ""

    def read_book(self) -> Book | None:
        """Parse the next record, or return ``None`` and mark the reader failed."""
        if self.failed:
            return None

        start = self.pos
        try:
            isbn = self._quoted()
            self._comma()
            title = self._quoted()
            self._comma()
            author = self._quoted()
            self._comma()
            price = self._number()
        except RecordSyntaxError as e:
            self.pos = start
            self.failed = True
            log.debug("record_parse_failed", offset=e.offset, error=str(e))
            return None

        return Book(isbn=isbn, title=title, author=author, price=price)

    def _skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _quoted(self) -> str:
        self._skip_whitespace()
        if self.pos >= len(self.text):
            raise RecordSyntaxError("unexpected end of input", self.pos)
        if self.text[self.pos] != QUOTE:
            raise RecordSyntaxError("expected opening quote", self.pos)

        opened_at = self.pos
        self.pos += 1
        chars: list[str] = []
        while self.pos < len(self.text):
            ch = self.text[self.pos]
            if ch == QUOTE:
                if self.text.startswith(QUOTE * 2, self.pos):
                    chars.append(QUOTE)
                    self.pos += 2
                    continue
                self.pos += 1
                return "".join(chars)
            chars.append(ch)
            self.pos += 1
        raise RecordSyntaxError("unterminated quoted field", opened_at)

    def _comma(self) -> None:
        self._skip_whitespace()
        if self.pos >= len(self.text) or self.text[self.pos] != ",":
            raise RecordSyntaxError("expected ','", self.pos)
        self.pos += 1

    def _number(self) -> float:
        self._skip_whitespace()
        match = _NUMBER.match(self.text, self.pos)
        if not match:
            raise RecordSyntaxError("expected a number", self.pos)
        self.pos = match.end()
        return float(match.group())


def read_book(reader: BookReader) -> Book | None:
    return reader.read_book()


def parse_book(text: str) -> Book | None:
    """Parse a single record from ``text``."""
    return BookReader(text).read_book()
