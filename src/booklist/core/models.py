"""Data models for book records."""

from __future__ import annotations

from dataclasses import dataclass

# Prices are money, so two values within a hundredth of a cent are the same price.
EPSILON = 1.0e-4


@dataclass(eq=False)
class Book:
    isbn: str = ""
    title: str = ""
    author: str = ""
    price: float = 0.0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Book):
            return NotImplemented
        return (
            self.isbn == other.isbn
            and self.title == other.title
            and self.author == other.author
            and abs(self.price - other.price) < EPSILON
        )
