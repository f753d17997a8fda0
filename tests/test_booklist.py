import pytest

from booklist.core.booklist import BookList
from booklist.core.models import Book
from booklist.core.textio import BookReader, format_book

from conftest import make_list


def test_new_list_is_empty():
    books = BookList(5)
    assert len(books) == 0
    assert books.capacity == 5
    assert list(books) == []


def test_zero_capacity():
    books = BookList(0)
    books.read_from('"1", "T", "A", 1.0')
    assert len(books) == 0


def test_negative_capacity_raises():
    with pytest.raises(ValueError):
        BookList(-1)


def test_read_from_keeps_order(books, records):
    result = BookList(5)
    result.read_from(records)
    assert len(result) == 3
    assert list(result) == books


def test_read_from_stops_at_capacity(books, records):
    result = BookList(2)
    reader = result.read_from(records)
    assert len(result) == 2
    assert list(result) == books[:2]
    # The dropped record is still there for the caller.
    assert reader.read_book() == books[2]


def test_read_from_stops_at_malformed_record(books):
    text = format_book(books[0]) + "\n" + format_book(books[1]) + '\n"bad, "T", "A", 1.0\n'
    text += format_book(books[2])
    result = BookList(5)
    reader = result.read_from(text)
    assert len(result) == 2
    assert list(result) == books[:2]
    assert not reader


def test_read_from_lowers_previous_size(books, records):
    result = BookList(5)
    result.read_from(records)
    result.read_from(format_book(books[2]))
    assert len(result) == 1
    assert result[0] == books[2]


def test_read_from_accepts_reader(books, records):
    reader = BookReader(records)
    first = BookList(1)
    rest = BookList(5)
    first.read_from(reader)
    rest.read_from(reader)
    assert list(first) == books[:1]
    assert list(rest) == books[1:]


def test_getitem_returns_copy(books):
    result = make_list(3, *books)
    copy = result[0]
    copy.title = "Changed"
    assert result[0] == books[0]


def test_find(books):
    result = make_list(5, *books)
    assert result.find(books[1]) == 1
    assert result.find(Book("0", "Missing", "Nobody", 1.0)) == len(result)


def test_find_returns_first_match(books):
    result = make_list(5, books[0], books[1], books[0])
    assert result.find(books[0]) == 0


def test_find_compares_price_exactly():
    cheap = Book("1", "Title", "Author", 9.99)
    near = Book("1", "Title", "Author", 9.99005)
    result = make_list(3, cheap, near)

    assert cheap == near
    assert result.find(near) == 1
    assert result.find(cheap) == 0
    assert result.find(Book("1", "Title", "Author", 9.99001)) == len(result)


def test_extend_appends_in_order(books):
    left = make_list(5, books[0])
    right = make_list(5, books[1], books[2])
    left.extend(right)
    assert list(left) == [books[0], books[1], books[2]]
    assert len(right) == 2


def test_iadd_truncates_at_capacity(books):
    left = make_list(3, books[0])
    right = make_list(5, books[1], books[2], books[0], books[1])
    result = left
    left += right
    assert left is result
    assert len(left) == left.capacity == 3
    assert list(left) == [books[0], books[1], books[2]]


def test_iadd_onto_full_list(books):
    left = make_list(1, books[0])
    left += make_list(2, books[1])
    assert list(left) == [books[0]]


def test_format_two_books(books):
    text = make_list(3, books[0], books[1]).format()
    lines = text.split("\n")
    assert lines[0] == ""
    assert lines[1:] == [
        "    0:  " + format_book(books[0]),
        "    1:  " + format_book(books[1]),
    ]


def test_str_is_format(books):
    result = make_list(3, *books)
    assert str(result) == result.format()
    assert BookList(2).format() == ""


def test_load_file(tmp_path, books, records):
    path = tmp_path / "books.txt"
    path.write_text(records)
    result = BookList(5)
    result.load_file(path)
    assert list(result) == books


def test_load_file_stops_at_capacity(tmp_path, books, records):
    path = tmp_path / "books.txt"
    path.write_text(records)
    result = BookList(2)
    result.load_file(str(path))
    assert list(result) == books[:2]


def test_load_file_stops_at_malformed_record(tmp_path, books):
    path = tmp_path / "books.txt"
    path.write_text(format_book(books[0]) + '\n"2", "unterminated, "A", 1.0\n')
    result = BookList(5)
    result.load_file(path)
    assert list(result) == books[:1]


def test_load_missing_file_gives_empty_list(tmp_path, books):
    result = make_list(5, *books)
    result.load_file(tmp_path / "nonexistent.txt")
    assert len(result) == 0


def test_save_and_load(tmp_path, books):
    path = tmp_path / "out" / "books.txt"
    make_list(5, *books).save_file(path)
    assert path.read_text().splitlines()[0] == format_book(books[0])

    loaded = BookList.from_file(path, capacity=5)
    assert list(loaded) == books


def test_load_file_with_undecodable_bytes(tmp_path):
    path = tmp_path / "books.txt"
    path.write_bytes(b'"1", "T", "A", 1.0\n"2", "Caf\xe9", "A", 2.0\n')
    result = BookList(5)
    result.load_file(path)
    assert len(result) == 2
    assert result[0] == Book("1", "T", "A", 1.0)
    assert result[1].title == "Caf\ufffd"


def test_load_file_with_undecodable_bytes_in_first_record(tmp_path):
    path = tmp_path / "books.txt"
    path.write_bytes(b'"\xff\xfe", "T", "A", 1.0\n')
    result = BookList(5)
    result.load_file(path)
    assert len(result) == 1
    assert result[0].isbn == "\ufffd\ufffd"
