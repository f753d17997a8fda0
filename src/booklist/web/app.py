"""FastAPI web application for book lists."""

from __future__ import annotations

import os
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

import structlog
import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from ..core.booklist import BookList
from ..core.models import Book
from ..core.textio import format_book

load_dotenv()

log = structlog.get_logger()

VERSION = "0.1.0"
SESSION_TTL = 1800  # 30 minutes
MAX_SESSIONS = 500  # cap total sessions to bound memory
MAX_BODY_BYTES = 200_000  # ~200 KB max request body

DEFAULT_CAPACITY = int(os.environ.get("BOOKLIST_DEFAULT_CAPACITY", "100"))
MAX_CAPACITY = int(os.environ.get("BOOKLIST_MAX_CAPACITY", "10000"))


@dataclass
class Session:
    books: BookList
    created_at: float = field(default_factory=time.time)


# In-memory session store
sessions: dict[str, Session] = {}


def _clean_expired() -> None:
    now = time.time()
    expired = [sid for sid, s in sessions.items() if now - s.created_at > SESSION_TTL]
    for sid in expired:
        sessions.pop(sid, None)


def _get_session(session_id: str) -> Session | None:
    session = sessions.get(session_id)
    if not session:
        return None
    if time.time() - session.created_at > SESSION_TTL:
        sessions.pop(session_id, None)
        return None
    return session


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def _check_length(content_length: str | None) -> JSONResponse | None:
    if not content_length:
        return None
    if not content_length.isdigit():
        return _error("Invalid Content-Length header.", 400)
    if int(content_length) > MAX_BODY_BYTES:
        return _error("Request too large.", 413)
    return None


async def _read_body(request: Request) -> dict | JSONResponse:
    length_error = _check_length(request.headers.get("content-length"))
    if length_error is not None:
        return length_error
    try:
        body = await request.json()
    except ValueError:
        return _error("Request body must be JSON.", 400)
    if not isinstance(body, dict):
        return _error("Request body must be a JSON object.", 400)
    return body


def _list_view(session_id: str, books: BookList) -> dict:
    return {
        "session_id": session_id,
        "size": len(books),
        "capacity": books.capacity,
        "books": [
            {
                "isbn": b.isbn,
                "title": b.title,
                "author": b.author,
                "price": b.price,
            }
            for b in books
        ],
    }


app = FastAPI(title="Book List", docs_url=None, redoc_url=None)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": VERSION,
        "environment": os.environ.get("ENV", "dev"),
        "sessions_active": len(sessions),
    }


@app.post("/api/lists")
async def create_list(request: Request):
    body = await _read_body(request)
    if isinstance(body, JSONResponse):
        return body

    capacity = body.get("capacity", DEFAULT_CAPACITY)
    records = body.get("records", "")
    if not isinstance(capacity, int) or isinstance(capacity, bool):
        return _error("Capacity must be an integer.", 400)
    if not 0 <= capacity <= MAX_CAPACITY:
        return _error(f"Capacity must be between 0 and {MAX_CAPACITY}.", 400)
    if not isinstance(records, str):
        return _error("Records must be a string.", 400)

    _clean_expired()
    if len(sessions) >= MAX_SESSIONS:
        return _error("Server is busy. Please try again in a few minutes.", 503)

    books = BookList(capacity)
    books.read_from(records)

    session_id = uuid.uuid4().hex[:12]
    sessions[session_id] = Session(books=books)
    log.info("list_created", session_id=session_id, size=len(books), capacity=capacity)
    return _list_view(session_id, books)


@app.get("/api/lists/{session_id}")
async def get_list(session_id: str):
    s = _get_session(session_id)
    if not s:
        return _error("Session not found or expired.", 404)
    return _list_view(session_id, s.books)


@app.get("/api/lists/{session_id}/text")
async def list_text(session_id: str):
    s = _get_session(session_id)
    if not s:
        return _error("Session not found or expired.", 404)
    return PlainTextResponse(s.books.format())


@app.get("/api/lists/{session_id}/download")
async def download_list(session_id: str):
    s = _get_session(session_id)
    if not s:
        return _error("Session not found or expired.", 404)
    content = "".join(format_book(b) + "\n" for b in s.books)
    return Response(
        content=content.encode("utf-8"),
        media_type="text/plain",
        headers={"Content-Disposition": 'attachment; filename="booklist.txt"'},
    )


@app.post("/api/lists/{session_id}/find")
async def find_book(session_id: str, request: Request):
    s = _get_session(session_id)
    if not s:
        return _error("Session not found or expired.", 404)
    body = await _read_body(request)
    if isinstance(body, JSONResponse):
        return body

    try:
        book = Book(
            isbn=str(body.get("isbn", "")),
            title=str(body.get("title", "")),
            author=str(body.get("author", "")),
            price=float(body.get("price", 0.0)),
        )
    except (TypeError, ValueError):
        return _error("Price must be a number.", 400)

    position = s.books.find(book)
    return {"position": position, "found": position < len(s.books)}


@app.post("/api/lists/{session_id}/append")
async def append_books(session_id: str, request: Request):
    s = _get_session(session_id)
    if not s:
        return _error("Session not found or expired.", 404)
    body = await _read_body(request)
    if isinstance(body, JSONResponse):
        return body

    records = body.get("records", "")
    if not isinstance(records, str):
        return _error("Records must be a string.", 400)

    incoming = BookList(s.books.capacity)
    incoming.read_from(records)
    before = len(s.books)
    s.books += incoming
    log.info(
        "list_appended",
        session_id=session_id,
        received=len(incoming),
        appended=len(s.books) - before,
    )
    return _list_view(session_id, s.books)


def main():
    port = int(os.environ.get("PORT", "8000"))
    is_dev = os.environ.get("ENV", "dev") == "dev"
    uvicorn.run(
        "booklist.web.app:app",
        host="0.0.0.0",
        port=port,
        reload=is_dev,
    )
