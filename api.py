import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, List, Optional

from fastapi import Body, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from config import configure_logging, settings
from errors import InternalError, LibraryError, NotFoundError
from library import Library
from validators import run_create_chain, run_update_chain, validate_identifier

logger = logging.getLogger(__name__)


# --- Models ---
class BookModel(BaseModel):
    id: str
    isbn: str
    title: str
    author: str
    genre: str
    yearPublished: int


class HealthModel(BaseModel):
    status: str
    timestamp: str
    total_books: int


# --- Library access ---
_library_lock = threading.Lock()


def get_library(request: Request) -> Library:
    """Return the app's shared Library, creating it on first access."""
    app = request.app
    if app.state.library is None:
        with _library_lock:
            if app.state.library is None:
                app.state.library = Library()
    return app.state.library


# --- Error handlers ---
def register_error_handlers(app: FastAPI) -> None:

    @app.exception_handler(LibraryError)
    async def library_error_handler(request: Request, exc: LibraryError):
        if isinstance(exc, InternalError):
            logger.error(f"Internal error on {request.method} {request.url.path}: {exc.message}")
            return JSONResponse(status_code=exc.status_code, content={"error": "Internal Server Error"})
        logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(request: Request, exc: RequestValidationError):
        # Only an unparseable body gets here, the payload itself is checked by the chain.
        logger.error(f"Unreadable request payload on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled exception on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error"},
        )


# --- Routes ---
def register_routes(app: FastAPI) -> None:

    @app.get("/")
    def read_root():
        return {"message": "Library Management API is running..."}

    @app.get("/health", response_model=HealthModel)
    def health(library: Library = Depends(get_library)):
        """Lightweight health endpoint with the current record count."""
        return HealthModel(
            status="healthy",
            timestamp=datetime.now(timezone.utc).isoformat(),
            total_books=len(library),
        )

    @app.get("/books", response_model=List[BookModel])
    def get_books(library: Library = Depends(get_library)):
        """Retrieve all books."""
        return [BookModel(**b.to_dict()) for b in library.get_all()]

    @app.get("/books/{book_id}", response_model=BookModel)
    def get_book(book_id: str, library: Library = Depends(get_library)):
        """Retrieve a single book by its id."""
        validate_identifier(book_id)
        book = library.get_by_id(book_id)
        if not book:
            raise NotFoundError(book_id)
        return BookModel(**book.to_dict())

    @app.post("/books", response_model=BookModel, status_code=status.HTTP_201_CREATED)
    def create_book(payload: Any = Body(default=None), library: Library = Depends(get_library)):
        """Add a new book; its id is assigned by the server."""
        fields = run_create_chain(library, payload)
        book = library.create(fields)
        return BookModel(**book.to_dict())

    @app.put("/books/{book_id}", response_model=BookModel)
    def update_book(book_id: str, payload: Any = Body(default=None), library: Library = Depends(get_library)):
        """Replace every field of a book except its id."""
        fields = run_update_chain(library, book_id, payload)
        book = library.update(book_id, fields)
        if not book:
            raise NotFoundError(book_id)
        return BookModel(**book.to_dict())

    @app.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_book(book_id: str, library: Library = Depends(get_library)):
        """Delete a book by its id."""
        validate_identifier(book_id)
        if not library.delete(book_id):
            raise NotFoundError(book_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)


def create_app(library: Optional[Library] = None) -> FastAPI:
    """Build the API around ``library``, or around a Library created on first request."""
    configure_logging()

    app = FastAPI(title=settings.app_name, version=settings.app_version)
    app.state.library = library

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Request logging ---
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        logger.info(f"{request.method} {request.url.path}")
        if request.method in ("POST", "PUT") and logger.isEnabledFor(logging.DEBUG):
            body = await request.body()
            if body:
                logger.debug(f"Request body: {body.decode('utf-8', errors='replace')}")
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} - {duration_ms:.0f}ms")
        return response

    register_error_handlers(app)
    register_routes(app)
    return app


app = create_app()
