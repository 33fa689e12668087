"""
FastAPI main application for the Library Books API.
"""

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.config import APIConfig, config as api_config
from api.database import BookRepository, MongoBookRepository
from api.models import Book, ErrorResponse, HealthResponse, ValidationFailure
from api.validation import BookValidator, duplicate_isbn_failure
from utilities.logger import get_logger, setup_logging

# Setup logging
logger = get_logger(__name__)

router = APIRouter()


def get_repository(request: Request) -> BookRepository:
    """Repository the application was built with."""
    return request.app.state.repository


def get_validator(request: Request) -> BookValidator:
    """Validator the application was built with."""
    return request.app.state.validator


def validation_problem(failures: List[ValidationFailure]) -> JSONResponse:
    """Render validation failures as a 400 response."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=[failure.to_response() for failure in failures]
    )


def book_not_found(isbn: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Book with ISBN '{isbn}' not found"
    )


def _property_name(loc) -> str:
    """PascalCase property name for a request validation error location."""
    if len(loc) < 2 or isinstance(loc[-1], int):
        return "Body"
    name = str(loc[-1])
    if "_" in name:
        return "".join(part.capitalize() for part in name.split("_"))
    return name[:1].upper() + name[1:]


# Books endpoints
@router.post(
    "/books",
    response_model=Book,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"description": "Validation errors as [{PropertyName, ErrorMessage}]"}},
    tags=["Books"]
)
async def create_book(
    book: Book,
    response: Response,
    repository: BookRepository = Depends(get_repository),
    validator: BookValidator = Depends(get_validator)
):
    """
    Create a book.

    Responds with the stored book and a `Location` header pointing at it.
    """
    failures = validator.validate(book)
    if failures:
        logger.info("Book rejected", isbn=book.isbn, failures=len(failures))
        return validation_problem(failures)

    if not await repository.create(book):
        return validation_problem([duplicate_isbn_failure()])

    logger.info("Book created", isbn=book.isbn)
    response.headers["Location"] = f"/books/{book.isbn}"
    return book


@router.get("/books", response_model=List[Book], tags=["Books"])
async def get_books(
    search_term: Optional[str] = Query(None, alias="searchTerm", description="Case-insensitive title filter"),
    repository: BookRepository = Depends(get_repository)
):
    """
    List books.

    - **searchTerm**: only return books whose title contains this text
    """
    if search_term is not None and search_term.strip():
        return await repository.search_by_title(search_term)
    return await repository.get_all()


@router.get(
    "/books/{isbn}",
    response_model=Book,
    responses={404: {"model": ErrorResponse}},
    tags=["Books"]
)
async def get_book(isbn: str, repository: BookRepository = Depends(get_repository)):
    """Get a single book by ISBN."""
    book = await repository.get_by_isbn(isbn)
    if book is None:
        raise book_not_found(isbn)
    return book


@router.put(
    "/books/{isbn}",
    response_model=Book,
    responses={
        400: {"description": "Validation errors as [{PropertyName, ErrorMessage}]"},
        404: {"model": ErrorResponse}
    },
    tags=["Books"]
)
async def update_book(
    isbn: str,
    book: Book,
    repository: BookRepository = Depends(get_repository),
    validator: BookValidator = Depends(get_validator)
):
    """
    Replace a book.

    The ISBN in the path identifies the book; any ISBN in the body is ignored.
    """
    book.isbn = isbn
    failures = validator.validate(book)
    if failures:
        logger.info("Book update rejected", isbn=isbn, failures=len(failures))
        return validation_problem(failures)

    if not await repository.update(book):
        raise book_not_found(isbn)

    logger.info("Book updated", isbn=isbn)
    return book


@router.delete(
    "/books/{isbn}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={404: {"model": ErrorResponse}},
    tags=["Books"]
)
async def delete_book(isbn: str, repository: BookRepository = Depends(get_repository)):
    """Delete a book by ISBN."""
    if not await repository.delete(isbn):
        raise book_not_found(isbn)

    logger.info("Book deleted", isbn=isbn)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Health check endpoint
@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(request: Request, repository: BookRepository = Depends(get_repository)):
    """Health check endpoint."""
    health_info = await repository.health_check()
    db_status = health_info.get("status", "unknown")

    return HealthResponse(
        status="healthy" if db_status == "healthy" else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=request.app.version,
        database_status=db_status
    )


# Exception handlers
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=exc.detail,
            status_code=exc.status_code
        ).model_dump(),
        headers=exc.headers
    )


async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report unparseable payloads in the same shape as ruleset failures."""
    failures = [
        ValidationFailure(property_name=_property_name(error["loc"]), error_message=error["msg"])
        for error in exc.errors()
    ]
    logger.info("Request rejected", path=request.url.path, failures=len(failures))
    return validation_problem(failures)


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions."""
    logger.error("Unhandled exception", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            detail=str(exc) if request.app.state.settings.debug else None,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        ).model_dump()
    )


async def log_requests(request: Request, call_next):
    """Log one event per handled request."""
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        "Request handled",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round((time.perf_counter() - started) * 1000, 2)
    )
    return response


def create_app(
    repository: Optional[BookRepository] = None,
    validator: Optional[BookValidator] = None,
    settings: Optional[APIConfig] = None
) -> FastAPI:
    """
    Build the API around a repository and a validator.

    Args:
        repository: Book store; a MongoDB repository built from settings when omitted
        validator: Ruleset applied before create and update
        settings: Configuration, the global config when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or api_config
    setup_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        debug=settings.debug
    )

    if repository is None:
        repository = MongoBookRepository(
            connection_url=settings.mongodb_url,
            database_name=settings.mongodb_database,
            collection_name=settings.mongodb_collection
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting Library Books API")
        try:
            await repository.connect()
        except Exception as e:
            logger.error("Failed to connect to database", error=str(e))
            raise

        yield

        logger.info("Shutting down Library Books API")
        await repository.disconnect()

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        license_info={
            "name": "MIT",
            "url": "https://opensource.org/licenses/MIT",
        },
        lifespan=lifespan
    )
    app.state.repository = repository
    app.state.validator = validator or BookValidator()
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )
    app.middleware("http")(log_requests)

    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    app.include_router(router)
    return app


app = create_app()

