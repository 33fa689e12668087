"""
Book repository: the data-access layer behind the API.

`BookRepository` is the capability the endpoints depend on;
`MongoBookRepository` implements it over a MongoDB collection.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, DuplicateKeyError

from api.models import Book
from utilities.logger import get_logger

logger = get_logger(__name__)


class BookRepository(ABC):
    """CRUD operations over stored books, keyed by ISBN."""

    async def connect(self) -> None:
        """Open any resources the repository needs."""

    async def disconnect(self) -> None:
        """Release resources opened by connect()."""

    @abstractmethod
    async def create(self, book: Book) -> bool:
        """Store a new book. Returns False if the ISBN is already taken."""

    @abstractmethod
    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """Return the book with this ISBN, or None."""

    @abstractmethod
    async def get_all(self) -> List[Book]:
        """Return every book in store order."""

    @abstractmethod
    async def search_by_title(self, search_term: str) -> List[Book]:
        """Return books whose title contains the term, ignoring case."""

    @abstractmethod
    async def update(self, book: Book) -> bool:
        """Replace the stored book with the same ISBN. Returns False if absent."""

    @abstractmethod
    async def delete(self, isbn: str) -> bool:
        """Remove the book with this ISBN. Returns False if absent."""

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}


class MongoBookRepository(BookRepository):
    """
    Async MongoDB repository for books.
    Handles connection, indexing, and CRUD operations.
    """

    def __init__(self, connection_url: str, database_name: str, collection_name: str = "books"):
        """
        Initialize the repository.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
            collection_name: Name of the collection
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.collection_name = collection_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.collection: Optional[AsyncIOMotorCollection] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and make sure indexes exist."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]
            self.collection = self.database[self.collection_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB",
                        database=self.database_name,
                        collection=self.collection_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            self.client = None
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create the unique ISBN index and the title index used by search."""
        try:
            await self.collection.create_index("isbn", unique=True)
            await self.collection.create_index("title")
            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    @staticmethod
    def _to_book(document: Dict[str, Any]) -> Book:
        document.pop('_id', None)
        return Book(**document)

    async def create(self, book: Book) -> bool:
        """
        Insert a single book.

        Args:
            book: Book to insert

        Returns:
            bool: True if inserted, False if the ISBN already exists
        """
        try:
            await self.collection.insert_one(book.to_document())
            logger.debug("Successfully inserted book", isbn=book.isbn)
            return True

        except DuplicateKeyError:
            logger.warning("Book already exists", isbn=book.isbn)
            return False

        except Exception as e:
            logger.error("Failed to insert book", isbn=book.isbn, error=str(e))
            raise

    async def get_by_isbn(self, isbn: str) -> Optional[Book]:
        """
        Retrieve a book by its ISBN.

        Args:
            isbn: ISBN of the book

        Returns:
            Book or None if not found
        """
        try:
            document = await self.collection.find_one({"isbn": isbn})
            if document:
                return self._to_book(document)
            return None

        except Exception as e:
            logger.error("Failed to retrieve book", isbn=isbn, error=str(e))
            raise

    async def get_all(self) -> List[Book]:
        try:
            return await self._find({})
        except Exception as e:
            logger.error("Failed to retrieve books", error=str(e))
            raise

    async def search_by_title(self, search_term: str) -> List[Book]:
        """
        Find books whose title contains the term, case-insensitively.

        The term is escaped, so regex metacharacters match literally.
        """
        try:
            books = await self._find({"title": {"$regex": re.escape(search_term), "$options": "i"}})
            logger.debug("Searched books by title", search_term=search_term, count=len(books))
            return books

        except Exception as e:
            logger.error("Failed to search books", search_term=search_term, error=str(e))
            raise

    async def _find(self, filter_query: Dict[str, Any]) -> List[Book]:
        # _id is an ObjectId, so sorting on it gives insertion order
        cursor = self.collection.find(filter_query).sort("_id", 1)
        documents = await cursor.to_list(length=None)
        return [self._to_book(document) for document in documents]

    async def update(self, book: Book) -> bool:
        """
        Replace every field of the stored book with the same ISBN.

        Args:
            book: New book data; its ISBN selects the document

        Returns:
            bool: True if a book was replaced, False if not found
        """
        try:
            result = await self.collection.replace_one({"isbn": book.isbn}, book.to_document())

            if result.matched_count > 0:
                logger.debug("Successfully updated book", isbn=book.isbn)
                return True

            logger.warning("Book not found for update", isbn=book.isbn)
            return False

        except Exception as e:
            logger.error("Failed to update book", isbn=book.isbn, error=str(e))
            raise

    async def delete(self, isbn: str) -> bool:
        """
        Delete a book by ISBN.

        Args:
            isbn: ISBN of the book to delete

        Returns:
            bool: True if deleted, False if not found
        """
        try:
            result = await self.collection.delete_one({"isbn": isbn})

            if result.deleted_count > 0:
                logger.debug("Successfully deleted book", isbn=isbn)
                return True

            logger.warning("Book not found for deletion", isbn=isbn)
            return False

        except Exception as e:
            logger.error("Failed to delete book", isbn=isbn, error=str(e))
            raise

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            books_count = await self.collection.count_documents({})

            return {
                "status": "healthy",
                "books_collection": "accessible",
                "books_count": books_count
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
