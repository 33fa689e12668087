"""
API models and schemas for the FastAPI application.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Book(BaseModel):
    """
    Book record as exchanged over the API and kept in the store.

    Serialized with PascalCase names; camelCase and snake_case names are
    accepted on input. Field constraints live in the validation ruleset so
    that every rule is reported in one response.
    """
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "Isbn": "9780261103573",
                "Title": "The Fellowship of the Ring",
                "ShortDescription": "The first volume of The Lord of the Rings.",
                "Author": "J. R. R. Tolkien",
                "PageCount": 423,
                "ReleaseDate": "1954-07-29"
            }
        }
    )

    isbn: str = Field(
        "",
        validation_alias=AliasChoices("Isbn", "isbn"),
        serialization_alias="Isbn",
        description="13-digit ISBN, unique per book"
    )
    title: str = Field(
        "",
        validation_alias=AliasChoices("Title", "title"),
        serialization_alias="Title",
        description="Book title"
    )
    short_description: str = Field(
        "",
        validation_alias=AliasChoices("ShortDescription", "shortDescription", "short_description"),
        serialization_alias="ShortDescription",
        description="Short description of the book"
    )
    author: str = Field(
        "",
        validation_alias=AliasChoices("Author", "author"),
        serialization_alias="Author",
        description="Author name"
    )
    page_count: int = Field(
        0,
        strict=True,
        validation_alias=AliasChoices("PageCount", "pageCount", "page_count"),
        serialization_alias="PageCount",
        description="Number of pages"
    )
    release_date: date = Field(
        ...,
        validation_alias=AliasChoices("ReleaseDate", "releaseDate", "release_date"),
        serialization_alias="ReleaseDate",
        description="Release date (YYYY-MM-DD)"
    )

    def to_document(self) -> dict:
        """Convert to a store document keyed by snake_case field names."""
        return self.model_dump(mode="json")

    def to_response(self) -> dict:
        """Convert to the JSON body returned by the API."""
        return self.model_dump(mode="json", by_alias=True)


class ValidationFailure(BaseModel):
    """A single failed validation rule."""
    model_config = ConfigDict(populate_by_name=True)

    property_name: str = Field(..., serialization_alias="PropertyName", description="Property that failed")
    error_message: str = Field(..., serialization_alias="ErrorMessage", description="Why it failed")

    def to_response(self) -> dict:
        return self.model_dump(by_alias=True)


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
