"""
Pydantic schemas for the Book entity.

`BookCreate`/`BookUpdate` validate caller-supplied metadata; `BookSchema` is the
projection handed back to callers (both asset URLs plus the rating aggregate).
"""

import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from digilib.models.book import BookCategory, TITLE_MAX_LENGTH


class BookBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    author: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: BookCategory

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)


class BookCreate(BookBase):
    pass


class BookUpdate(BaseModel):
    """Metadata changes; assets and aggregates are never updated through this."""
    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    author: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[BookCategory] = None

    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True)


class BookSchema(BookBase):
    """
    Projection returned to callers.

    Attributes:
        file_url (str): URL of the current primary file (possibly the placeholder).
        cover_url (Optional[str]): URL of the cover image, None when absent.
        average_rating (float): Mean rating, or the baseline with no reviews.
        review_count (int): Number of reviews.
    """
    id: int
    user_id: int
    file_url: str
    cover_url: Optional[str] = None
    average_rating: float
    review_count: int
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)
