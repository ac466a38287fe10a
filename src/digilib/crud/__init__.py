from .crud_user import get_user_by_email, get_user_by_id, create_user
from .crud_book import get_book_by_id, get_book_ids
from .crud_review import (
    create_review,
    get_review_by_id,
    get_review_by_user_and_book,
    get_reviews_for_book,
    get_rating_stats,
    count_reviews_for_book,
    delete_review,
    delete_reviews_for_book,
)

__all__ = [
    "get_user_by_email",
    "get_user_by_id",
    "create_user",
    "get_book_by_id",
    "get_book_ids",
    "create_review",
    "get_review_by_id",
    "get_review_by_user_and_book",
    "get_reviews_for_book",
    "get_rating_stats",
    "count_reviews_for_book",
    "delete_review",
    "delete_reviews_for_book",
]
