from sqlalchemy.orm import Session
from sqlalchemy import desc, func, delete
from typing import Optional, Tuple
import logging

from ..models.review import Review

logger = logging.getLogger(__name__)


def create_review(db: Session, *, book_id: int, user_id: int, rating: int, comment: str) -> Review:
    """
    Inserts a review and commits it.

    The (user_id, book_id) unique constraint is the final arbiter for
    concurrent duplicates: an IntegrityError is rolled back and re-raised.
    """
    db_review = Review(rating=rating, comment=comment, user_id=user_id, book_id=book_id)
    db.add(db_review)
    try:
        db.commit()
    except Exception as e:
        logger.exception(f"Error committing review creation for book {book_id} by user {user_id}: {e}")
        db.rollback()
        raise
    db.refresh(db_review)
    logger.info(f"Review {db_review.id} created for book {book_id} by user {user_id}.")
    return db_review


def get_review_by_id(db: Session, review_id: int) -> Review | None:
    return db.get(Review, review_id)


def get_review_by_user_and_book(db: Session, user_id: int, book_id: int) -> Review | None:
    return db.query(Review).\
            filter(Review.user_id == user_id, Review.book_id == book_id).\
            first()


def get_reviews_for_book(db: Session, book_id: int, limit: Optional[int] = None) -> list[Review]:
    """Reviews of a book, newest first."""
    query = db.query(Review).\
            filter(Review.book_id == book_id).\
            order_by(desc(Review.created_at), desc(Review.id))
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def get_rating_stats(db: Session, book_id: int) -> Tuple[int, Optional[float]]:
    """
    Count and mean rating over every review of a book, read in one query.
    Returns (0, None) when the book has no reviews.
    """
    count, avg = db.query(func.count(Review.id), func.avg(Review.rating)).\
                   filter(Review.book_id == book_id).\
                   one()
    return int(count or 0), (float(avg) if avg is not None else None)


def count_reviews_for_book(db: Session, book_id: int) -> int:
    return db.query(func.count(Review.id)).filter(Review.book_id == book_id).scalar() or 0


def save_review(db: Session, review: Review) -> Review:
    db.add(review)
    try:
        db.commit()
    except Exception as e:
        logger.exception(f"Error committing update of review {review.id}: {e}")
        db.rollback()
        raise
    db.refresh(review)
    return review


def delete_review(db: Session, review: Review) -> None:
    review_id = review.id
    try:
        db.delete(review)
        db.commit()
    except Exception as e:
        logger.exception(f"Error committing delete of review {review_id}: {e}")
        db.rollback()
        raise


def delete_reviews_for_book(db: Session, book_id: int) -> int:
    """Deletes every review of a book in one statement. Returns the number removed."""
    try:
        result = db.execute(
            delete(Review).where(Review.book_id == book_id)
        )
        db.commit()
    except Exception as e:
        logger.exception(f"Error deleting reviews for book {book_id}: {e}")
        db.rollback()
        raise
    return result.rowcount or 0
