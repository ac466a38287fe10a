"""
Rating aggregation for books.

The aggregate (average_rating, review_count) is always recomputed from the
full current review set, never adjusted by deltas, so running it again
after a failure or a race converges to the right values.
"""

import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from digilib.core.config import settings
from digilib.core.exceptions import AggregateWriteError
from digilib.crud import crud_book, crud_review
from digilib.models.book import Book

logger = logging.getLogger(__name__)


def recompute_book_rating(db: Session, book_id: int, baseline: Optional[float] = None) -> Optional[Book]:
    """
    Recalculate and persist a book's review count and average rating.

    Args:
        db: Active session.
        book_id: Book to recompute.
        baseline: average_rating stored when the book has no reviews
            (defaults to settings.BASELINE_RATING).

    Returns:
        The updated Book, or None if the book no longer exists.

    Raises:
        AggregateWriteError: If the new values could not be committed.
    """
    if baseline is None:
        baseline = settings.BASELINE_RATING

    try:
        book = crud_book.get_book_by_id(db, book_id)
        if book is None:
            logger.warning(f"Rating recompute skipped: book {book_id} does not exist.")
            return None

        count, avg = crud_review.get_rating_stats(db, book_id)
        book.review_count = count
        book.average_rating = avg if count > 0 else baseline
        db.add(book)
        db.commit()
        db.refresh(book)
    except SQLAlchemyError as e:
        db.rollback()
        raise AggregateWriteError(f"Could not persist rating aggregate for book {book_id}: {e}") from e

    logger.info(f"Rating for book {book_id} recomputed: {book.review_count} reviews, average {book.average_rating:.2f}.")
    return book


def reconcile_all_ratings(db: Session, baseline: Optional[float] = None) -> int:
    """
    Recompute the aggregate of every book.

    A book whose write fails is logged and skipped; the pass continues.

    Returns:
        Number of books successfully recomputed.
    """
    reconciled = 0
    for book_id in crud_book.get_book_ids(db):
        try:
            if recompute_book_rating(db, book_id, baseline=baseline) is not None:
                reconciled += 1
        except AggregateWriteError as e:
            logger.warning(f"Reconciliation left book {book_id} stale: {e}")
    logger.info(f"Rating reconciliation finished: {reconciled} books recomputed.")
    return reconciled
