"""
Catalog coordinator: book and review mutations that span several records.

Each public method is one synchronous unit of work on the session it is
given. Review mutations are committed first and the parent book's rating is
recomputed afterwards; a failed recompute is logged and does not undo the
review. Book deletion removes reviews, then assets, then the book row, in
that order.
"""

import logging
from typing import Any, List, Mapping, Optional, Union

import pydantic
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from digilib.core.config import settings
from digilib.core.exceptions import (
    AggregateWriteError,
    BookNotFoundError,
    DuplicateReviewError,
    PermissionDeniedError,
    ReviewNotFoundError,
    ValidationError,
)
from digilib.crud import crud_book, crud_review
from digilib.models.asset import AssetKind, Upload
from digilib.models.book import Book
from digilib.models.review import Review
from digilib.schemas.book import BookCreate, BookUpdate
from digilib.schemas.review import ReviewCreate, ReviewUpdate
from digilib.services.assets import AssetLifecycleManager
from digilib.services.rating import recompute_book_rating

logger = logging.getLogger(__name__)


def _parse(schema, data: Any):
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except pydantic.ValidationError as e:
        raise ValidationError(str(e)) from e


class CatalogCoordinator:
    """
    Sequences book/review operations across the record store, the asset
    store and the rating aggregate.

    Args:
        assets: Lifecycle manager holding the injected asset store client.
        baseline: Zero-review average rating (defaults to settings.BASELINE_RATING).
        require_primary_file: Reject create_book without a file instead of
            using the placeholder (defaults to settings.REQUIRE_PRIMARY_FILE).
    """

    def __init__(
        self,
        assets: AssetLifecycleManager,
        baseline: Optional[float] = None,
        require_primary_file: Optional[bool] = None,
    ):
        self.assets = assets
        self.baseline = settings.BASELINE_RATING if baseline is None else baseline
        self.require_primary_file = (
            settings.REQUIRE_PRIMARY_FILE if require_primary_file is None else require_primary_file
        )

    # --- Books ---

    def get_book(self, db: Session, book_id: int) -> Book:
        book = crud_book.get_book_by_id(db, book_id)
        if book is None:
            raise BookNotFoundError(f"Book not found with id of {book_id}")
        return book

    def create_book(
        self,
        db: Session,
        metadata: Union[BookCreate, Mapping[str, Any]],
        owner_id: int,
        file: Optional[Upload] = None,
        cover: Optional[Upload] = None,
    ) -> Book:
        """
        Create a book, uploading its assets first.

        Validation happens before any upload. A missing file uses the
        placeholder unless require_primary_file is set; store failures fall
        back per asset kind and never abort the creation.

        Raises:
            ValidationError: Invalid metadata or payload.
        """
        book_in = _parse(BookCreate, metadata)
        if file is None and self.require_primary_file:
            raise ValidationError("Please upload a book file")
        for kind, payload in ((AssetKind.FILE, file), (AssetKind.COVER, cover)):
            if payload is not None:
                self.assets.validate_payload(kind, payload.data, payload.content_type, payload.filename)

        if file is not None:
            file_asset = self.assets.upload(AssetKind.FILE, file.data, file.content_type, file.filename)
        else:
            logger.info("No book file supplied, using placeholder.")
            file_asset = self.assets.placeholder
        cover_asset = None
        if cover is not None:
            cover_asset = self.assets.upload(AssetKind.COVER, cover.data, cover.content_type, cover.filename)

        try:
            book = crud_book.create_book(
                db,
                title=book_in.title,
                author=book_in.author,
                description=book_in.description,
                category=book_in.category,
                user_id=owner_id,
                file_asset=file_asset,
                cover_asset=cover_asset,
                average_rating=self.baseline,
            )
        except Exception:
            # Nothing references the fresh uploads now.
            self.assets.destroy(file_asset)
            self.assets.destroy(cover_asset)
            raise
        logger.info(f"Book {book.id} created by user {owner_id}.")
        return book

    def update_book(self, db: Session, book_id: int, changes: Union[BookUpdate, Mapping[str, Any]]) -> Book:
        """Update title/author/description/category. Assets and aggregates are untouched."""
        book = self.get_book(db, book_id)
        update = _parse(BookUpdate, changes)
        for field, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(book, field, value)
        return crud_book.save_book(db, book)

    def update_book_assets(
        self,
        db: Session,
        book_id: int,
        file: Optional[Upload] = None,
        cover: Optional[Upload] = None,
    ) -> Book:
        """Replace each supplied asset; unsupplied slots are left alone."""
        book = self.get_book(db, book_id)
        for kind, payload in ((AssetKind.FILE, file), (AssetKind.COVER, cover)):
            if payload is not None:
                self.assets.validate_payload(kind, payload.data, payload.content_type, payload.filename)

        if file is not None:
            self.assets.replace(db, book, AssetKind.FILE, file.data, file.content_type, file.filename)
        if cover is not None:
            self.assets.replace(db, book, AssetKind.COVER, cover.data, cover.content_type, cover.filename)
        return book

    def delete_book(self, db: Session, book_id: int) -> None:
        """
        Delete a book with its reviews and assets.

        If the final row delete fails the row survives pointing at destroyed
        assets; calling this again is safe because destroy is idempotent.
        """
        book = self.get_book(db, book_id)
        removed = crud_review.delete_reviews_for_book(db, book_id)
        failed = self.assets.destroy_all(book)
        if failed:
            logger.warning(f"Book {book_id}: {len(failed)} asset(s) could not be destroyed.")
        crud_book.delete_book(db, book)
        logger.info(f"Book {book_id} deleted along with {removed} review(s).")

    # --- Reviews ---

    def get_reviews(self, db: Session, book_id: int) -> List[Review]:
        self.get_book(db, book_id)
        return crud_review.get_reviews_for_book(db, book_id)

    def _get_review(self, db: Session, review_id: int) -> Review:
        review = crud_review.get_review_by_id(db, review_id)
        if review is None:
            raise ReviewNotFoundError(f"Review not found with id of {review_id}")
        return review

    def _refresh_rating(self, db: Session, book_id: int) -> None:
        try:
            recompute_book_rating(db, book_id, baseline=self.baseline)
        except AggregateWriteError as e:
            logger.warning(f"Rating aggregate for book {book_id} is stale until the next recompute: {e}")

    def add_review(self, db: Session, book_id: int, user_id: int, rating: int, comment: str) -> Review:
        """
        Add a user's review of a book and recompute the book's rating.

        Raises:
            ValidationError: Rating out of range or empty comment.
            BookNotFoundError: Unknown book.
            DuplicateReviewError: The user already reviewed this book.
        """
        review_in = _parse(ReviewCreate, {"rating": rating, "comment": comment})
        self.get_book(db, book_id)
        if crud_review.get_review_by_user_and_book(db, user_id, book_id) is not None:
            raise DuplicateReviewError("You have already reviewed this book")

        try:
            review = crud_review.create_review(
                db, book_id=book_id, user_id=user_id, rating=review_in.rating, comment=review_in.comment
            )
        except IntegrityError as e:
            # Only a concurrent review by the same user is a duplicate; other
            # integrity failures (e.g. an unknown user) propagate unchanged.
            if crud_review.get_review_by_user_and_book(db, user_id, book_id) is None:
                raise
            raise DuplicateReviewError("You have already reviewed this book") from e

        self._refresh_rating(db, book_id)
        return review

    def update_review(
        self,
        db: Session,
        review_id: int,
        changes: Union[ReviewUpdate, Mapping[str, Any]],
        authorized: bool,
    ) -> Review:
        """
        Apply rating/comment changes. `authorized` is the caller's owner-or-admin decision.
        """
        review = self._get_review(db, review_id)
        if not authorized:
            raise PermissionDeniedError("Not authorized to update this review")
        update = _parse(ReviewUpdate, changes)
        for field, value in update.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(review, field, value)
        review = crud_review.save_review(db, review)
        self._refresh_rating(db, review.book_id)
        return review

    def delete_review(self, db: Session, review_id: int, authorized: bool) -> None:
        review = self._get_review(db, review_id)
        if not authorized:
            raise PermissionDeniedError("Not authorized to delete this review")
        book_id = review.book_id
        crud_review.delete_review(db, review)
        logger.info(f"Review {review_id} deleted.")
        self._refresh_rating(db, book_id)
