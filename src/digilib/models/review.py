# src/digilib/models/review.py
from sqlalchemy import (Column, Integer, Text, ForeignKey, DateTime,
                        func, CheckConstraint, UniqueConstraint)
from sqlalchemy.orm import relationship, validates
from digilib.db.session import Base
from digilib.core.exceptions import ValidationError

MIN_RATING = 1
MAX_RATING = 5


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True)
    rating = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="CASCADE"), nullable=False, index=True)

    user = relationship("User", back_populates="reviews")
    book = relationship("Book", back_populates="reviews")

    __table_args__ = (
        # Ensure rating is between 1 and 5
        CheckConstraint('rating >= 1 AND rating <= 5', name='review_rating_check'),
        # Ensure a user can review a specific book only once
        UniqueConstraint('user_id', 'book_id', name='uq_user_book_review'),
    )

    @validates("rating")
    def _validate_rating(self, key, value):
        # bool is an int subclass; True must not pass as a rating of 1
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValidationError("Rating must be an integer between 1 and 5")
        if not (MIN_RATING <= value <= MAX_RATING):
            raise ValidationError("Rating must be between 1 and 5")
        return value

    @validates("comment")
    def _validate_comment(self, key, value):
        if value is None or not str(value).strip():
            raise ValidationError("Please add a comment")
        return value

    def __repr__(self):
        return f"<Review(id={self.id}, book_id={self.book_id}, user_id={self.user_id}, rating={self.rating})>"
