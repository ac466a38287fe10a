"""
Modelo ORM para la entidad Book en la base de datos de digilib.
Define los campos del libro, sus dos huecos de asset (archivo principal y
portada) y el agregado de valoraciones que mantiene el servicio de rating.
"""

import enum
from typing import Optional

from sqlalchemy import (Column, Integer, String, Text, Float, ForeignKey, DateTime,
                        func, CheckConstraint)
from sqlalchemy.orm import relationship, validates
from digilib.db.session import Base
from digilib.core.exceptions import ValidationError
from digilib.models.asset import Asset, AssetKind


class BookCategory(str, enum.Enum):
    FICTION = "Fiction"
    NON_FICTION = "Non-fiction"
    SCIENCE = "Science"
    TECHNOLOGY = "Technology"
    HISTORY = "History"
    BIOGRAPHY = "Biography"
    SELF_HELP = "Self-help"
    BUSINESS = "Business"
    LITERATURE = "Literature"
    OTHER = "Other"


TITLE_MAX_LENGTH = 100


class Book(Base):
    """
    Representa un libro del catálogo.

    Atributos:
        id (int): Identificador primario del libro.
        title (str): Título del libro (máx. 100 caracteres).
        author (str): Autor del libro.
        description (str): Descripción o sinopsis.
        category (str): Una de las categorías de BookCategory.
        user_id (int): Usuario propietario del registro.
        file_url / file_public_id / file_resource_type: Archivo principal (nunca nulo).
        cover_url / cover_public_id / cover_resource_type: Portada opcional.
        average_rating (float): Media de las reseñas, o el valor base si no hay.
        review_count (int): Número de reseñas del libro.
        created_at (datetime): Fecha de creación.
        reviews (List[Review]): Reseñas asociadas al libro.
    """
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(TITLE_MAX_LENGTH), index=True, nullable=False)
    author = Column(String(255), index=True, nullable=False)
    description = Column(Text, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    file_url = Column(String(512), nullable=False)
    file_public_id = Column(String(255), nullable=False)
    file_resource_type = Column(String(20), nullable=False, default="auto")
    cover_url = Column(String(512), nullable=True)
    cover_public_id = Column(String(255), nullable=True)
    cover_resource_type = Column(String(20), nullable=True)

    average_rating = Column(Float, nullable=False, default=1.0)
    review_count = Column(Integer, nullable=False, default=0, server_default="0")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    owner = relationship("User", back_populates="books")
    # Sin cascade: el borrado de reseñas lo hace el coordinador de forma explícita.
    reviews = relationship("Review", back_populates="book", passive_deletes=True)

    __table_args__ = (
        CheckConstraint('review_count >= 0', name='book_review_count_check'),
    )

    @validates("category")
    def _validate_category(self, key, value):
        if isinstance(value, BookCategory):
            return value.value
        if value not in {c.value for c in BookCategory}:
            raise ValidationError(f"Category '{value}' is not one of the allowed categories")
        return value

    @validates("title")
    def _validate_title(self, key, value):
        if not value or not str(value).strip():
            raise ValidationError("Please add a title")
        value = str(value).strip()
        if len(value) > TITLE_MAX_LENGTH:
            raise ValidationError(f"Title cannot be more than {TITLE_MAX_LENGTH} characters")
        return value

    @property
    def file_asset(self) -> Optional[Asset]:
        if self.file_public_id is None:
            return None
        return Asset(self.file_url, self.file_public_id, self.file_resource_type or "auto")

    @property
    def cover_asset(self) -> Optional[Asset]:
        if self.cover_public_id is None:
            return None
        return Asset(self.cover_url, self.cover_public_id, self.cover_resource_type or "image")

    def get_asset(self, kind: AssetKind) -> Optional[Asset]:
        return self.file_asset if kind is AssetKind.FILE else self.cover_asset

    def set_asset(self, kind: AssetKind, asset: Optional[Asset]) -> None:
        """
        Asigna el asset de un hueco. La portada admite None (sin portada);
        el archivo principal no.
        """
        if kind is AssetKind.FILE:
            if asset is None:
                raise ValidationError("A book must always have a primary file")
            self.file_url = asset.url
            self.file_public_id = asset.public_id
            self.file_resource_type = asset.resource_type
        else:
            self.cover_url = asset.url if asset else None
            self.cover_public_id = asset.public_id if asset else None
            self.cover_resource_type = asset.resource_type if asset else None

    def __repr__(self) -> str:
        """
        Representación legible del objeto Book para depuración.

        Returns:
            str: Cadena representando el libro.
        """
        return f"<Book(id={self.id}, title='{self.title[:30]}...', reviews={self.review_count})>"
