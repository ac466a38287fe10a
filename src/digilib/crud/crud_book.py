"""
Operaciones CRUD para el modelo Book en la base de datos.
Acceso directo al almacén de registros; la coherencia entre libros, reseñas y
assets la orquesta `digilib.services.catalog`, no estas funciones.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..models.asset import Asset, AssetKind
from ..models.book import Book

logger = logging.getLogger(__name__)

def get_book_by_id(db: Session, book_id: int) -> Optional[Book]:
    """
    Recupera un libro por su ID primario.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        book_id (int): ID del libro a recuperar.

    Returns:
        Optional[Book]: El objeto Book si se encuentra, None si no existe.
    """
    return db.get(Book, book_id)

def get_book_ids(db: Session) -> List[int]:
    """Devuelve los IDs de todos los libros, en orden ascendente."""
    return list(db.execute(select(Book.id).order_by(Book.id)).scalars().all())

def create_book(
    db: Session,
    *,
    title: str,
    author: str,
    description: str,
    category: str,
    user_id: int,
    file_asset: Asset,
    cover_asset: Optional[Asset],
    average_rating: float,
) -> Book:
    """
    Inserta un libro nuevo con sus assets ya subidos y el agregado inicial.

    Raises:
        ValidationError: Si algún campo no supera la validación del modelo.
        SQLAlchemyError: Si falla el commit (tras hacer rollback).
    """
    db_book = Book(
        title=title,
        author=author,
        description=description,
        category=category,
        user_id=user_id,
        average_rating=average_rating,
        review_count=0,
    )
    db_book.set_asset(AssetKind.FILE, file_asset)
    db_book.set_asset(AssetKind.COVER, cover_asset)
    db.add(db_book)
    try:
        db.commit()
    except Exception:
        logger.exception(f"Error committing new book '{title}'")
        db.rollback()
        raise
    db.refresh(db_book)
    return db_book

def save_book(db: Session, book: Book) -> Book:
    """Persiste los cambios pendientes de un libro ya existente."""
    db.add(book)
    try:
        db.commit()
    except Exception:
        logger.exception(f"Error committing changes to book {book.id}")
        db.rollback()
        raise
    db.refresh(book)
    return book

def delete_book(db: Session, book: Book) -> None:
    """Borra el registro del libro. Las reseñas deben haberse borrado antes."""
    book_id = book.id
    db.delete(book)
    try:
        db.commit()
    except Exception:
        logger.exception(f"Error committing deletion of book {book_id}")
        db.rollback()
        raise
