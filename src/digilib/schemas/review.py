"""
Esquemas Pydantic para la entidad Review de digilib.
Define los modelos de entrada y salida para validación y serialización de reseñas.
"""

from pydantic import BaseModel, Field, ConfigDict
import datetime
from typing import Optional

class ReviewBase(BaseModel):
    """
    Esquema base para una reseña.

    Atributos:
        rating (int): Calificación entre 1 y 5.
        comment (str): Comentario de la reseña (obligatorio).
    """
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field(..., min_length=1)

class ReviewCreate(ReviewBase):
    """
    Esquema para la creación de una reseña.
    user_id y book_id se gestionan aparte.
    """
    pass

class ReviewUpdate(BaseModel):
    """Cambios parciales sobre una reseña; los campos ausentes no se tocan."""
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, min_length=1)

class ReviewSchema(ReviewBase):
    """
    Esquema de salida para una reseña.

    Atributos:
        id (int): ID de la reseña.
        user_id (int): ID del usuario que hizo la reseña.
        book_id (int): ID del libro reseñado.
        created_at (datetime.datetime): Fecha de creación de la reseña.
    """
    id: int
    user_id: int
    book_id: int
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
