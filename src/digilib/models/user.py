"""
Modelo ORM para la entidad User en la base de datos de digilib.
Los usuarios son propietarios de libros y autores de reseñas.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from digilib.db.session import Base

class User(Base):
    """
    Representa un usuario registrado en el sistema.

    Atributos:
        id (int): Identificador primario del usuario.
        email (str): Correo electrónico único del usuario.
        name (str): Nombre visible.
        hashed_password (str): Contraseña almacenada de forma segura (hash).
        role (str): 'user' o 'admin'.
        is_active (bool): Indica si el usuario está activo.
        created_at (datetime): Fecha de creación del usuario.
        updated_at (datetime): Fecha de última actualización del usuario.
        books (List[Book]): Libros subidos por el usuario.
        reviews (List[Review]): Lista de reseñas realizadas por el usuario.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(100), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default="user", server_default="user")
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    books = relationship("Book", back_populates="owner")
    reviews = relationship("Review", back_populates="user")

    def __repr__(self) -> str:
        """
        Representación legible del objeto User para depuración.

        Returns:
            str: Cadena representando el usuario.
        """
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
