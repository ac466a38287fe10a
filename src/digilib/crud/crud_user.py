"""
Operaciones CRUD para el modelo User en la base de datos de digilib.
Incluye funciones para crear usuarios, obtenerlos por email o ID.
"""

from sqlalchemy.orm import Session
from ..models.user import User
from ..schemas.user import UserCreate
from ..core.security import get_password_hash
from typing import Optional

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Obtiene un usuario por su email.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        email (str): Email del usuario a buscar.

    Returns:
        Optional[User]: El usuario si existe, None si no.
    """
    return db.query(User).filter(User.email == email).first()

def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)

def create_user(db: Session, user: UserCreate) -> User:
    """
    Crea un nuevo usuario en la base de datos.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        user (UserCreate): Objeto con los datos del usuario a crear.

    Returns:
        User: El usuario creado.
    """
    hashed_password: str = get_password_hash(user.password)
    db_user: User = User(
        email=user.email,
        name=user.name,
        role=user.role,
        hashed_password=hashed_password,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user
