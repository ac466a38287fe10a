"""
Sesión de base de datos SQLAlchemy para digilib.

Crea el motor a partir de `settings.DATABASE_URL`, la fábrica de sesiones y la
clase base de los modelos ORM. Las sesiones se pasan de forma explícita a la
capa crud y a los servicios; ningún modelo abre su propia sesión.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from digilib.core.config import settings

_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def init_db() -> None:
    """Crea todas las tablas registradas en `Base`."""
    # Registro de los modelos en Base.metadata
    from digilib.models import book, review, user  # noqa: F401
    Base.metadata.create_all(bind=engine)
