"""
Script para poblar digilib con datos falsos de desarrollo.

Crea usuarios, libros y reseñas con Faker pasando por `CatalogCoordinator`,
de modo que cada reseña dispara el recálculo de valoración igual que en
producción. Los libros se crean sin archivo (usan el asset de marcador de
posición), así que el script no sube nada al almacén de assets.

Uso:
    python scripts/seed_catalog.py

Nota:
    - Los usuarios generados comparten la contraseña FAKE_PASSWORD.
    - Las reseñas duplicadas (mismo usuario y libro) se registran y se saltan.
"""

import random
import logging
import sys
from faker import Faker
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
from typing import List, Optional

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

try:
    from digilib.clients.asset_store import AssetStoreClient
    from digilib.core.config import settings
    from digilib.core.exceptions import DigilibError, DuplicateReviewError
    from digilib.crud.crud_user import create_user, get_user_by_email
    from digilib.db.session import SessionLocal
    from digilib.models.book import BookCategory
    from digilib.schemas.user import UserCreate
    from digilib.services import AssetLifecycleManager, CatalogCoordinator
except ImportError as e:
    logger.error(f"Error importando módulos: {e}.")
    logger.error("Asegúrate de haber ejecutado 'pip install -e .'")
    sys.exit(1)

NUM_FAKE_USERS: int = 20
NUM_FAKE_BOOKS: int = 15
MAX_REVIEWS_PER_USER: int = 8
MIN_REVIEWS_PER_USER: int = 1
FAKE_PASSWORD: str = "password123"

fake = Faker(['es_ES', 'en_US'])


def _seed_users(db: Session) -> List[int]:
    user_ids: List[int] = []
    for i in range(NUM_FAKE_USERS):
        fake_email: str = fake.unique.safe_email()
        existing_user = get_user_by_email(db, email=fake_email)
        if existing_user:
            user_ids.append(existing_user.id)
            continue
        try:
            new_user = create_user(db=db, user=UserCreate(email=fake_email, password=FAKE_PASSWORD, name=fake.name()))
            user_ids.append(new_user.id)
            logger.info(f"  ({i+1}/{NUM_FAKE_USERS}) Usuario creado: {new_user.email} (ID: {new_user.id})")
        except IntegrityError:
            db.rollback()
            logger.warning(f"  ({i+1}/{NUM_FAKE_USERS}) {fake_email} ya existe, saltando.")
    return user_ids


def _seed_books(db: Session, coordinator: CatalogCoordinator, owner_ids: List[int]) -> List[int]:
    book_ids: List[int] = []
    for i in range(NUM_FAKE_BOOKS):
        metadata = {
            "title": fake.sentence(nb_words=4).rstrip(".")[:100],
            "author": fake.name(),
            "description": fake.paragraph(nb_sentences=3),
            "category": random.choice(list(BookCategory)).value,
        }
        book = coordinator.create_book(db, metadata, owner_id=random.choice(owner_ids))
        book_ids.append(book.id)
        logger.info(f"  ({i+1}/{NUM_FAKE_BOOKS}) Libro creado: '{book.title}' (ID: {book.id})")
    return book_ids


def _seed_reviews(db: Session, coordinator: CatalogCoordinator, user_ids: List[int], book_ids: List[int]) -> int:
    total_reviews_added: int = 0
    for user_id in user_ids:
        count = min(random.randint(MIN_REVIEWS_PER_USER, MAX_REVIEWS_PER_USER), len(book_ids))
        for book_id in random.sample(book_ids, count):
            try:
                coordinator.add_review(
                    db,
                    book_id=book_id,
                    user_id=user_id,
                    rating=random.randint(1, 5),
                    comment=fake.paragraph(nb_sentences=random.randint(1, 4)),
                )
                total_reviews_added += 1
            except DuplicateReviewError:
                logger.warning(f"  User {user_id} ya reseñó el libro {book_id}, saltando.")
    return total_reviews_added


def generate_data() -> None:
    """
    Genera usuarios, libros y reseñas falsas.

    Raises:
        DigilibError: Si una operación del catálogo falla de forma inesperada.
    """
    db: Optional[Session] = None
    store = AssetStoreClient.from_settings(settings)
    coordinator = CatalogCoordinator(AssetLifecycleManager(store, settings))
    try:
        db = SessionLocal()
        logger.info(f"--- Fase 1: Creando {NUM_FAKE_USERS} usuarios ---")
        user_ids = _seed_users(db)
        if not user_ids:
            logger.error("No se pudieron crear usuarios. Abortando.")
            return

        logger.info(f"--- Fase 2: Creando {NUM_FAKE_BOOKS} libros ---")
        book_ids = _seed_books(db, coordinator, user_ids)

        logger.info("--- Fase 3: Generando reseñas ---")
        total = _seed_reviews(db, coordinator, user_ids, book_ids)
        logger.info(f"--- Fase 3 completada: {total} reseñas añadidas ---")
    except DigilibError as e:
        logger.exception(f"Error CRÍTICO durante la generación de datos: {e}")
        db.rollback()
    finally:
        if db:
            logger.info("Cerrando sesión de base de datos.")
            db.close()

if __name__ == "__main__":
    generate_data()
