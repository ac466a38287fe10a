"""
Script de reconciliación de valoraciones de digilib.

Recalcula `average_rating` y `review_count` de todos los libros a partir de
sus reseñas actuales. Repara cualquier agregado que quedara desfasado porque
una escritura del agregado falló tras una mutación de reseña.

Uso:
    python scripts/reconcile_ratings.py

Nota:
    - Es idempotente: ejecutarlo varias veces deja el mismo resultado.
    - Un libro cuyo agregado no pueda escribirse se registra y se salta.
"""

import logging
import sys
from typing import Optional

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

try:
    from sqlalchemy.orm import Session
    from digilib.db.session import SessionLocal
    from digilib.services.rating import reconcile_all_ratings
    from digilib.core.config import settings
except ImportError as e:
    logger.error(f"Error importando módulos: {e}.")
    logger.error("Asegúrate de haber ejecutado 'pip install -e .'")
    sys.exit(1)


def main() -> int:
    db_session: Optional[Session] = None
    try:
        logger.info(f"--- Reconciliando valoraciones (valor base {settings.BASELINE_RATING}) ---")
        db_session = SessionLocal()
        total = reconcile_all_ratings(db_session)
        logger.info(f"--- Reconciliación finalizada: {total} libros recalculados. ---")
        return 0
    except Exception as main_exc:
        logger.exception(f"Error CRÍTICO durante la reconciliación: {main_exc}")
        return 1
    finally:
        if db_session:
            logger.info("Cerrando sesión de base de datos.")
            db_session.close()


if __name__ == "__main__":
    sys.exit(main())
