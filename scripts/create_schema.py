"""
Crea las tablas de digilib en la base de datos indicada por DATABASE_URL.

Uso:
    python scripts/create_schema.py
"""

import logging

from digilib.core.config import settings
from digilib.db.session import init_db

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

if __name__ == "__main__":
    logger.info(f"Creando tablas en {settings.DATABASE_URL.split('@')[-1]}...")
    init_db()
    logger.info("Tablas creadas.")
