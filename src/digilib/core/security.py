"""
Utilidades de seguridad para digilib.

Hasheo y verificación de contraseñas de los registros de usuario con bcrypt
(vía passlib). Los usuarios existen para que libros y reseñas tengan un
propietario real; la autenticación en sí queda fuera del núcleo.
"""

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica una contraseña en texto plano contra su hash.

    Returns:
        bool: True si coincide.
    """
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Genera el hash bcrypt de `password`."""
    return pwd_context.hash(password)
