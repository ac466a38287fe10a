"""
Esquemas Pydantic para la entidad User de digilib.
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, ConfigDict

class UserCreate(BaseModel):
    """
    Esquema para la creación de un usuario.

    Atributos:
        email (EmailStr): Correo electrónico del usuario.
        password (str): Contraseña en texto plano (será hasheada antes de almacenar).
        name (Optional[str]): Nombre visible.
        role (str): 'user' o 'admin'.
    """
    email: EmailStr
    password: str
    name: Optional[str] = None
    role: str = "user"

class UserSchema(BaseModel):
    """Esquema de salida para un usuario (sin contraseña)."""
    id: int
    email: EmailStr
    name: Optional[str] = None
    role: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)
