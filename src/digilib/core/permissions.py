"""
Authorization decisions consumed by the catalog services.

The services never evaluate the policy themselves; callers resolve it here and
pass the resulting boolean along.
"""

from typing import Optional

from digilib.core.config import settings
from digilib.models.user import User


def is_admin(user: Optional[User]) -> bool:
    """
    Indica si el usuario tiene rol elevado.

    Un usuario es administrador si su rol es 'admin' o si su email figura en
    ADMIN_EMAILS.
    """
    if user is None or not user.is_active:
        return False
    return user.role == "admin" or user.email in settings.list_admin_emails


def is_owner_or_admin(user: Optional[User], owner_id: int) -> bool:
    """True if `user` owns the resource (by user id) or is an admin."""
    if user is None or not user.is_active:
        return False
    return user.id == owner_id or is_admin(user)
