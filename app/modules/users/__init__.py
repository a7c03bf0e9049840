"""Users module"""

from .models import User, Role
from .auth import TokenData, AuthService, get_current_user

__all__ = ["User", "Role", "TokenData", "AuthService", "get_current_user"]
