"""
JWT bearer identity for the reports API.
Every report group belongs to a user; the routes only need to know who is
calling, so this module verifies tokens and exposes the caller as TokenData.
Issuing tokens to end users (login, refresh) is handled by the identity
provider in front of this service.
"""

from typing import Optional, Any, Dict
from dataclasses import dataclass
import jwt
from jwt.exceptions import PyJWTError, ExpiredSignatureError
from datetime import datetime, timedelta, timezone
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.core.config import config
from app.core.exceptions import UnauthorizedError


# HTTP Bearer token security scheme
security = HTTPBearer()


@dataclass
class TokenData:
    """Token payload data structure with type safety"""
    user_id: int
    username: str
    role: str


class AuthService:
    """
    Token helpers.
    """

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        """
        Create a JWT access token.

        Used by provisioning scripts and tests; the payload must carry
        user_id, sub (username) and role.

        Args:
            data: Dictionary containing user data (user_id, sub, role)
            expires_delta: Optional custom expiration time, defaults to config value

        Returns:
            Encoded JWT token as string
        """
        now = datetime.now(timezone.utc)
        expire = now + (
            expires_delta or timedelta(minutes=config.access_token_expire_minutes)
        )
        to_encode = data.copy()
        to_encode.update({"exp": expire, "iat": now, "type": "access"})
        return jwt.encode(to_encode, config.secret_key, algorithm=config.algorithm)

    @staticmethod
    def verify_token(token: str) -> Optional[TokenData]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token string to verify

        Returns:
            TokenData object if valid, None if invalid

        Raises:
            UnauthorizedError: If the token has expired
        """
        try:
            payload: Dict[str, Any] = jwt.decode(
                token, config.secret_key, algorithms=[config.algorithm]
            )
        except ExpiredSignatureError:
            raise UnauthorizedError("Token has expired")
        except PyJWTError:
            return None

        user_id = payload.get("user_id")
        username = payload.get("sub")
        role = payload.get("role")
        if username is None or user_id is None or role is None:
            return None

        return TokenData(user_id=int(user_id), username=username, role=role)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenData:
    """
    Dependency to get the current authenticated user from JWT token.

    Raises:
        UnauthorizedError: If token is invalid
    """
    token_data = AuthService.verify_token(credentials.credentials)

    if token_data is None:
        raise UnauthorizedError("Invalid authentication credentials")

    return token_data
