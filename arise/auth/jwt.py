"""JWT token generation and validation for arise.

Tokens are issued by the identity provider in production; create_access_token
exists for tooling and tests.
"""

import os
import jwt
from datetime import datetime, timedelta
from typing import Optional, Dict
from dotenv import load_dotenv

load_dotenv()

# JWT configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-me-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))


def create_access_token(user_id: str, email: Optional[str] = None, name: Optional[str] = None) -> str:
    """Create a JWT access token for a user.

    Args:
        user_id: User ID to encode in token
        email: Optional email claim
        name: Optional display name claim

    Returns:
        Encoded JWT token string
    """
    payload = {
        "sub": user_id,  # Subject (user ID)
        "exp": datetime.utcnow() + timedelta(hours=JWT_EXPIRATION_HOURS),
        "iat": datetime.utcnow(),  # Issued at
    }
    if email:
        payload["email"] = email
    if name:
        payload["name"] = name
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict]:
    """Decode a bearer token.

    Returns the claims, or None if the token is malformed, expired, signed
    with another key or carries no `sub`.
    """
    try:
        return jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.InvalidTokenError:
        return None
