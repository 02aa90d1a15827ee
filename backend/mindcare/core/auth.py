from jose import jwt

from mindcare.config.settings import settings


def decode_access_token(token: str) -> dict:
    """Decode and verify a session token; raises ``jose.JWTError`` if invalid or expired."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
