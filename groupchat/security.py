# groupchat/security.py
from datetime import timedelta, datetime, timezone
from typing import Optional

from jose import jwt, JWTError
from passlib.context import CryptContext

from . import config

bcrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(plain: str) -> str:
    return bcrypt_context.hash(plain)


def verify_password(plain: str, hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return bcrypt_context.verify(plain, hashed)


def create_access_token(user_id: int, username: str, email: str,
                        expires_delta: Optional[timedelta] = None) -> str:
    to_encode = {"sub": email, "uid": user_id, "username": username, "email": email}
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=config.ACCESS_TOKEN_EXPIRE_HOURS))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Return the token's claims. Raises JWTError on a bad signature, bad format or expiry."""
    return jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])


__all__ = ["JWTError", "bcrypt_context", "hash_password", "verify_password",
           "create_access_token", "decode_access_token"]
