# groupchat/services/auth.py
"""Account registration, login and session-token verification."""
import logging
from typing import Optional

import pydantic
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import AuthError, ConflictError, StoreError, ValidationError
from ..models import Users
from ..schemas import AuthResponse, LoginRequest, Principal, RegisterRequest, UserOut
from ..security import JWTError, create_access_token, decode_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid credentials"


def _validated(model, **fields):
    try:
        return model(**fields)
    except pydantic.ValidationError as exc:
        err = exc.errors()[0]
        field = ".".join(str(p) for p in err.get("loc", ()))
        raise ValidationError(f"{field}: {err.get('msg', 'Invalid value')}") from exc


def _issue(user: Users) -> AuthResponse:
    try:
        token = create_access_token(user_id=user.id, username=user.username, email=user.email)
    except JWTError as exc:
        logger.exception("Could not sign token for user %s", user.id)
        raise StoreError("Server error") from exc
    return AuthResponse(token=token, user=UserOut.model_validate(user))


def register(db: Session, username: str, email: str, password: str) -> AuthResponse:
    payload = _validated(RegisterRequest, username=(username or "").strip(), email=(email or "").strip(),
                         password=password)

    try:
        existing = (
            db.query(Users)
            .filter((Users.email == payload.email) | (Users.username == payload.username))
            .first()
        )
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed during registration")
        raise StoreError("Server error") from exc
    if existing:
        raise ConflictError("User already exists")

    user = Users(
        username=payload.username,
        email=payload.email,
        hashed_password=hash_password(payload.password),
    )
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        # another registration won the race between the lookup and the insert
        db.rollback()
        raise ConflictError("User already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Could not create user %r", payload.username)
        raise StoreError("Server error") from exc

    logger.info("Registered user %s (%s)", user.id, user.username)
    return _issue(user)


def login(db: Session, email: str, password: str) -> AuthResponse:
    payload = _validated(LoginRequest, email=(email or "").strip(), password=password or "")

    try:
        user = db.query(Users).filter(Users.email == payload.email).first()
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed during login")
        raise StoreError("Server error") from exc

    # unknown email and wrong password must be indistinguishable
    if not user or not verify_password(payload.password, user.hashed_password):
        logger.info("Failed login attempt")
        raise AuthError(INVALID_CREDENTIALS, status_code=400)

    logger.info("User %s logged in", user.id)
    return _issue(user)


def verify_token(token: Optional[str]) -> Principal:
    if not token:
        raise AuthError("Not authenticated")
    try:
        claims = decode_access_token(token)
    except JWTError:
        raise AuthError("Invalid or expired token")

    user_id = claims.get("uid")
    username = claims.get("username")
    email = claims.get("email")
    if not isinstance(user_id, int) or not username or not email:
        raise AuthError("Not authorized: missing claims")
    return Principal(id=user_id, username=username, email=email)


def get_user(db: Session, principal: Principal) -> Users:
    try:
        user = db.get(Users, principal.id)
    except SQLAlchemyError as exc:
        logger.exception("User lookup failed for %s", principal.id)
        raise StoreError("Server error") from exc
    if not user:
        raise AuthError("User not found")
    return user
