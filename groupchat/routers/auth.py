# groupchat/routers/auth.py
from typing import Annotated, Optional

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas import AuthResponse, LoginRequest, Principal, RegisterRequest, UserOut
from ..services import auth as auth_service

authRoutes = APIRouter(prefix="/api/auth", tags=["auth"])

oauth2_bearer = OAuth2PasswordBearer(tokenUrl="api/auth/login", auto_error=False)
db_link = Annotated[Session, Depends(get_db)]


def get_current_principal(token: Annotated[Optional[str], Depends(oauth2_bearer)]) -> Principal:
    # identity comes only from the verified token, never from the request body
    return auth_service.verify_token(token)


current_principal = Annotated[Principal, Depends(get_current_principal)]


@authRoutes.post("/register", response_model=AuthResponse)
def register_user(payload: RegisterRequest, db: db_link):
    return auth_service.register(db, payload.username, payload.email, payload.password)


@authRoutes.post("/login", response_model=AuthResponse)
def login(payload: LoginRequest, db: db_link):
    return auth_service.login(db, payload.email, payload.password)


@authRoutes.get("/me", response_model=UserOut)
def read_me(principal: current_principal, db: db_link):
    return auth_service.get_user(db, principal)
