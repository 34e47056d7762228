import uuid
from datetime import datetime

import jwt
from fastapi import Depends, HTTPException, status, Header
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from .config import settings
from .database import SessionLocal
from .models import User, Profile


pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_db():
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, email: str) -> str:
    now = datetime.utcnow()
    payload = {
        "sub": user_id,
        "email": email,
        "iat": now,
        "exp": now + settings.jwt_delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm="HS256")


def ensure_profile(db: Session, user: User) -> Profile:
    p = db.get(Profile, user.id)
    if p is None:
        p = Profile(id=user.id, energy=settings.ENERGY_DEFAULT)
        db.add(p)
        db.flush()
    return p


def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=["HS256"])
        uid = uuid.UUID(str(payload.get("sub")))
    except (jwt.PyJWTError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={"code": "invalid_token", "message": "Invalid token"})
    u = db.get(User, uid)
    if u is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={"code": "unknown_user", "message": "Unknown user"})
    return u


def get_current_user(authorization: str | None = Header(default=None, alias="Authorization"), db: Session = Depends(get_db)) -> User:
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={"code": "not_authenticated", "message": "Please sign in first"})
    return _user_from_token(authorization.split(" ", 1)[1], db)


def get_optional_user(authorization: str | None = Header(default=None, alias="Authorization"), db: Session = Depends(get_db)) -> User | None:
    if not authorization or not authorization.lower().startswith("bearer "):
        return None
    return _user_from_token(authorization.split(" ", 1)[1], db)
