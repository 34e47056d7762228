import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import create_access_token, ensure_profile, get_current_user, get_db, hash_password, verify_password
from ..errors import ValidationFailed
from ..models import User
from ..reputation import can_post, tier_for
from ..schemas import CredentialsIn, TokenOut, SessionOut
from .profile import tier_out


logger = logging.getLogger("youlin.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


def _normalize_email(raw: str) -> str:
    email = raw.strip().lower()
    local, _, domain = email.partition("@")
    if not local or "." not in domain:
        raise ValidationFailed("Please enter a valid email address", code="invalid_email")
    return email


@router.post("/signup", response_model=TokenOut)
def signup(payload: CredentialsIn, db: Session = Depends(get_db)):
    email = _normalize_email(payload.email)
    if db.query(User).filter(User.email == email).one_or_none():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail={"code": "email_taken", "message": "Email already registered"})
    user = User(email=email, password_hash=hash_password(payload.password))
    db.add(user)
    db.flush()
    ensure_profile(db, user)
    logger.info("signup user=%s", user.id)
    return TokenOut(access_token=create_access_token(str(user.id), user.email))


@router.post("/signin", response_model=TokenOut)
def signin(payload: CredentialsIn, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    user = db.query(User).filter(User.email == email).one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail={"code": "invalid_credentials", "message": "Invalid email or password"})
    # backfill a missing profile row
    ensure_profile(db, user)
    return TokenOut(access_token=create_access_token(str(user.id), user.email))


@router.get("/session", response_model=SessionOut)
def current_session(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = ensure_profile(db, user)
    return SessionOut(
        user_id=str(user.id),
        email=user.email,
        energy=profile.energy,
        tier=tier_out(tier_for(profile.energy)),
        can_post_seek=can_post("seek", profile.energy),
    )


@router.post("/signout")
def signout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy.
    logger.info("signout user=%s", user.id)
    return {"detail": "signed_out"}
