"""Authentication router for the replica service."""
import hashlib
import hmac
import logging
import secrets
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from todays.config import AUTH_SECRET, JWT_ALGORITHM, TOKEN_EXPIRE_DAYS
from todays.db.config import get_session
from todays.models.user import User
from todays.schemas.auth import SignInRequest, SignUpRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])

PBKDF2_ITERATIONS = 240_000


def hash_password(password: str) -> str:
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${salt}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    try:
        _, iterations, salt, expected = stored.split("$")
    except ValueError:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), int(iterations))
    return hmac.compare_digest(digest.hex(), expected)


def create_jwt_token(user_id: str, email: str) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "email": email,
        "exp": now + timedelta(days=TOKEN_EXPIRE_DAYS),
        "iat": now,
    }
    return jwt.encode(payload, AUTH_SECRET, algorithm=JWT_ALGORITHM)


@router.post("/sign-up", response_model=TokenResponse)
async def sign_up(request: SignUpRequest, session: Session = Depends(get_session)):
    existing = session.exec(select(User).where(User.email == request.email)).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists"
        )

    try:
        user = User(
            id=str(uuid.uuid4()),
            email=request.email,
            name=request.name,
            password_hash=hash_password(request.password),
        )
        session.add(user)
        session.commit()
        session.refresh(user)
    except Exception as e:
        session.rollback()
        logger.error(f"Failed to create user {request.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to create user: {str(e)}"
        )

    logger.info(f"User {user.id} signed up")
    return TokenResponse(token=create_jwt_token(user.id, user.email), user_id=user.id, email=user.email)


@router.post("/sign-in", response_model=TokenResponse)
async def sign_in(request: SignInRequest, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == request.email)).first()

    if not user or not verify_password(request.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    return TokenResponse(token=create_jwt_token(user.id, user.email), user_id=user.id, email=user.email)
