import logging
import uuid
from datetime import timedelta
from typing import Optional

import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from passlib.context import CryptContext

from . import config
from .database import KeyedStore, get_store
from .exceptions import BadRequestError, UnauthorizedError
from .models import USER_EMAIL_PREFIX, USER_PREFIX, UserProfile, UserRecord, utcnow
from .schemas import UserCreate

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/login")

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = utcnow() + (expires_delta or timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, config.SECRET_KEY, algorithm=config.ALGORITHM)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def load_user(store: KeyedStore, user_id: str) -> Optional[UserRecord]:
    doc = store.get(f"{USER_PREFIX}{user_id}")
    return UserRecord.model_validate(doc) if doc else None


def register_user(store: KeyedStore, user: UserCreate) -> UserRecord:
    email = _normalize_email(user.email)
    if not email or not user.password or not user.name.strip():
        raise BadRequestError("Email, password, and name are required")

    user_id = uuid.uuid4().hex
    # the email index is claimed first so two signups with one email cannot both win
    if not store.set_if_absent(f"{USER_EMAIL_PREFIX}{email}", {"user_id": user_id}):
        raise BadRequestError("Email already registered")

    record = UserRecord(
        id=user_id,
        email=email,
        name=user.name.strip(),
        phone=user.phone or "",
        college_email=user.college_email or "",
        password_hash=hash_password(user.password),
    )
    store.set(f"{USER_PREFIX}{user_id}", record.model_dump(mode="json"))
    logger.info("[Auth] Registered user %s", user_id)
    return record


def authenticate(store: KeyedStore, email: str, password: str) -> str:
    """Return a bearer token for valid credentials."""
    index = store.get(f"{USER_EMAIL_PREFIX}{_normalize_email(email)}")
    record = load_user(store, index["user_id"]) if index else None
    if record is None or not verify_password(password, record.password_hash):
        logger.info("[Auth] Rejected login")
        raise UnauthorizedError("Invalid credentials")
    return create_access_token({"sub": record.id})


def get_current_user(token: str = Depends(oauth2_scheme), store: KeyedStore = Depends(get_store)) -> UserProfile:
    credentials_error = UnauthorizedError("Could not validate credentials")
    try:
        payload = jwt.decode(token, config.SECRET_KEY, algorithms=[config.ALGORITHM])
    except jwt.InvalidTokenError:
        raise credentials_error
    user_id = payload.get("sub")
    if not user_id:
        raise credentials_error

    record = load_user(store, user_id)
    if record is None:
        raise credentials_error
    return record.profile()
