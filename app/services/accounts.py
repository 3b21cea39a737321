import asyncio
from typing import Optional

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from app.models.user import User

logger = get_logger()

BCRYPT_ROUNDS = 10
# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


class AccountError(Exception):
    pass


class DuplicateEmail(AccountError):
    pass


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]


def hash_password(password: str) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def _normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


async def create_user(db: AsyncSession, email: Optional[str], password: Optional[str], name: Optional[str] = None) -> User:
    email = _normalize_email(email)
    if not email or not password:
        raise AccountError("Missing fields")

    password_hash = await asyncio.to_thread(hash_password, password)
    user = User(email=email, password_hash=password_hash, name=(name or "").strip())
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        logger.info("Signup rejected, email exists", email=email)
        raise DuplicateEmail("Unable to create account (maybe email exists)")
    await db.refresh(user)
    logger.info("User created", user_id=user.id)
    return user


async def authenticate(db: AsyncSession, email: Optional[str], password: Optional[str]) -> Optional[User]:
    email = _normalize_email(email)
    if not email or not password:
        return None
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user is None:
        logger.info("Login failed, unknown email", email=email)
        return None
    ok = await asyncio.to_thread(verify_password, password, user.password_hash)
    if not ok:
        logger.info("Login failed, bad password", user_id=user.id)
        return None
    return user


async def get_user(db: AsyncSession, user_id: int) -> Optional[User]:
    return await db.get(User, user_id)
