"""Security utilities for hashing login codes and issuing access tokens."""

import asyncio
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt


def generate_code() -> str:
    """Return a six digit code drawn uniformly from [100000, 999999]."""
    return str(100000 + secrets.randbelow(900000))


def hash_code(code: str, rounds: int = 10) -> str:
    """Hash a login code with bcrypt at the given cost factor."""
    hashed = bcrypt.hashpw(code.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def check_code(code: str, code_hash: str) -> bool:
    """
    Compare a plaintext code with a stored bcrypt hash.

    Malformed hashes compare as a mismatch.
    """
    try:
        return bcrypt.checkpw(code.encode("utf-8"), code_hash.encode("utf-8"))
    except ValueError:
        return False


async def ahash_code(code: str, rounds: int = 10) -> str:
    return await asyncio.to_thread(hash_code, code, rounds)


async def acheck_code(code: str, code_hash: str) -> bool:
    return await asyncio.to_thread(check_code, code, code_hash)


def create_jwt_token(
    data: dict,
    secret_key: str,
    algorithm: str = "HS256",
    expires_delta: timedelta = timedelta(hours=8)
) -> str:
    """
    Creates a JWT (JSON Web Token) with the provided data and expiration time.

    Args:
        data (dict): The payload data to be encoded in the JWT.
        secret_key (str): The signing key.
        algorithm (str, optional): The signing algorithm. Defaults to HS256.
        expires_delta (timedelta, optional): The time until the token expires.
            Defaults to 8 hours.

    Returns:
        str: The encoded JWT string.

    Example:
        >>> token = create_jwt_token({"sub": "64f1c2", "role": "cliente"}, "secret")

    Note:
        The token includes standard JWT claims:
        - exp (expiration time)
        - iat (issued at time)
    """
    to_encode = data.copy()
    now = datetime.now(timezone.utc)
    to_encode.update({
        "exp": now + expires_delta,
        "iat": now
    })
    return jwt.encode(to_encode, secret_key, algorithm=algorithm)


def issue_access_token(user_id: str, email: str, role: str, now_ms: int, settings) -> str:
    """
    Issue the token returned by a successful verification.

    Signed JWT when a secret key is configured, otherwise the unsigned
    ``ok-<user_id>-<now_ms>`` placeholder.
    """
    if not settings.SECRET_KEY:
        return f"ok-{user_id}-{now_ms}"
    payload = {
        "sub": user_id,
        "email": email,
        "role": role,
    }
    return create_jwt_token(
        payload,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )
