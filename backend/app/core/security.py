from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

ACCESS_TOKEN_TYPE = "access"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    *,
    subject: str,
    secret: str,
    alg: str,
    expires_minutes: int,
    claims: Optional[Dict[str, Any]] = None,
) -> str:
    issued_at = datetime.now(timezone.utc)
    payload: Dict[str, Any] = dict(claims or {})
    payload.update(
        sub=subject,
        typ=ACCESS_TOKEN_TYPE,
        iat=int(issued_at.timestamp()),
        exp=int((issued_at + timedelta(minutes=expires_minutes)).timestamp()),
    )
    return jwt.encode(payload, secret, algorithm=alg)


def decode_access_token(token: str, *, secret: str, alg: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises JWTError for anything but an access token."""
    payload = jwt.decode(token, secret, algorithms=[alg])
    if payload.get("typ") != ACCESS_TOKEN_TYPE:
        raise JWTError("Unexpected token type")
    return payload
