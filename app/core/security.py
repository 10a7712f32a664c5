import uuid
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"
ADMIN_ROLE = "admin"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


@lru_cache
def _admin_password_hash() -> str:
    # Se hashea una sola vez la contraseña configurada
    return hash_password(settings.ADMIN_PASSWORD)


def authenticate_console_user(username: str, password: str) -> bool:
    """
    Chequeo de credenciales estáticas de la consola (ADMIN_USERNAME / ADMIN_PASSWORD).
    """
    if username != settings.ADMIN_USERNAME:
        return False
    return verify_password(password, _admin_password_hash())


def create_access_token(
    username: str,
    role: str = ADMIN_ROLE,
    expires_delta: Optional[timedelta] = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    expire = datetime.now(timezone.utc) + expires_delta

    to_encode = {
        "sub": username,
        "role": role,
        "exp": expire,
        "jti": uuid.uuid4().hex,  # cada token es único (logout revoca solo ese)
    }

    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decodifica el JWT.

    Devuelve el payload (con al menos `sub` y `role`) o None si el token
    es inválido o expiró.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None

    if not payload.get("sub"):
        return None
    return payload


def revoke_token(revoked_tokens: Dict[str, float], token: str, now: Optional[float] = None) -> None:
    """
    Agrega el token a la lista de revocados (token -> exp).

    Los tokens ya expirados se descartan: el decode los rechaza igual.
    """
    if now is None:
        now = datetime.now(timezone.utc).timestamp()

    for expired in [t for t, exp in revoked_tokens.items() if exp <= now]:
        del revoked_tokens[expired]

    payload = decode_access_token(token)
    if payload is None or "exp" not in payload:
        return
    revoked_tokens[token] = float(payload["exp"])
