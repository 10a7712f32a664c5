from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer

from app.core.security import ADMIN_ROLE, decode_access_token
from app.core.logging import user_id_ctx
from app.schemas.auth import ConsoleUser


# Esta URL debe coincidir con tu endpoint de login
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_current_user(
    request: Request,
    token: str = Depends(oauth2_scheme),
) -> ConsoleUser:
    """
    Obtiene el usuario de consola a partir del token JWT.
    Lanza 401 si no se puede validar.
    """

    # 1) Revisar si el token ha sido revocado (logout)
    revoked_tokens = getattr(request.app.state, "revoked_tokens", {})
    if token in revoked_tokens:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token revoked",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(token)
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = ConsoleUser(username=payload["sub"], role=payload.get("role", ADMIN_ROLE))

    # Guardar el usuario para LOGGING estructurado
    user_id_ctx.set(user.username)

    return user
