from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordRequestForm

from app.api.v1.dependencies_auth import get_current_user
from app.core.security import authenticate_console_user, create_access_token, revoke_token
from app.schemas.auth import ConsoleUser, Token

import logging
logger = logging.getLogger("api.auth")

router = APIRouter(
    prefix="/api/v1/auth",
    tags=["auth"],
)


@router.post("/login", response_model=Token)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
):
    username = form_data.username
    client_ip = request.client.host if request.client else None

    if not authenticate_console_user(username, form_data.password):
        logger.warning(
            "login_failed",
            extra={
                "operation": "auth_login",
                "resource": "console_user",
                "username": username,
                "status_code": 401,
                "ip": client_ip,
            },
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    access_token = create_access_token(username=username)

    logger.info(
        "login_success",
        extra={
            "operation": "auth_login",
            "resource": "console_user",
            "username": username,
            "status_code": 200,
            "ip": client_ip,
        },
    )

    return Token(access_token=access_token)


@router.get("/me", response_model=ConsoleUser)
def read_current_user(current_user: ConsoleUser = Depends(get_current_user)):
    return current_user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    current_user: ConsoleUser = Depends(get_current_user),
):
    """
    Logout: revoca el token actual.
    """

    # Extraer el token crudo del header Authorization
    auth_header = request.headers.get("Authorization", "")
    parts = auth_header.split()
    token = parts[1] if len(parts) == 2 and parts[0].lower() == "bearer" else None

    if token:
        if not hasattr(request.app.state, "revoked_tokens"):
            request.app.state.revoked_tokens = {}

        revoke_token(request.app.state.revoked_tokens, token)

    logger.info(
        "logout_success",
        extra={
            "operation": "auth_logout",
            "resource": "console_user",
            "username": current_user.username,
            "status_code": 204,
            "ip": request.client.host if request.client else None,
        },
    )
