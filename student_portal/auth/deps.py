from __future__ import annotations

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from student_portal.config import Config
from student_portal.errors import Internal, InvalidToken
from student_portal.models import StudentIdentity

from .security import TokenService


_bearer = HTTPBearer(auto_error=False)


def get_config(request: Request) -> Config:
    cfg = getattr(request.app.state, "cfg", None)
    if cfg is None:
        raise Internal("server_config_missing")
    return cfg


def get_token_service(request: Request) -> TokenService:
    tokens = getattr(request.app.state, "tokens", None)
    if tokens is None:
        raise Internal("server_config_missing")
    return tokens


def get_current_student(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    tokens: TokenService = Depends(get_token_service),
) -> StudentIdentity:
    """Authenticate a request from its `Authorization: Bearer <jwt>` header.

    The token is verified without touching the database. The returned identity is a
    plain value scoped to this request; handlers receive it by argument.
    """

    if credentials is None or not credentials.credentials:
        raise InvalidToken("Access token required")

    return tokens.verify(credentials.credentials)
