# dependencies.py
from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from jobboard.config import Settings
from jobboard.errors import AuthError
from jobboard.models.user import UserType
from jobboard.services import ServiceRegistry
from jobboard.utils.jwt_handler import decode_access_token


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


@dataclass(frozen=True)
class RequestIdentity:
    """Verified caller identity, decoded once from the bearer token."""

    user_id: int
    role: UserType

    @property
    def is_admin(self) -> bool:
        return self.role == UserType.ADMIN


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_services(request: Request) -> ServiceRegistry:
    return request.app.state.services


def get_current_identity(
    token: str | None = Depends(oauth2_scheme),
    settings: Settings = Depends(get_app_settings),
) -> RequestIdentity:
    if not token:
        raise AuthError("Not authenticated")
    payload = decode_access_token(token, settings)
    try:
        user_id = int(payload["sub"])
        role = UserType(payload["role"])
    except (KeyError, TypeError, ValueError) as exc:
        raise AuthError("Invalid token payload") from exc
    return RequestIdentity(user_id=user_id, role=role)


def require_admin(identity: RequestIdentity = Depends(get_current_identity)) -> RequestIdentity:
    if identity.role != UserType.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return identity


def require_applicant(identity: RequestIdentity = Depends(get_current_identity)) -> RequestIdentity:
    if identity.role != UserType.APPLICANT:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Applicant access required")
    return identity
