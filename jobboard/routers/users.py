# users.py
from fastapi import APIRouter, Depends, Response, status

from jobboard.routers.dependencies import RequestIdentity, get_current_identity, get_services
from jobboard.schemas.user import PasswordChange, UserRead, UserUpdate
from jobboard.services import ServiceRegistry


router = APIRouter()


@router.get("/me", response_model=UserRead)
def read_current_user(
    identity: RequestIdentity = Depends(get_current_identity),
    services: ServiceRegistry = Depends(get_services),
) -> UserRead:
    return services.users.get_user(identity.user_id)


@router.put("/me", response_model=UserRead)
def update_current_user(
    update: UserUpdate,
    identity: RequestIdentity = Depends(get_current_identity),
    services: ServiceRegistry = Depends(get_services),
) -> UserRead:
    return services.users.update_user(identity.user_id, update)


@router.put("/me/password", status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    payload: PasswordChange,
    identity: RequestIdentity = Depends(get_current_identity),
    services: ServiceRegistry = Depends(get_services),
) -> Response:
    services.users.rotate_password(identity.user_id, payload.current_password, payload.new_password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
def delete_current_user(
    identity: RequestIdentity = Depends(get_current_identity),
    services: ServiceRegistry = Depends(get_services),
) -> Response:
    services.users.delete_user(identity.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
