# auth.py
import logging

from fastapi import APIRouter, Depends, status

from jobboard.config import Settings
from jobboard.models.user import UserType
from jobboard.routers.dependencies import get_app_settings, get_services
from jobboard.schemas.user import Token, UserCreate, UserLogin, UserRead
from jobboard.services import ServiceRegistry
from jobboard.utils.jwt_handler import create_access_token


router = APIRouter()

logger = logging.getLogger(__name__)


@router.post("/signup", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def signup(
    user_in: UserCreate,
    services: ServiceRegistry = Depends(get_services),
    settings: Settings = Depends(get_app_settings),
) -> UserRead:
    if user_in.user_type == UserType.ADMIN and not settings.allow_admin_signup:
        # Admin accounts come from scripts/create_admin.py.
        logger.info("auth.signup admin role ignored email=%s", user_in.email)
        user_in = user_in.model_copy(update={"user_type": UserType.APPLICANT})
    return services.users.create_user(user_in)


@router.post("/login", response_model=Token)
def login(
    user_in: UserLogin,
    services: ServiceRegistry = Depends(get_services),
    settings: Settings = Depends(get_app_settings),
) -> Token:
    user = services.users.validate_login(user_in.email, user_in.password)
    token = create_access_token({"sub": str(user.id), "role": user.user_type.value}, settings)
    return Token(access_token=token, token_type="bearer")
