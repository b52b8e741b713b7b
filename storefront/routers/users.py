# storefront/routers/users.py
import uuid

from fastapi import APIRouter, Depends, status

from storefront.core.auth import require_auth
from storefront.dependencies import get_user_service
from storefront.schemas.user import UserRead, UserCreate
from storefront.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(
    payload: UserCreate,
    service: UserService = Depends(get_user_service),
):
    """
    Register a new account.

    The password is stored as a bcrypt digest.
    """
    return service.register(payload)


@router.get("/me", response_model=UserRead)
def read_me(
    user_id: uuid.UUID = Depends(require_auth),
    service: UserService = Depends(get_user_service),
):
    """
    Return the authenticated user's profile.

    Auth:
      - Requires a valid bearer token.
    """
    return service.get_user(user_id)
