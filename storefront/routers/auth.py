# storefront/routers/auth.py
from fastapi import APIRouter, Depends

from storefront.dependencies import get_user_service
from storefront.schemas.auth import LoginRequest, TokenRead
from storefront.services.user_service import UserService

router = APIRouter(tags=["Auth"])


@router.post("/login", response_model=TokenRead)
def login(
    payload: LoginRequest,
    service: UserService = Depends(get_user_service),
):
    """
    Exchange email + password for a bearer token.

    Wrong email and wrong password produce the same 401.
    """
    return service.login(payload)
