# storefront/dependencies.py
"""
FastAPI dependencies for objects built once at startup.

`create_app()` stores them on `app.state`; routes receive them with
`Depends(...)` so tests can build an app around any record store.
"""

from fastapi import Request

from storefront.core.config import Settings
from storefront.core.tokens import TokenService
from storefront.services.order_service import OrderService
from storefront.services.user_service import UserService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service
