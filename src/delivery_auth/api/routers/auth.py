"""
delivery_auth.api.routers.auth

Public registration/login endpoints and the authenticated principal's profile.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from starlette.status import HTTP_201_CREATED

from delivery_auth.api.deps import account_service
from delivery_auth.auth.deps import get_principal, require_roles
from delivery_auth.auth.models import AuthenticatedPrincipal, PrincipalType, Role
from delivery_auth.services.accounts import AccountService

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class _Body(BaseModel):
    # Accept both snake_case and the camelCase the web/mobile clients send.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class RegisterRequest(_Body):
    # Everything optional here; required-field rules live in AccountService so
    # null, absent and "" are all reported the same way.
    email: str | None = Field(default=None, validation_alias=AliasChoices("email", "identifier"))
    password: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    location: str | None = None
    role: str | None = None
    permissions: list[str] | None = None
    business_license: str | None = None
    vehicle_type: str | None = None
    license_number: str | None = None


class LoginRequest(_Body):
    principal_type: PrincipalType = PrincipalType.customer
    email: str | None = Field(default=None, validation_alias=AliasChoices("email", "identifier"))
    password: str | None = None


class AuthResponse(BaseModel):
    status: str = "success"
    token: str
    principal: dict[str, Any]


class ProfileResponse(BaseModel):
    status: str = "success"
    principal: dict[str, Any]


class ProfileUpdateRequest(_Body):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    location: str | None = None
    is_available: bool | None = None


class PasswordChangeRequest(_Body):
    current_password: str | None = None
    new_password: str | None = None


class LocationUpdateRequest(_Body):
    longitude: float | None = None
    latitude: float | None = None


@router.post(
    "/register/{principal_type}",
    response_model=AuthResponse,
    status_code=HTTP_201_CREATED,
)
async def register(
    principal_type: PrincipalType,
    body: RegisterRequest,
    accounts: AccountService = Depends(account_service),
) -> AuthResponse:
    result = await accounts.register(principal_type, body.model_dump())
    return AuthResponse(token=result.token, principal=result.principal)


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(account_service),
) -> AuthResponse:
    result = await accounts.login(body.principal_type, body.email, body.password)
    return AuthResponse(token=result.token, principal=result.principal)


@router.get("/me", response_model=ProfileResponse)
async def get_me(
    principal: AuthenticatedPrincipal = Depends(get_principal),
    accounts: AccountService = Depends(account_service),
) -> ProfileResponse:
    return ProfileResponse(principal=await accounts.get_profile(principal))


@router.patch("/me", response_model=ProfileResponse)
async def update_me(
    body: ProfileUpdateRequest,
    principal: AuthenticatedPrincipal = Depends(get_principal),
    accounts: AccountService = Depends(account_service),
) -> ProfileResponse:
    updated = await accounts.update_profile(principal, body.model_dump(exclude_unset=True))
    return ProfileResponse(principal=updated)


@router.post("/me/password")
async def change_password(
    body: PasswordChangeRequest,
    principal: AuthenticatedPrincipal = Depends(get_principal),
    accounts: AccountService = Depends(account_service),
) -> dict[str, str]:
    await accounts.change_credential(
        principal,
        current_password=body.current_password,
        new_password=body.new_password,
    )
    return {"status": "success"}


@router.patch("/me/location")
async def update_location(
    body: LocationUpdateRequest,
    principal: AuthenticatedPrincipal = Depends(require_roles(Role.delivery_personnel)),
    accounts: AccountService = Depends(account_service),
) -> dict[str, Any]:
    location = await accounts.update_location(
        principal, longitude=body.longitude, latitude=body.latitude
    )
    return {"status": "success", "current_location": location}


# --- Module Notes -----------------------------------------------------------
# Registration deliberately returns a usable token even for restaurant operators
# still pending approval; only login is gated.
