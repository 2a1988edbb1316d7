"""
Session and registration endpoints.
"""

from fastapi import APIRouter, Depends, Request, status

from hauptgang.core.limiter import AUTH_RATE_LIMIT, limiter

from . import dependencies, schemas, service

router = APIRouter(prefix="/api/v1")


@router.post("/session", status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT, error_message="Too many login attempts. Try again later.")
async def create_session(request: Request, payload: schemas.LoginRequest) -> schemas.AuthResponse:
    return await service.login(payload)


@router.delete("/session")
async def destroy_session(
    context: service.AuthContext = Depends(dependencies.get_auth_context),
) -> dict:
    return await service.logout(context)


@router.post("/registration", status_code=status.HTTP_201_CREATED)
@limiter.limit(AUTH_RATE_LIMIT, error_message="Too many signup attempts. Try again later.")
async def create_registration(request: Request, payload: schemas.RegisterRequest) -> schemas.AuthResponse:
    return await service.register(payload)
