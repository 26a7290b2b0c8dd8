"""Registration, login and the bearer-token dependency shared by REST routes."""

from __future__ import annotations

from collections.abc import Awaitable, Callable

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .errors import DuplicateUserError
from .interface import IdentityStore
from .models import Credentials, Principal
from .schemas import CredentialsRequest
from .stores import InMemoryIdentityStore


def bearer_user(identity: IdentityStore) -> Callable[..., Awaitable[str]]:
    """Build a dependency that resolves ``Authorization: Bearer <token>`` to a user id."""
    scheme = HTTPBearer(auto_error=False)

    async def current_user(
        credentials: HTTPAuthorizationCredentials | None = Depends(scheme),
    ) -> str:
        if credentials is None:
            raise HTTPException(status_code=401, detail="Access token required")
        user_id = identity.resolve_token(credentials.credentials)
        if user_id is None:
            raise HTTPException(status_code=401, detail="Invalid or expired token")
        return user_id

    return current_user


def create_auth_router(identity: InMemoryIdentityStore) -> APIRouter:
    """Create the register/login router bound to an identity store."""
    router = APIRouter(prefix="/api", tags=["auth"])

    def _session(principal: Principal, message: str) -> dict:
        return {
            "message": message,
            "token": identity.issue(principal.id),
            "user": {"id": principal.id, "email": principal.email},
        }

    @router.post("/register", status_code=201)
    async def register(body: CredentialsRequest) -> dict:
        try:
            principal = identity.register(body.email, body.password)
        except DuplicateUserError as e:
            raise HTTPException(status_code=409, detail=str(e)) from e
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        return _session(principal, "User registered successfully")

    @router.post("/login")
    async def login(body: CredentialsRequest) -> dict:
        principal = identity.authenticate(Credentials(email=body.email, password=body.password))
        if principal is None:
            raise HTTPException(status_code=401, detail="Invalid credentials")
        return _session(principal, "Login successful")

    return router
