"""User routes - registration and current identity."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict

from secretsync.dashboard.deps import get_identity, get_user_service
from secretsync.models.identity import Identity
from secretsync.services import UserService

router = APIRouter(tags=["users"])


class UserRegister(BaseModel):
    email: str
    name: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    is_admin: bool = False

    model_config = ConfigDict(from_attributes=True)


@router.post("/register", response_model=UserResponse, status_code=201)
def register_user(
    payload: UserRegister, users: UserService = Depends(get_user_service)
):
    """Register a user. Pending invites for the email become active."""
    return users.register_user(payload.email, payload.name)


@router.get("/me", response_model=UserResponse)
def current_user(
    identity: Identity = Depends(get_identity),
    users: UserService = Depends(get_user_service),
):
    """The user behind the X-User-Id header."""
    return users.get_user(identity.user_id)
