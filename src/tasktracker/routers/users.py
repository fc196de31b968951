from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from ..schemas import (
    ErrorOut,
    LoginRequest,
    MessageOut,
    PublicUserOut,
    RegisterRequest,
    UserListEnvelope,
)
from ..user_service import UserService

router = APIRouter(tags=["users"])


def get_user_service(request: Request) -> UserService:
    """
    Dependency returning the UserService built by create_app.
    """
    return request.app.state.user_service


# PUBLIC_INTERFACE
@router.post(
    "/register",
    response_model=MessageOut,
    status_code=status.HTTP_201_CREATED,
    summary="Register User",
    responses={
        400: {"model": ErrorOut, "description": "Email or password missing"},
        409: {"model": ErrorOut, "description": "User already exists"},
    },
)
def register(payload: RegisterRequest, users: UserService = Depends(get_user_service)) -> MessageOut:
    """
    Register a new user.
    """
    users.register(payload.to_user())
    return MessageOut(message="user registered")


# PUBLIC_INTERFACE
@router.post(
    "/login",
    response_model=MessageOut,
    summary="Login",
    responses={401: {"model": ErrorOut, "description": "Invalid credentials"}},
)
def login(payload: LoginRequest, users: UserService = Depends(get_user_service)) -> MessageOut:
    users.login(payload.email, payload.password)
    return MessageOut(message="login successful")


# PUBLIC_INTERFACE
@router.get("/users", response_model=UserListEnvelope, summary="List Users")
def list_users(users: UserService = Depends(get_user_service)) -> UserListEnvelope:
    """
    List every registered user in its public form (email only).
    """
    return UserListEnvelope(users=[PublicUserOut.from_domain(u) for u in users.list()])


# PUBLIC_INTERFACE
@router.delete("/users", response_model=MessageOut, summary="Clear Users")
def clear_users(users: UserService = Depends(get_user_service)) -> MessageOut:
    """
    Remove every user. Intended for test environments.
    """
    users.clear()
    return MessageOut(message="users deleted")
