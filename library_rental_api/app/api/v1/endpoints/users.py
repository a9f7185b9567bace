"""
User endpoints for API v1.

Plain CRUD over renters.  Email addresses are unique; collisions are
reported as HTTP 409.
"""

from typing import List

from fastapi import APIRouter, Path, status

from library_rental_api.app.core.db import MAX_ROW_ID
from library_rental_api.app.core.exceptions import LibraryError
from library_rental_api.app.schemas.user import UserCreate, UserRead, UserUpdate
from library_rental_api.app.services.user_service import UserService
from .errors import to_http_error


router = APIRouter()


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(user: UserCreate) -> UserRead:
    """Register a new renter."""
    try:
        return await UserService.create_user(user)
    except LibraryError as e:
        raise to_http_error(e)


@router.get("/", response_model=List[UserRead])
async def list_users() -> List[UserRead]:
    return await UserService.list_users()


@router.get("/{user_id}", response_model=UserRead)
async def get_user(user_id: int = Path(..., le=MAX_ROW_ID, description="ID of the user")) -> UserRead:
    try:
        return await UserService.get_user(user_id)
    except LibraryError as e:
        raise to_http_error(e)


@router.put("/{user_id}", response_model=UserRead)
async def update_user(
    user: UserUpdate,
    user_id: int = Path(..., le=MAX_ROW_ID, description="ID of the user"),
) -> UserRead:
    """Replace a renter's name, email and phone number."""
    try:
        return await UserService.update_user(user_id, user)
    except LibraryError as e:
        raise to_http_error(e)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: int = Path(..., le=MAX_ROW_ID, description="ID of the user")) -> None:
    """Delete a renter.

    Users with reservations on record cannot be deleted (HTTP 409).
    """
    try:
        await UserService.delete_user(user_id)
    except LibraryError as e:
        raise to_http_error(e)
    return None
