"""
Top-level router for version 1 of the API.

This router aggregates domain-specific routers (books, users,
reservations) under a unified prefix.  When new endpoints are added,
update this file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import books, users, reservations, info

router = APIRouter()

router.include_router(books.router, prefix="/books", tags=["books"])
router.include_router(users.router, prefix="/users", tags=["users"])
router.include_router(reservations.router, prefix="/reservations", tags=["reservations"])
router.include_router(info.router, prefix="/health", tags=["health"])
