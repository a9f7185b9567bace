"""
Tests for the user directory.
"""

from datetime import date

import pytest
from pydantic import ValidationError as SchemaValidationError

from library_rental_api.app.core.exceptions import ConflictError, NotFoundError
from library_rental_api.app.schemas.reservation import ReservationCreate
from library_rental_api.app.schemas.user import UserCreate, UserUpdate
from library_rental_api.app.services.reservation_service import ReservationService
from library_rental_api.app.services.user_service import UserService

pytestmark = pytest.mark.asyncio


class TestUserCrud:
    """Tests for basic user operations."""

    async def test_create_and_get(self, user):
        fetched = await UserService.get_user(user.id)

        assert fetched == user
        assert fetched.email == "ada@example.com"
        assert fetched.phone_number == "555-0100"
        assert fetched.created_at is not None

    async def test_duplicate_email_is_rejected(self, user):
        with pytest.raises(ConflictError):
            await UserService.create_user(UserCreate(name="Someone Else", email="ADA@example.com"))

        assert len(await UserService.list_users()) == 1

    async def test_invalid_email_is_rejected_by_schema(self):
        with pytest.raises(SchemaValidationError):
            UserCreate(name="Nobody", email="not-an-email")

    async def test_get_missing_user(self):
        with pytest.raises(NotFoundError):
            await UserService.get_user(41)

    async def test_list_users(self, user):
        other = await UserService.create_user(UserCreate(name="Grace Hopper", email="grace@example.com"))

        users = await UserService.list_users()

        assert [u.id for u in users] == [user.id, other.id]

    async def test_update_user(self, user):
        updated = await UserService.update_user(
            user.id,
            UserUpdate(name="Augusta Ada King", email="ada@example.com", phone_number=None),
        )

        assert updated.name == "Augusta Ada King"
        assert updated.phone_number is None
        assert updated.created_at == user.created_at

    async def test_update_to_taken_email_is_rejected(self, user):
        other = await UserService.create_user(UserCreate(name="Grace Hopper", email="grace@example.com"))

        with pytest.raises(ConflictError):
            await UserService.update_user(other.id, UserUpdate(name="Grace Hopper", email="ada@example.com"))

        assert (await UserService.get_user(other.id)).email == "grace@example.com"

    async def test_update_missing_user(self):
        with pytest.raises(NotFoundError):
            await UserService.update_user(5, UserUpdate(name="Ghost", email="ghost@example.com"))

    async def test_delete_user(self, user):
        await UserService.delete_user(user.id)

        with pytest.raises(NotFoundError):
            await UserService.get_user(user.id)

    async def test_delete_missing_user(self):
        with pytest.raises(NotFoundError):
            await UserService.delete_user(5)

    async def test_user_with_reservations_cannot_be_deleted(self, user, book):
        await ReservationService.create_reservation(
            ReservationCreate(
                user_id=user.id,
                book_external_id=book.external_id,
                rental_days=3,
                start_date=date(2024, 5, 1),
            )
        )

        with pytest.raises(ConflictError):
            await UserService.delete_user(user.id)

        assert await UserService.get_user(user.id) == user
