"""
Integration tests for the HTTP API.
"""

import asyncio
from decimal import Decimal
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from library_rental_api.app.core.exceptions import CatalogSyncError
from library_rental_api.app.main import app
from library_rental_api.app.schemas.book import ExternalBook
from library_rental_api.app.services.book_service import BookService

from .conftest import book_record


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def renter(client):
    response = client.post(
        "/api/v1/users/",
        json={"name": "Ada Lovelace", "email": "ada@example.com", "phone_number": "555-0100"},
    )
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def stocked_book():
    return asyncio.run(BookService.save_book(book_record(external_id=1001, price="15.99", stock=3)))


def create_reservation(client, user_id, book_id, rental_days=7, start_date="2024-01-01"):
    return client.post(
        "/api/v1/reservations/",
        json={
            "user_id": user_id,
            "book_external_id": book_id,
            "rental_days": rental_days,
            "start_date": start_date,
        },
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/v1/health/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["books"] == 0


class TestUserEndpoints:
    """Tests for user CRUD endpoints."""

    def test_create_and_get(self, client, renter):
        response = client.get(f"/api/v1/users/{renter['id']}")

        assert response.status_code == 200
        assert response.json()["email"] == "ada@example.com"

    def test_duplicate_email_conflicts(self, client, renter):
        response = client.post("/api/v1/users/", json={"name": "Copy", "email": "ada@example.com"})

        assert response.status_code == 409

    def test_invalid_email_is_unprocessable(self, client):
        response = client.post("/api/v1/users/", json={"name": "Bad", "email": "nope"})

        assert response.status_code == 422

    def test_update_and_delete(self, client, renter):
        response = client.put(
            f"/api/v1/users/{renter['id']}",
            json={"name": "Ada King", "email": "ada.king@example.com"},
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Ada King"

        assert client.delete(f"/api/v1/users/{renter['id']}").status_code == 204
        assert client.get(f"/api/v1/users/{renter['id']}").status_code == 404

    def test_out_of_range_id_is_unprocessable(self, client):
        assert client.get(f"/api/v1/users/{10**20}").status_code == 422
        assert client.delete(f"/api/v1/users/{10**20}").status_code == 422

    def test_list_users(self, client, renter):
        response = client.get("/api/v1/users/")

        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == [renter["id"]]


class TestBookEndpoints:
    """Tests for catalog endpoints."""

    def test_get_book(self, client, stocked_book):
        response = client.get("/api/v1/books/1001")

        assert response.status_code == 200
        data = response.json()
        assert Decimal(str(data["price"])) == Decimal("15.99")
        assert data["available_quantity"] == 3

    def test_get_missing_book(self, client):
        assert client.get("/api/v1/books/1").status_code == 404

    def test_out_of_range_id_is_unprocessable(self, client):
        assert client.get(f"/api/v1/books/{10**20}").status_code == 422
        assert client.put(f"/api/v1/books/{10**20}/stock", params={"stock_quantity": 1}).status_code == 422

    def test_update_stock(self, client, stocked_book):
        response = client.put("/api/v1/books/1001/stock", params={"stock_quantity": 8})

        assert response.status_code == 200
        assert response.json()["available_quantity"] == 8

    def test_update_stock_below_reserved_conflicts(self, client, renter, stocked_book):
        create_reservation(client, renter["id"], 1001)
        create_reservation(client, renter["id"], 1001)

        response = client.put("/api/v1/books/1001/stock", params={"stock_quantity": 1})

        assert response.status_code == 409

    def test_sync(self, client):
        with patch("library_rental_api.app.services.book_service.ExternalBookClient") as client_cls:
            client_cls.return_value.url = "https://catalog.test/books"
            client_cls.return_value.fetch_all_books.return_value = [
                ExternalBook(id=5, title="Beloved", author_name=["Toni Morrison"], price=Decimal("13.00")),
            ]
            response = client.post("/api/v1/books/sync")

        assert response.status_code == 200
        assert [b["external_id"] for b in response.json()] == [5]
        assert client.get("/api/v1/books/").json()[0]["stock_quantity"] == 10

    def test_sync_failure_is_bad_gateway(self, client):
        with patch("library_rental_api.app.services.book_service.ExternalBookClient") as client_cls:
            client_cls.return_value.url = "https://catalog.test/books"
            client_cls.return_value.fetch_all_books.side_effect = CatalogSyncError("catalog down")
            response = client.post("/api/v1/books/sync")

        assert response.status_code == 502


class TestReservationEndpoints:
    """Tests for the reservation ledger endpoints."""

    def test_reservation_lifecycle(self, client, renter, stocked_book):
        created = create_reservation(client, renter["id"], 1001, rental_days=7)
        assert created.status_code == 201
        reservation = created.json()
        assert reservation["status"] == "ACTIVE"
        assert Decimal(str(reservation["base_fee"])) == Decimal("111.93")
        assert reservation["expected_return_date"] == "2024-01-08"
        assert client.get("/api/v1/books/1001").json()["available_quantity"] == 2

        returned = client.post(
            f"/api/v1/reservations/{reservation['id']}/return",
            json={"return_date": "2024-01-11"},
        )
        assert returned.status_code == 200
        data = returned.json()
        assert data["status"] == "OVERDUE"
        assert Decimal(str(data["late_fee"])) == Decimal("7.20")
        assert Decimal(str(data["total_fee"])) == Decimal("119.13")
        assert client.get("/api/v1/books/1001").json()["available_quantity"] == 3

    def test_second_return_conflicts(self, client, renter, stocked_book):
        reservation = create_reservation(client, renter["id"], 1001).json()
        url = f"/api/v1/reservations/{reservation['id']}/return"

        assert client.post(url, json={"return_date": "2024-01-02"}).status_code == 200
        assert client.post(url, json={"return_date": "2024-01-03"}).status_code == 409

    def test_non_positive_rental_days_is_bad_request(self, client, renter, stocked_book):
        response = create_reservation(client, renter["id"], 1001, rental_days=0)

        assert response.status_code == 400

    def test_rental_period_beyond_calendar_is_bad_request(self, client, renter, stocked_book):
        response = create_reservation(client, renter["id"], 1001, rental_days=10**7)

        assert response.status_code == 400
        assert client.get("/api/v1/books/1001").json()["available_quantity"] == 3

    def test_out_of_range_ids_are_unprocessable(self, client, renter, stocked_book):
        assert create_reservation(client, 10**20, 1001).status_code == 422
        assert client.get(f"/api/v1/reservations/{10**20}").status_code == 422
        assert client.get(f"/api/v1/reservations/user/{10**20}").status_code == 422
        assert client.post(f"/api/v1/reservations/{10**20}/return", json={"return_date": "2024-01-02"}).status_code == 422

    def test_unknown_user_is_not_found(self, client, stocked_book):
        assert create_reservation(client, 999, 1001).status_code == 404

    def test_out_of_stock_conflicts(self, client, renter):
        asyncio.run(BookService.save_book(book_record(external_id=2, stock=1, available=0)))

        assert create_reservation(client, renter["id"], 2).status_code == 409
        assert client.get("/api/v1/reservations/").json() == []

    def test_queries(self, client, renter, stocked_book):
        old = create_reservation(client, renter["id"], 1001, rental_days=3, start_date="2020-01-01").json()
        returned = create_reservation(client, renter["id"], 1001).json()
        client.post(f"/api/v1/reservations/{returned['id']}/return", json={"return_date": "2024-01-02"})

        active = client.get("/api/v1/reservations/active").json()
        overdue = client.get("/api/v1/reservations/overdue").json()
        mine = client.get(f"/api/v1/reservations/user/{renter['id']}").json()

        assert [r["id"] for r in active] == [old["id"]]
        assert [r["id"] for r in overdue] == [old["id"]]
        assert overdue[0]["status"] == "ACTIVE"
        assert len(mine) == 2

    def test_get_reservation(self, client, renter, stocked_book):
        reservation = create_reservation(client, renter["id"], 1001).json()

        first = client.get(f"/api/v1/reservations/{reservation['id']}")
        second = client.get(f"/api/v1/reservations/{reservation['id']}")

        assert first.status_code == 200
        assert first.json() == second.json() == reservation

    def test_get_missing_reservation(self, client):
        assert client.get("/api/v1/reservations/77").status_code == 404
