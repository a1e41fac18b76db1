from decimal import Decimal

import pytest


@pytest.fixture
def finance_headers(make_user, auth_headers):
    return auth_headers(make_user("FINANCE"))


def book_and_pay(client, headers, departure_id, passengers=1, amount=None):
    booking = client.post("/api/bookings/", headers=headers, json={
        "departure_id": departure_id,
        "passengers": [{"full_name": f"Guest {i}", "gender": "OTHER"} for i in range(passengers)]
    }).json()
    if amount is not None:
        client.post("/api/payments/", headers=headers, json={
            "booking_id": booking["id"], "method": "CASH", "amount": str(amount)
        })
    return booking


def test_summary(client, customer, auth_headers, finance_headers, make_trip, make_departure):
    departure = make_departure(make_trip(), base_price="1000", capacity=10)
    headers = auth_headers(customer)
    book_and_pay(client, headers, departure.id, amount=1000)
    book_and_pay(client, headers, departure.id, amount=200)
    book_and_pay(client, headers, departure.id)

    response = client.get("/api/reports/summary", headers=finance_headers)

    assert response.status_code == 200
    data = response.json()
    assert data["total_bookings"] == 3
    assert data["confirmed_bookings"] == 1
    assert data["pending_bookings"] == 2
    assert data["total_customers"] == 1
    # only confirmed or completed bookings count as revenue
    assert Decimal(data["total_revenue"]) == Decimal("1000")
    assert len(data["recent_bookings"]) == 3
    assert data["recent_bookings"][0]["trip_title"]


def test_revenue(client, customer, auth_headers, finance_headers, make_trip, make_departure):
    busy = make_departure(make_trip(title="Umrah Premium"), base_price="1800", capacity=10)
    quiet = make_departure(make_trip(title="Dubai Luxury"), base_price="500", capacity=10)
    headers = auth_headers(customer)
    book_and_pay(client, headers, busy.id, amount=1800)
    book_and_pay(client, headers, busy.id, amount=1800)
    book_and_pay(client, headers, quiet.id, amount=500)

    response = client.get("/api/reports/revenue", headers=finance_headers)

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["total_revenue"]) == Decimal("4100")
    assert Decimal(data["expected_revenue"]) == Decimal("4100")
    assert data["total_bookings"] == 3
    assert [(p["method"], p["count"]) for p in data["payments_by_method"]] == [("CASH", 3)]
    assert Decimal(data["payments_by_method"][0]["amount"]) == Decimal("4100")
    assert data["top_trips"][0]["trip"] == "Umrah Premium"
    assert data["top_trips"][0]["bookings"] == 2
    assert Decimal(data["top_trips"][0]["revenue"]) == Decimal("3600")


def test_bookings_report(client, db, customer, auth_headers, finance_headers, make_trip, make_departure):
    tour = make_departure(make_trip(category="CITY_TOUR"), capacity=10)
    umrah = make_departure(make_trip(category="UMRAH"), capacity=10)
    headers = auth_headers(customer)
    first = book_and_pay(client, headers, tour.id)
    book_and_pay(client, headers, tour.id)
    book_and_pay(client, headers, umrah.id)
    client.post(f"/api/bookings/{first['id']}/cancel", headers=headers)

    response = client.get("/api/reports/bookings", headers=finance_headers)

    data = response.json()
    by_status = {row["status"]: row["count"] for row in data["bookings_by_status"]}
    by_category = {row["category"]: row["count"] for row in data["bookings_by_category"]}
    assert by_status == {"PENDING": 2, "CANCELLED": 1}
    assert by_category == {"CITY_TOUR": 2, "UMRAH": 1}


def test_reports_require_finance_or_admin(client, make_user, auth_headers):
    assert client.get("/api/reports/summary", headers=auth_headers(make_user("AGENT"))).status_code == 403
    assert client.get("/api/reports/summary", headers=auth_headers(make_user("ADMIN"))).status_code == 200
