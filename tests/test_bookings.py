from decimal import Decimal

import pytest
from sqlalchemy.orm import sessionmaker

from travel_agency.bookings.booking_service import BookingService
from travel_agency.bookings.schemas import BookingStatus
from travel_agency.exceptions import InvalidStateError
from travel_agency.models import Booking, TripDeparture


def passenger(name="Amina Yusuf", is_child=False):
    return {"full_name": name, "gender": "FEMALE", "is_child": is_child}


def book(client, headers, departure, passengers, addons=None):
    payload = {"departure_id": departure.id, "passengers": passengers}
    if addons is not None:
        payload["addons"] = addons
    return client.post("/api/bookings/", json=payload, headers=headers)


def set_status(db, booking_id, status):
    booking = db.get(Booking, booking_id)
    booking.status = status
    db.commit()


class TestCreateBooking:
    def test_total_is_fares_plus_addons(self, client, db, customer, auth_headers, make_trip, make_departure):
        trip = make_trip()
        departure = make_departure(trip, capacity=10, base_price="1200")
        insurance = next(a for a in trip.addons if a.name == "Travel Insurance")

        response = book(
            client, auth_headers(customer), departure,
            [passenger("A"), passenger("B"), passenger("C")],
            addons=[{"addon_id": insurance.id, "quantity": 2}]
        )

        assert response.status_code == 201
        data = response.json()
        assert Decimal(data["total_amount"]) == Decimal("1200") * 3 + Decimal("100")
        assert Decimal(data["paid_amount"]) == Decimal("0")
        assert data["status"] == "PENDING"
        assert data["currency"] == "USD"
        assert data["booking_code"].startswith("BK")
        assert data["passenger_count"] == 3
        assert len(data["passengers"]) == 3
        assert data["addons"][0]["addon_name"] == "Travel Insurance"
        assert Decimal(data["addons"][0]["price"]) == Decimal("50")
        assert data["departure"]["trip_slug"] == trip.slug

        db.refresh(departure)
        assert departure.seats_reserved == 3
        assert departure.status == "AVAILABLE"

    def test_child_price_applies_to_children(self, client, customer, auth_headers, make_trip, make_departure):
        trip = make_trip()
        departure = make_departure(trip, base_price="1000", child_price="700")

        response = book(client, auth_headers(customer), departure, [passenger("Adult"), passenger("Kid", is_child=True)])

        assert response.status_code == 201
        assert Decimal(response.json()["total_amount"]) == Decimal("1700")

    def test_children_pay_base_price_without_child_fare(self, client, customer, auth_headers, make_trip, make_departure):
        trip = make_trip()
        departure = make_departure(trip, base_price="1000")

        response = book(client, auth_headers(customer), departure, [passenger("Kid", is_child=True)])

        assert Decimal(response.json()["total_amount"]) == Decimal("1000")

    def test_addon_price_is_snapshotted(self, client, db, customer, auth_headers, make_trip, make_departure):
        trip = make_trip()
        departure = make_departure(trip)
        baggage = next(a for a in trip.addons if a.name.startswith("Extra Baggage"))

        response = book(client, auth_headers(customer), departure, [passenger()],
                        addons=[{"addon_id": baggage.id, "quantity": 1}])
        booking_id = response.json()["id"]

        baggage.price = Decimal("250")
        db.commit()

        detail = client.get(f"/api/bookings/{booking_id}", headers=auth_headers(customer)).json()
        assert Decimal(detail["addons"][0]["price"]) == Decimal("100")
        assert Decimal(detail["total_amount"]) == Decimal("1300")

    def test_capacity_exceeded_leaves_seats_unchanged(self, client, db, customer, auth_headers, make_trip, make_departure):
        trip = make_trip()
        departure = make_departure(trip, capacity=5, seats_reserved=3)

        response = book(client, auth_headers(customer), departure, [passenger("A"), passenger("B"), passenger("C")])

        assert response.status_code == 400
        assert response.json()["error"] == "capacity_exceeded"
        assert response.json()["detail"] == "Only 2 seats available"
        db.refresh(departure)
        assert departure.seats_reserved == 3
        assert db.query(Booking).count() == 0

    def test_last_seats_mark_departure_full(self, client, db, customer, auth_headers, make_trip, make_departure):
        trip = make_trip()
        departure = make_departure(trip, capacity=2)

        response = book(client, auth_headers(customer), departure, [passenger("A"), passenger("B")])
        assert response.status_code == 201

        db.refresh(departure)
        assert departure.seats_reserved == 2
        assert departure.status == "FULL"

        again = book(client, auth_headers(customer), departure, [passenger("C")])
        assert again.status_code == 400
        assert again.json()["error"] == "invalid_state"

    def test_cancelled_departure_cannot_be_booked(self, client, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip(), status="CANCELLED")

        response = book(client, auth_headers(customer), departure, [passenger()])

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_state"

    def test_unknown_departure(self, client, customer, auth_headers):
        response = client.post(
            "/api/bookings/",
            json={"departure_id": "missing", "passengers": [passenger()]},
            headers=auth_headers(customer)
        )
        assert response.status_code == 404

    def test_addon_from_another_trip_rolls_back(self, client, db, customer, auth_headers, make_trip, make_departure):
        trip = make_trip()
        other_trip = make_trip()
        departure = make_departure(trip)

        response = book(client, auth_headers(customer), departure, [passenger()],
                        addons=[{"addon_id": other_trip.addons[0].id, "quantity": 1}])

        assert response.status_code == 404
        db.refresh(departure)
        assert departure.seats_reserved == 0
        assert db.query(Booking).count() == 0

    def test_at_least_one_passenger_required(self, client, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip())

        response = book(client, auth_headers(customer), departure, [])

        assert response.status_code == 422

    def test_requires_authentication(self, client, make_trip, make_departure):
        departure = make_departure(make_trip())

        response = client.post("/api/bookings/", json={"departure_id": departure.id, "passengers": [passenger()]})

        assert response.status_code == 401


class TestCancelBooking:
    def test_cancel_confirmed_booking_releases_seats_once(self, client, db, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip(), capacity=10)
        booking_id = book(client, auth_headers(customer), departure, [passenger("A"), passenger("B")]).json()["id"]
        set_status(db, booking_id, "CONFIRMED")
        db.refresh(departure)
        assert departure.seats_reserved == 2

        response = client.post(f"/api/bookings/{booking_id}/cancel", json={"reason": "Change of plans"},
                               headers=auth_headers(customer))

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"
        assert response.json()["cancellation_reason"] == "Change of plans"
        db.refresh(departure)
        assert departure.seats_reserved == 0

        again = client.post(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(customer))
        assert again.status_code == 400
        assert again.json()["error"] == "invalid_state"
        db.refresh(departure)
        assert departure.seats_reserved == 0

    def test_cancel_reopens_full_departure(self, client, db, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip(), capacity=3)
        first = book(client, auth_headers(customer), departure, [passenger("A")]).json()["id"]
        book(client, auth_headers(customer), departure, [passenger("B"), passenger("C")])
        db.refresh(departure)
        assert departure.status == "FULL"

        client.post(f"/api/bookings/{first}/cancel", headers=auth_headers(customer))

        db.refresh(departure)
        assert departure.seats_reserved == 2
        assert departure.status == "AVAILABLE"

    def test_cancel_keeps_cancelled_departure_closed(self, client, db, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip(), capacity=4)
        booking_id = book(client, auth_headers(customer), departure, [passenger()]).json()["id"]
        departure.status = "CANCELLED"
        db.commit()

        response = client.post(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(customer))

        assert response.status_code == 200
        db.refresh(departure)
        assert departure.seats_reserved == 0
        assert departure.status == "CANCELLED"

    def test_completed_booking_cannot_be_cancelled(self, client, db, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip())
        booking_id = book(client, auth_headers(customer), departure, [passenger()]).json()["id"]
        set_status(db, booking_id, "COMPLETED")

        response = client.post(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(customer))

        assert response.status_code == 400
        assert response.json()["detail"] == "Cannot cancel completed booking"
        db.refresh(departure)
        assert departure.seats_reserved == 1

    def test_other_customer_cannot_cancel(self, client, make_user, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip())
        booking_id = book(client, auth_headers(customer), departure, [passenger()]).json()["id"]
        stranger = make_user("CUSTOMER")

        response = client.post(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(stranger))

        assert response.status_code == 403

    def test_agent_can_cancel_for_customer(self, client, make_user, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip())
        booking_id = book(client, auth_headers(customer), departure, [passenger()]).json()["id"]
        agent = make_user("AGENT")

        response = client.post(f"/api/bookings/{booking_id}/cancel", headers=auth_headers(agent))

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

    def test_overlapping_cancels_release_seats_once(self, engine, db, client, customer, auth_headers,
                                                    make_trip, make_departure):
        departure = make_departure(make_trip(), capacity=4)
        headers = auth_headers(customer)
        booking_id = book(client, headers, departure, [passenger("A"), passenger("B")]).json()["id"]
        book(client, headers, departure, [passenger("C"), passenger("D")])
        set_status(db, booking_id, "CONFIRMED")
        db.refresh(departure)
        assert departure.status == "FULL"

        other_session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
        try:
            first, second = BookingService(db), BookingService(other_session)
            seen_by_first = first.get_booking_by_id(booking_id)
            seen_by_second = second.get_booking_by_id(booking_id)
            assert seen_by_second.status == "CONFIRMED"

            first._transition(seen_by_first, BookingStatus.CANCELLED)
            with pytest.raises(InvalidStateError):
                second._transition(seen_by_second, BookingStatus.CANCELLED)
        finally:
            other_session.close()

        db.refresh(departure)
        assert departure.seats_reserved == 2
        assert departure.status == "AVAILABLE"

    def test_seat_count_stays_within_capacity(self, client, db, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip(), capacity=4)
        headers = auth_headers(customer)
        booked = []

        for size in (2, 1, 3, 1, 2, 1):
            response = book(client, headers, departure, [passenger(f"P{i}") for i in range(size)])
            if response.status_code == 201:
                booked.append(response.json()["id"])
            db.refresh(departure)
            assert 0 <= departure.seats_reserved <= departure.capacity

        for booking_id in booked:
            client.post(f"/api/bookings/{booking_id}/cancel", headers=headers)
            db.refresh(departure)
            assert 0 <= departure.seats_reserved <= departure.capacity

        assert departure.seats_reserved == 0
        assert departure.status == "AVAILABLE"


class TestReadBookings:
    def test_owner_and_staff_can_view(self, client, make_user, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip())
        booking_id = book(client, auth_headers(customer), departure, [passenger()]).json()["id"]

        assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers(customer)).status_code == 200
        assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers(make_user("AGENT"))).status_code == 200
        assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers(make_user("CUSTOMER"))).status_code == 403
        # finance staff handle payments, not bookings
        assert client.get(f"/api/bookings/{booking_id}", headers=auth_headers(make_user("FINANCE"))).status_code == 403

    def test_missing_booking(self, client, customer, auth_headers):
        response = client.get("/api/bookings/does-not-exist", headers=auth_headers(customer))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_my_bookings_only_lists_own(self, client, make_user, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip(), capacity=20)
        for _ in range(3):
            book(client, auth_headers(customer), departure, [passenger()])
        book(client, auth_headers(make_user("CUSTOMER")), departure, [passenger()])

        response = client.get("/api/bookings/my", params={"limit": 2}, headers=auth_headers(customer))

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["total_pages"] == 2
        assert body["pagination"]["has_next"] is True

    def test_my_bookings_status_filter(self, client, db, customer, auth_headers, make_trip, make_departure):
        departure = make_departure(make_trip())
        first = book(client, auth_headers(customer), departure, [passenger()]).json()["id"]
        book(client, auth_headers(customer), departure, [passenger()])
        set_status(db, first, "CONFIRMED")

        response = client.get("/api/bookings/my", params={"status": "CONFIRMED"}, headers=auth_headers(customer))

        assert [b["id"] for b in response.json()["data"]] == [first]
