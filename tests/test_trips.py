from decimal import Decimal


def test_list_only_published_trips(client, make_trip, make_departure):
    published = make_trip()
    make_trip(status="DRAFT")
    make_departure(published, base_price="1500")

    response = client.get("/api/trips/")

    assert response.status_code == 200
    body = response.json()
    assert [t["id"] for t in body["data"]] == [published.id]
    assert Decimal(body["data"][0]["min_price"]) == Decimal("1500")
    assert body["data"][0]["next_departure"] is not None
    assert body["pagination"] == {
        "total": 1, "page": 1, "limit": 10, "total_pages": 1, "has_next": False, "has_prev": False
    }


def test_filters(client, make_trip):
    make_trip(category="UMRAH", title="Umrah Premium")
    make_trip(category="CITY_TOUR", title="Istanbul Walk")

    by_category = client.get("/api/trips/", params={"category": "UMRAH"}).json()
    by_search = client.get("/api/trips/", params={"search": "istanbul"}).json()

    assert [t["title"] for t in by_category["data"]] == ["Umrah Premium"]
    assert [t["title"] for t in by_search["data"]] == ["Istanbul Walk"]


def test_limit_is_clamped(client, make_trip):
    make_trip()

    response = client.get("/api/trips/", params={"limit": 500, "page": 0})

    assert response.json()["pagination"]["limit"] == 100
    assert response.json()["pagination"]["page"] == 1


def test_trip_detail_by_slug(client, make_trip, make_departure):
    trip = make_trip()
    make_departure(trip)
    make_departure(trip, status="CANCELLED", days_ahead=60)
    make_departure(trip, days_ahead=-10)

    response = client.get(f"/api/trips/{trip.slug}")

    assert response.status_code == 200
    data = response.json()
    assert data["id"] == trip.id
    assert len(data["addons"]) == 2
    # only upcoming bookable departures are listed
    assert len(data["departures"]) == 1
    assert data["departures"][0]["available_seats"] == 10


def test_draft_trip_hidden_from_public_but_visible_to_staff(client, make_trip, make_user, auth_headers):
    draft = make_trip(status="DRAFT")

    assert client.get(f"/api/trips/{draft.slug}").status_code == 404
    assert client.get(f"/api/trips/{draft.slug}", headers=auth_headers(make_user("AGENT"))).status_code == 200
    assert client.get(f"/api/trips/{draft.slug}", headers=auth_headers(make_user("CUSTOMER"))).status_code == 404


def test_trip_departures(client, make_trip, make_departure):
    trip = make_trip()
    make_departure(trip, days_ahead=60)
    make_departure(trip, days_ahead=30)
    make_departure(trip, status="FULL", seats_reserved=10, days_ahead=45)

    response = client.get(f"/api/trips/{trip.id}/departures")

    starts = [d["start_date"] for d in response.json()]
    assert len(starts) == 2
    assert starts == sorted(starts)
