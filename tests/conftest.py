import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("REFRESH_SECRET_KEY", "test-refresh-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from travel_agency.database import Base, get_db
from travel_agency.main import app
from travel_agency.rate_limit import limiter
from travel_agency.models import User, Destination, Trip, Addon, TripDeparture
from travel_agency.auth.utils import get_password_hash, create_access_token
from travel_agency.utils import utcnow

DEFAULT_PASSWORD = "Password123"


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    counter = {"n": 0}

    def _make_user(role="CUSTOMER", status="ACTIVE", email=None, name=None, password=DEFAULT_PASSWORD):
        counter["n"] += 1
        user = User(
            name=name or f"{role.title()} User {counter['n']}",
            email=email or f"{role.lower()}{counter['n']}@travel.io",
            phone="+252600000000",
            password_hash=get_password_hash(password),
            role=role,
            status=status,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}

    return _auth_headers


@pytest.fixture
def customer(make_user):
    return make_user("CUSTOMER")


@pytest.fixture
def admin(make_user):
    return make_user("ADMIN")


@pytest.fixture
def make_trip(db):
    counter = {"n": 0}

    def _make_trip(status="PUBLISHED", category="CITY_TOUR", title=None, destination=None):
        counter["n"] += 1
        if destination is None:
            destination = Destination(name=f"Istanbul {counter['n']}", country="Turkey", city="Istanbul")
            db.add(destination)
            db.flush()

        title = title or f"Istanbul City Tour {counter['n']}"
        trip = Trip(
            title=title,
            slug=title.lower().replace(" ", "-"),
            destination_id=destination.id,
            description="Guided tour of the old city",
            duration_days=7,
            category=category,
            status=status,
        )
        trip.addons = [
            Addon(name="Travel Insurance", price=Decimal("50"), type="INSURANCE"),
            Addon(name="Extra Baggage (20kg)", price=Decimal("100"), type="EXTRA_BAGGAGE"),
        ]
        db.add(trip)
        db.commit()
        db.refresh(trip)
        return trip

    return _make_trip


@pytest.fixture
def make_departure(db):
    def _make_departure(trip, capacity=10, seats_reserved=0, base_price="1200", child_price=None,
                        status="AVAILABLE", days_ahead=30):
        start = utcnow() + timedelta(days=days_ahead)
        departure = TripDeparture(
            trip_id=trip.id,
            start_date=start,
            end_date=start + timedelta(days=trip.duration_days),
            capacity=capacity,
            seats_reserved=seats_reserved,
            base_price=Decimal(base_price),
            child_price=Decimal(child_price) if child_price is not None else None,
            currency="USD",
            status=status,
        )
        db.add(departure)
        db.commit()
        db.refresh(departure)
        return departure

    return _make_departure

