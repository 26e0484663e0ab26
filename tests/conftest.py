import itertools
from datetime import datetime, timedelta, timezone

import pytest

from gomoto import create_app
from gomoto.extensions import bcrypt, db
from gomoto.models import User, Vehicle

PASSWORD = "secret123"
_phones = itertools.count(9000000001)
_plates = itertools.count(1001)


@pytest.fixture
def app():
    app = create_app("testing")
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(app, username, role="user", is_active=True):
    with app.app_context():
        user = User(
            username=username,
            email=f"{username}@example.com",
            full_name=username.title(),
            phone=str(next(_phones)),
            role=role,
            is_active_user=is_active,
            password_hash=bcrypt.generate_password_hash(PASSWORD).decode("utf-8"),
        )
        db.session.add(user)
        db.session.commit()
        return {"id": user.id, "email": user.email}


def login(app, user):
    client = app.test_client()
    response = client.post("/api/v1/auth/login", json={"email": user["email"], "password": PASSWORD})
    assert response.status_code == 200, response.get_json()
    return client


def make_vehicle(app, **overrides):
    fields = {
        "name": "Swift Dzire",
        "type": "car",
        "registration_number": f"KA01AB{next(_plates)}",
        "manufacturer": "Maruti",
        "model_name": "Dzire",
        "year": 2022,
        "seating_capacity": 5,
        "price_per_day": 1000,
        "price_per_hour": 100,
    }
    fields.update(overrides)
    with app.app_context():
        vehicle = Vehicle(**fields)
        db.session.add(vehicle)
        db.session.commit()
        return vehicle.id


def iso_in(hours):
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def book(client, vehicle_id, pickup_hours=72, days=1, **extra):
    payload = {
        "vehicleId": vehicle_id,
        "pickupDate": iso_in(pickup_hours),
        "dropoffDate": iso_in(pickup_hours + 24 * days),
        "rentalDays": days,
    }
    payload.update(extra)
    return client.post("/api/v1/bookings", json=payload)


@pytest.fixture
def customer(app):
    return make_user(app, "asha")


@pytest.fixture
def admin(app):
    return make_user(app, "root", role="admin")


@pytest.fixture
def customer_client(app, customer):
    return login(app, customer)


@pytest.fixture
def admin_client(app, admin):
    return login(app, admin)


@pytest.fixture
def vehicle_id(app):
    return make_vehicle(app)
