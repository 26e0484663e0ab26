from datetime import datetime, timezone
from decimal import Decimal

from gomoto.extensions import db
from gomoto.models import Booking, Vehicle

from conftest import book, iso_in, login, make_user, make_vehicle


def test_create_booking_prices_and_locks_rates(app, customer_client, customer, vehicle_id):
    response = book(
        customer_client,
        vehicle_id,
        days=3,
        insuranceType="standard",
        paymentMethod="upi",
        pickupLocation={"address": "MG Road", "city": "Bengaluru", "zipCode": "560001"},
    )
    assert response.status_code == 201
    body = response.get_json()
    assert body["success"] is True
    booking = body["data"]
    assert booking["bookingStatus"] == "pending"
    assert booking["paymentStatus"] == "pending"
    assert booking["rentalHours"] == 0
    assert booking["additionalCharges"] == []
    assert booking["insurancePrice"] == 300
    assert booking["totalAmount"] == 3300
    assert booking["advancePayment"] == 660
    assert booking["dailyRate"] == 1000
    assert booking["hourlyRate"] == 100
    assert booking["bookingId"].startswith("GOMOTO-")
    assert booking["vehicle"]["id"] == vehicle_id
    assert booking["user"]["id"] == customer["id"]
    assert "password_hash" not in booking["user"]

    # Later price changes do not touch the stored snapshot.
    with app.app_context():
        vehicle = db.session.get(Vehicle, vehicle_id)
        assert vehicle.total_bookings == 1
        assert vehicle.is_available is True
        vehicle.price_per_day = 5000
        db.session.commit()
    again = customer_client.get(f"/api/v1/bookings/{booking['id']}").get_json()["data"]
    assert again["dailyRate"] == 1000
    assert again["totalAmount"] == 3300


def test_create_booking_with_hours_and_extras(customer_client, vehicle_id):
    response = book(
        customer_client,
        vehicle_id,
        days=2,
        rentalHours=4,
        insuranceType="deluxe",
        additionalCharges=[{"description": "Helmet", "amount": 150}],
    )
    assert response.status_code == 201
    booking = response.get_json()["data"]
    assert booking["insurancePrice"] == 0
    assert booking["totalAmount"] == 2000 + 400 + 150
    assert booking["advancePayment"] == 510


def test_booking_references_are_unique(customer_client, vehicle_id):
    first = book(customer_client, vehicle_id).get_json()["data"]["bookingId"]
    second = book(customer_client, vehicle_id).get_json()["data"]["bookingId"]
    assert first != second


def test_missing_fields_rejected(customer_client, vehicle_id):
    response = customer_client.post("/api/v1/bookings", json={"vehicleId": vehicle_id})
    assert response.status_code == 400
    body = response.get_json()
    assert body["success"] is False
    fields = {item["field"] for item in body["errors"]}
    assert fields == {"pickupDate", "dropoffDate", "rentalDays"}


def test_unknown_vehicle_is_not_found(customer_client):
    response = book(customer_client, 9999)
    assert response.status_code == 404


def test_unavailable_vehicle_conflicts_and_is_unchanged(app, customer_client):
    vehicle_id = make_vehicle(app, is_available=False)
    response = book(customer_client, vehicle_id)
    assert response.status_code == 409
    with app.app_context():
        vehicle = db.session.get(Vehicle, vehicle_id)
        assert vehicle.total_bookings == 0
        assert vehicle.is_available is False
        assert Booking.query.count() == 0


def test_dropoff_must_follow_pickup(customer_client, vehicle_id):
    same = iso_in(50)
    response = customer_client.post(
        "/api/v1/bookings",
        json={"vehicleId": vehicle_id, "pickupDate": same, "dropoffDate": same, "rentalDays": 1},
    )
    assert response.status_code == 400

    response = customer_client.post(
        "/api/v1/bookings",
        json={"vehicleId": vehicle_id, "pickupDate": iso_in(80), "dropoffDate": iso_in(50), "rentalDays": 1},
    )
    assert response.status_code == 400


def test_invalid_rental_parameters(customer_client, vehicle_id):
    assert book(customer_client, vehicle_id, days=0).status_code == 400
    assert book(customer_client, vehicle_id, rentalHours=-1).status_code == 400
    assert book(customer_client, vehicle_id, insuranceType=3).status_code == 400
    assert book(customer_client, vehicle_id, paymentMethod="cash").status_code == 400
    assert (
        book(customer_client, vehicle_id, additionalCharges=[{"description": "x", "amount": -5}]).status_code
        == 400
    )


def test_booking_requires_login(client, vehicle_id):
    response = book(client, vehicle_id)
    assert response.status_code == 401
    assert response.get_json()["statusCode"] == 401


def test_bookings_are_private_to_their_owner(app, customer_client, admin_client, vehicle_id):
    booking_id = book(customer_client, vehicle_id).get_json()["data"]["id"]
    stranger = login(app, make_user(app, "ravi"))

    assert stranger.get(f"/api/v1/bookings/{booking_id}").status_code == 403
    assert stranger.put(f"/api/v1/bookings/{booking_id}/cancel", json={}).status_code == 403
    assert admin_client.get(f"/api/v1/bookings/{booking_id}").status_code == 200
    assert customer_client.get("/api/v1/bookings/424242").status_code == 404


def test_user_bookings_are_paginated(app, customer_client, vehicle_id):
    for _ in range(3):
        book(customer_client, vehicle_id)
    other = login(app, make_user(app, "meera"))
    book(other, vehicle_id)

    body = customer_client.get("/api/v1/bookings/my-bookings?page=1&limit=2").get_json()["data"]
    assert body["total"] == 3
    assert body["pages"] == 2
    assert body["limit"] == 2
    assert len(body["bookings"]) == 2

    pending = customer_client.get("/api/v1/bookings/my-bookings?status=pending").get_json()["data"]
    assert pending["total"] == 3
    assert customer_client.get("/api/v1/bookings/my-bookings?status=bogus").status_code == 400


def test_admin_lists_all_bookings(app, customer_client, admin_client, vehicle_id):
    other_vehicle = make_vehicle(app, type="bike", name="Activa")
    book(customer_client, vehicle_id)
    book(customer_client, other_vehicle)

    assert customer_client.get("/api/v1/bookings").status_code == 403

    body = admin_client.get("/api/v1/bookings").get_json()["data"]
    assert body["total"] == 2
    filtered = admin_client.get(f"/api/v1/bookings?vehicleId={other_vehicle}").get_json()["data"]
    assert filtered["total"] == 1
    assert filtered["bookings"][0]["vehicleId"] == other_vehicle
    assert filtered["bookings"][0]["user"]["username"] == "asha"


def test_update_status_is_admin_only_and_validated(customer_client, admin_client, vehicle_id):
    booking_id = book(customer_client, vehicle_id).get_json()["data"]["id"]
    url = f"/api/v1/bookings/{booking_id}/status"

    assert customer_client.put(url, json={"bookingStatus": "confirmed"}).status_code == 403
    assert admin_client.put(url, json={"bookingStatus": "shipped"}).status_code == 400

    # A bad payment status rejects the whole update.
    response = admin_client.put(url, json={"bookingStatus": "confirmed", "paymentStatus": "refunded"})
    assert response.status_code == 400
    assert admin_client.get(f"/api/v1/bookings/{booking_id}").get_json()["data"]["bookingStatus"] == "pending"

    response = admin_client.put(url, json={"bookingStatus": "completed", "paymentStatus": "completed"})
    assert response.status_code == 200
    data = response.get_json()["data"]
    assert data["bookingStatus"] == "completed"
    assert data["paymentStatus"] == "completed"

    # Transitions are permissive by default.
    response = admin_client.put(url, json={"bookingStatus": "pending"})
    assert response.status_code == 200
    assert response.get_json()["data"]["bookingStatus"] == "pending"

    assert admin_client.put("/api/v1/bookings/9999/status", json={"bookingStatus": "active"}).status_code == 404


def test_strict_transitions_when_enabled(app, customer_client, admin_client, vehicle_id):
    app.config["STRICT_BOOKING_TRANSITIONS"] = True
    booking_id = book(customer_client, vehicle_id).get_json()["data"]["id"]
    url = f"/api/v1/bookings/{booking_id}/status"

    assert admin_client.put(url, json={"bookingStatus": "completed"}).status_code == 409
    assert admin_client.put(url, json={"bookingStatus": "confirmed"}).status_code == 200
    assert admin_client.put(url, json={"bookingStatus": "active"}).status_code == 200
    assert admin_client.put(url, json={"bookingStatus": "completed"}).status_code == 200
    assert admin_client.put(url, json={"bookingStatus": "pending"}).status_code == 409


def test_cancellation_refund_tiers(customer_client, vehicle_id):
    expected = {72: 800, 36: 500, 10: 0}
    for hours, refund in expected.items():
        booking_id = book(customer_client, vehicle_id, pickup_hours=hours).get_json()["data"]["id"]
        response = customer_client.put(
            f"/api/v1/bookings/{booking_id}/cancel", json={"cancellationReason": "Plans changed"}
        )
        assert response.status_code == 200
        data = response.get_json()["data"]
        assert data["refundAmount"] == refund
        assert data["totalAmount"] == 1000
        assert data["bookingStatus"] == "cancelled"
        assert data["paymentStatus"] == "cancelled"
        assert data["cancellationReason"] == "Plans changed"
        assert data["cancellationDate"] is not None


def test_cancel_refused_for_finished_bookings(app, customer_client, admin_client, vehicle_id):
    booking_id = book(customer_client, vehicle_id).get_json()["data"]["id"]
    admin_client.put(f"/api/v1/bookings/{booking_id}/status", json={"bookingStatus": "completed"})

    response = customer_client.put(f"/api/v1/bookings/{booking_id}/cancel", json={"cancellationReason": "late"})
    assert response.status_code == 409

    with app.app_context():
        booking = db.session.get(Booking, booking_id)
        assert booking.booking_status == "completed"
        assert booking.payment_status == "pending"
        assert booking.cancellation_reason is None
        assert booking.cancellation_date is None
        assert booking.refund_amount == 0


def test_cancel_twice_conflicts(app, customer_client, vehicle_id):
    booking_id = book(customer_client, vehicle_id).get_json()["data"]["id"]
    first = customer_client.put(f"/api/v1/bookings/{booking_id}/cancel", json={"cancellationReason": "first"})
    assert first.status_code == 200
    cancelled_at = first.get_json()["data"]["cancellationDate"]

    second = customer_client.put(f"/api/v1/bookings/{booking_id}/cancel", json={"cancellationReason": "again"})
    assert second.status_code == 409

    data = customer_client.get(f"/api/v1/bookings/{booking_id}").get_json()["data"]
    assert data["cancellationReason"] == "first"
    assert data["cancellationDate"] == cancelled_at
    assert data["refundAmount"] == 800


def test_booking_stats(app, customer_client, admin_client, vehicle_id):
    ids = [book(customer_client, vehicle_id, days=days).get_json()["data"]["id"] for days in (1, 2, 3, 4)]
    admin_client.put(f"/api/v1/bookings/{ids[0]}/status", json={"bookingStatus": "confirmed"})
    admin_client.put(
        f"/api/v1/bookings/{ids[1]}/status", json={"bookingStatus": "completed", "paymentStatus": "completed"}
    )
    admin_client.put(f"/api/v1/bookings/{ids[2]}/status", json={"paymentStatus": "completed"})
    customer_client.put(f"/api/v1/bookings/{ids[3]}/cancel", json={})

    assert customer_client.get("/api/v1/bookings/stats/all").status_code == 403
    stats = admin_client.get("/api/v1/bookings/stats/all").get_json()["data"]
    assert stats == {
        "totalBookings": 4,
        "confirmedBookings": 1,
        "completedBookings": 1,
        "cancelledBookings": 1,
        "totalRevenue": 5000.0,
    }


def test_stats_with_no_bookings(admin_client):
    stats = admin_client.get("/api/v1/bookings/stats/all").get_json()["data"]
    assert stats["totalBookings"] == 0
    assert stats["totalRevenue"] == 0


def test_pickup_dates_round_trip_as_utc(app, customer_client, vehicle_id):
    response = customer_client.post(
        "/api/v1/bookings",
        json={
            "vehicleId": vehicle_id,
            "pickupDate": "2030-05-01T10:00:00Z",
            "dropoffDate": "2030-05-03T10:00:00Z",
            "rentalDays": 2,
        },
    )
    assert response.status_code == 201
    data = response.get_json()["data"]
    assert datetime.fromisoformat(data["pickupDate"]) == datetime(2030, 5, 1, 10, tzinfo=timezone.utc)


def test_fractional_rental_hours_are_priced(customer_client, vehicle_id):
    response = book(customer_client, vehicle_id, rentalHours=1.5)
    assert response.status_code == 201
    booking = response.get_json()["data"]
    assert booking["rentalHours"] == 1.5
    assert booking["totalAmount"] == 1150
    assert booking["advancePayment"] == 230


def test_stored_totals_keep_every_decimal(app, customer_client):
    vehicle_id = make_vehicle(app, price_per_day=Decimal("333.33"), price_per_hour=Decimal("100"))
    response = book(
        customer_client,
        vehicle_id,
        rentalHours=0.75,
        insuranceType="standard",
        additionalCharges=[{"description": "Toll tag", "amount": 0.25}],
    )
    assert response.status_code == 201
    booking_id = response.get_json()["data"]["id"]

    # 333.33 + 75 + 33.333 + 0.25
    stored = customer_client.get(f"/api/v1/bookings/{booking_id}").get_json()["data"]
    assert stored["insurancePrice"] == 33.333
    assert stored["totalAmount"] == 441.913
    assert stored["advancePayment"] == 89


def test_amounts_finer_than_stored_precision_rejected(app, customer_client, vehicle_id):
    tiny_charge = [{"description": "Rounding", "amount": 0.00004}]
    assert book(customer_client, vehicle_id, additionalCharges=tiny_charge).status_code == 400
    assert book(customer_client, vehicle_id, rentalHours=1.555).status_code == 400
    with app.app_context():
        assert Booking.query.count() == 0


def test_non_text_free_text_fields_rejected(app, customer_client, vehicle_id):
    assert book(customer_client, vehicle_id, remarks=5).status_code == 400
    response = book(customer_client, vehicle_id, additionalCharges=[{"description": 7, "amount": 10}])
    assert response.status_code == 400
    assert response.get_json()["success"] is False
    with app.app_context():
        assert Booking.query.count() == 0
        assert db.session.get(Vehicle, vehicle_id).total_bookings == 0


def test_vehicle_id_must_be_a_whole_number(customer_client, vehicle_id):
    assert book(customer_client, True).status_code == 400
    assert book(customer_client, vehicle_id + 0.9).status_code == 400
    assert book(customer_client, float(vehicle_id)).status_code == 201


def test_non_object_bodies_rejected(customer_client, vehicle_id):
    response = customer_client.post("/api/v1/bookings", json=[vehicle_id])
    assert response.status_code == 400
    assert response.get_json()["message"] == "Request body must be a JSON object."

    booking_id = book(customer_client, vehicle_id).get_json()["data"]["id"]
    assert customer_client.put(f"/api/v1/bookings/{booking_id}/cancel", json=["late"]).status_code == 400


def test_cancel_with_non_text_reason_leaves_booking_untouched(app, customer_client, vehicle_id):
    booking_id = book(customer_client, vehicle_id).get_json()["data"]["id"]
    response = customer_client.put(f"/api/v1/bookings/{booking_id}/cancel", json={"cancellationReason": 12})
    assert response.status_code == 400

    with app.app_context():
        booking = db.session.get(Booking, booking_id)
        assert booking.booking_status == "pending"
        assert booking.payment_status == "pending"
        assert booking.cancellation_date is None
        assert booking.refund_amount == 0
