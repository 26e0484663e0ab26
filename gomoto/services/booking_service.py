import secrets
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from flask import current_app
from sqlalchemy import func
from sqlalchemy.orm import joinedload

from gomoto.errors import ConflictError, NotFoundError, ValidationError
from gomoto.extensions import db
from gomoto.models import Booking, Vehicle
from gomoto.models.base import as_utc, utcnow
from gomoto.models.booking import BOOKING_STATUSES, PAYMENT_METHODS, PAYMENT_STATUSES
from gomoto.services.pricing import compute_price, compute_refund
from gomoto.validators import check_places, clean_text

# Only consulted when STRICT_BOOKING_TRANSITIONS is on.
BOOKING_TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"active", "cancelled"},
    "active": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}
NON_CANCELLABLE = {"completed", "cancelled"}


class BookingService:
    @staticmethod
    def _generate_reference():
        stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
        reference = f"GOMOTO-{stamp}-{secrets.token_hex(4).upper()}"
        while Booking.query.filter_by(booking_reference=reference).first():
            reference = f"GOMOTO-{stamp}-{secrets.token_hex(4).upper()}"
        return reference

    @staticmethod
    def _parse_datetime(value, label):
        if isinstance(value, datetime):
            return as_utc(value)
        raw = str(value or "").strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            return as_utc(datetime.fromisoformat(raw))
        except ValueError as exc:
            raise ValidationError(f"Valid {label} is required.") from exc

    @staticmethod
    def _parse_count(value, label, minimum):
        if isinstance(value, bool):
            raise ValidationError(f"{label} must be a whole number.")
        try:
            number = int(value)
            if isinstance(value, float) and number != value:
                raise ValueError
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{label} must be a whole number.") from exc
        if number < minimum:
            raise ValidationError(f"{label} must be at least {minimum}.")
        return number

    @staticmethod
    def _parse_hours(value):
        if value in (None, ""):
            return Decimal("0")
        if isinstance(value, bool):
            raise ValidationError("Rental hours must be a non-negative number.")
        try:
            hours = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError("Rental hours must be a non-negative number.") from exc
        if not hours.is_finite() or hours < 0:
            raise ValidationError("Rental hours must be a non-negative number.")
        return check_places(hours, "Rental hours", 2)

    @staticmethod
    def _parse_vehicle_id(value):
        if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
            raise ValidationError("Valid vehicle ID is required.")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValidationError("Valid vehicle ID is required.") from exc

    @staticmethod
    def _parse_additional_charges(raw_charges):
        if raw_charges in (None, ""):
            return []
        if not isinstance(raw_charges, list):
            raise ValidationError("Additional charges must be a list.")
        charges = []
        for charge in raw_charges:
            if not isinstance(charge, dict):
                raise ValidationError("Each additional charge needs a description and an amount.")
            raw_amount = charge.get("amount")
            if isinstance(raw_amount, bool):
                raise ValidationError("Additional charge amount must be a non-negative number.")
            try:
                amount = Decimal(str(raw_amount))
            except (InvalidOperation, ValueError) as exc:
                raise ValidationError("Additional charge amount must be a non-negative number.") from exc
            if not amount.is_finite() or amount < 0:
                raise ValidationError("Additional charge amount must be a non-negative number.")
            check_places(amount, "Additional charge amount", 2)
            description = clean_text(charge.get("description"), "Additional charge description") or ""
            charges.append({"description": description, "amount": float(amount)})
        return charges

    @staticmethod
    def _parse_location(raw_location, label):
        if raw_location in (None, ""):
            return None
        if not isinstance(raw_location, dict):
            raise ValidationError(f"{label} must be an object.")
        return {
            "address": raw_location.get("address"),
            "city": raw_location.get("city"),
            "zipCode": raw_location.get("zipCode"),
        }

    @staticmethod
    def create_booking(user_id, payload):
        required = ("vehicleId", "pickupDate", "dropoffDate", "rentalDays")
        missing = [key for key in required if payload.get(key) in (None, "")]
        if missing:
            raise ValidationError(
                "All required fields must be provided.",
                errors=[{"field": key, "message": f"{key} is required"} for key in missing],
            )

        rental_days = BookingService._parse_count(payload.get("rentalDays"), "Rental days", 1)
        rental_hours = BookingService._parse_hours(payload.get("rentalHours"))
        additional_charges = BookingService._parse_additional_charges(payload.get("additionalCharges"))
        insurance_type = payload.get("insuranceType")
        if insurance_type is not None and not isinstance(insurance_type, str):
            raise ValidationError("Insurance type must be a string.")
        payment_method = payload.get("paymentMethod") or None
        if payment_method is not None and payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Payment method must be one of: {', '.join(PAYMENT_METHODS)}.")
        pickup_location = BookingService._parse_location(payload.get("pickupLocation"), "Pickup location")
        dropoff_location = BookingService._parse_location(payload.get("dropoffLocation"), "Dropoff location")
        remarks = clean_text(payload.get("remarks"), "Remarks")
        vehicle_id = BookingService._parse_vehicle_id(payload.get("vehicleId"))

        vehicle = db.session.get(Vehicle, vehicle_id)
        if not vehicle:
            raise NotFoundError("Vehicle not found.")
        if not vehicle.is_available:
            raise ConflictError("Vehicle is not available for booking.")

        pickup = BookingService._parse_datetime(payload.get("pickupDate"), "pickup date")
        dropoff = BookingService._parse_datetime(payload.get("dropoffDate"), "dropoff date")
        if pickup >= dropoff:
            raise ValidationError("Dropoff date must be after pickup date.")

        quote = compute_price(
            price_per_day=vehicle.price_per_day,
            price_per_hour=vehicle.price_per_hour,
            rental_days=rental_days,
            rental_hours=rental_hours,
            insurance_type=insurance_type,
            additional_charges=additional_charges,
        )

        booking = Booking(
            booking_reference=BookingService._generate_reference(),
            user_id=user_id,
            vehicle_id=vehicle.id,
            pickup_date=pickup,
            dropoff_date=dropoff,
            pickup_location=pickup_location,
            dropoff_location=dropoff_location,
            rental_days=rental_days,
            rental_hours=rental_hours,
            daily_rate=vehicle.price_per_day,
            hourly_rate=vehicle.price_per_hour,
            insurance_type=insurance_type or None,
            insurance_price=quote["insurance_price"],
            additional_charges=additional_charges,
            total_amount=quote["total_amount"],
            advance_payment=quote["advance_payment"],
            payment_method=payment_method,
            remarks=remarks,
            booking_status="pending",
            payment_status="pending",
        )
        vehicle.total_bookings = (vehicle.total_bookings or 0) + 1
        db.session.add(booking)
        db.session.commit()
        current_app.logger.info(
            "Booking %s created for vehicle %s by user %s, total %s",
            booking.booking_reference,
            vehicle.id,
            user_id,
            quote["total_amount"],
        )
        return booking

    @staticmethod
    def get_booking(booking_id):
        booking = (
            Booking.query.options(joinedload(Booking.vehicle), joinedload(Booking.user))
            .filter(Booking.id == booking_id)
            .first()
        )
        if not booking:
            raise NotFoundError("Booking not found.")
        return booking

    @staticmethod
    def _check_status_filter(status):
        if status and status not in BOOKING_STATUSES:
            raise ValidationError("Invalid booking status.")

    @staticmethod
    def list_user_bookings(user_id, status=None, page=1, per_page=10):
        BookingService._check_status_filter(status)
        query = (
            Booking.query.options(joinedload(Booking.vehicle))
            .filter(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        if status:
            query = query.filter(Booking.booking_status == status)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def list_bookings(status=None, vehicle_id=None, page=1, per_page=10):
        BookingService._check_status_filter(status)
        query = Booking.query.options(joinedload(Booking.vehicle), joinedload(Booking.user)).order_by(
            Booking.created_at.desc(), Booking.id.desc()
        )
        if status:
            query = query.filter(Booking.booking_status == status)
        if vehicle_id is not None:
            query = query.filter(Booking.vehicle_id == vehicle_id)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def update_status(booking_id, booking_status=None, payment_status=None):
        if booking_status and booking_status not in BOOKING_STATUSES:
            raise ValidationError("Invalid booking status.")
        if payment_status and payment_status not in PAYMENT_STATUSES:
            raise ValidationError("Invalid payment status.")

        booking = BookingService.get_booking(booking_id)
        current = booking.booking_status
        if (
            booking_status
            and booking_status != current
            and current_app.config.get("STRICT_BOOKING_TRANSITIONS")
            and booking_status not in BOOKING_TRANSITIONS.get(current, set())
        ):
            raise ConflictError(f"Invalid status transition from {current} to {booking_status}.")

        if booking_status:
            booking.booking_status = booking_status
        if payment_status:
            booking.payment_status = payment_status
        db.session.commit()
        current_app.logger.info(
            "Booking %s status %s -> %s, payment %s",
            booking.booking_reference,
            current,
            booking.booking_status,
            booking.payment_status,
        )
        return booking

    @staticmethod
    def cancel_booking(booking, cancellation_reason=None):
        if booking.booking_status in NON_CANCELLABLE:
            raise ConflictError("Cannot cancel a completed or already cancelled booking.")
        reason = clean_text(cancellation_reason, "Cancellation reason")

        now = utcnow()
        refund = compute_refund(booking.total_amount, as_utc(booking.pickup_date), now)

        booking.booking_status = "cancelled"
        booking.payment_status = "cancelled"
        booking.cancellation_reason = reason
        booking.cancellation_date = now
        booking.refund_amount = refund
        db.session.commit()
        current_app.logger.info("Booking %s cancelled, refund %s", booking.booking_reference, refund)
        return booking

    @staticmethod
    def booking_stats():
        counts = dict(
            db.session.query(Booking.booking_status, func.count(Booking.id)).group_by(Booking.booking_status).all()
        )
        revenue = (
            db.session.query(func.coalesce(func.sum(Booking.total_amount), 0))
            .filter(Booking.payment_status == "completed")
            .scalar()
        )
        return {
            "total_bookings": sum(counts.values()),
            "confirmed_bookings": counts.get("confirmed", 0),
            "completed_bookings": counts.get("completed", 0),
            "cancelled_bookings": counts.get("cancelled", 0),
            "total_revenue": Decimal(str(revenue or 0)),
        }
