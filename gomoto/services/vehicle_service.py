from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation

from flask import current_app

from gomoto.errors import ConflictError, NotFoundError, ValidationError
from gomoto.extensions import db
from gomoto.models import Booking, Vehicle
from gomoto.models.vehicle import FUEL_TYPES, INSURANCE_PLANS, TRANSMISSIONS, VEHICLE_STATUSES, VEHICLE_TYPES
from gomoto.validators import check_places

# payload key -> model attribute, for fields copied as plain text
TEXT_FIELDS = {
    "name": "name",
    "manufacturer": "manufacturer",
    "model": "model_name",
    "color": "color",
    "description": "description",
}
LOCATION_FIELDS = {
    "address": "address",
    "city": "city",
    "state": "state",
    "zipCode": "zip_code",
}
ENUM_FIELDS = {
    "type": ("type", VEHICLE_TYPES),
    "fuelType": ("fuel_type", FUEL_TYPES),
    "transmission": ("transmission", TRANSMISSIONS),
    "insurance": ("insurance", INSURANCE_PLANS),
    "status": ("status", VEHICLE_STATUSES),
}
REQUIRED_FIELDS = (
    "name",
    "type",
    "registrationNumber",
    "manufacturer",
    "model",
    "year",
    "seatingCapacity",
    "pricePerDay",
    "pricePerHour",
)


class VehicleService:
    @staticmethod
    def _parse_amount(value, label):
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"{label} must be a valid number.") from exc
        if not amount.is_finite() or amount < 0:
            raise ValidationError(f"{label} must be a valid number.")
        return check_places(amount, label, 2)

    @staticmethod
    def _parse_int(value, label, minimum=None, maximum=None):
        try:
            number = int(value)
            if isinstance(value, float) and number != value:
                raise ValueError
        except (TypeError, ValueError) as exc:
            raise ValidationError(f"{label} must be a whole number.") from exc
        if minimum is not None and number < minimum:
            raise ValidationError(f"{label} must be at least {minimum}.")
        if maximum is not None and number > maximum:
            raise ValidationError(f"{label} must be at most {maximum}.")
        return number

    @staticmethod
    def _parse_coordinate(value, label):
        if value in (None, ""):
            return None
        try:
            return Decimal(str(value))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid {label} value.") from exc

    @staticmethod
    def _collect_fields(payload):
        """Validate the recognised keys of ``payload`` into model attributes."""
        fields = {}
        for key, attr in TEXT_FIELDS.items():
            if key in payload:
                fields[attr] = (str(payload.get(key) or "")).strip() or None

        for key, (attr, allowed) in ENUM_FIELDS.items():
            if key in payload:
                value = (str(payload.get(key) or "")).strip().lower()
                if value not in allowed:
                    raise ValidationError(f"{key} must be one of: {', '.join(allowed)}.")
                fields[attr] = value

        if "year" in payload:
            fields["year"] = VehicleService._parse_int(
                payload.get("year"), "Year", minimum=1900, maximum=datetime.now(timezone.utc).year
            )
        if "seatingCapacity" in payload:
            fields["seating_capacity"] = VehicleService._parse_int(
                payload.get("seatingCapacity"), "Seating capacity", minimum=1
            )
        if "mileage" in payload:
            fields["mileage"] = VehicleService._parse_amount(payload.get("mileage") or 0, "Mileage")
        if "pricePerDay" in payload:
            fields["price_per_day"] = VehicleService._parse_amount(payload.get("pricePerDay"), "Price per day")
        if "pricePerHour" in payload:
            fields["price_per_hour"] = VehicleService._parse_amount(payload.get("pricePerHour"), "Price per hour")
        if "insurancePrice" in payload:
            fields["insurance_price"] = VehicleService._parse_amount(
                payload.get("insurancePrice") or 0, "Insurance price"
            )
        if "features" in payload:
            features = payload.get("features") or []
            if not isinstance(features, list):
                raise ValidationError("Features must be a list.")
            fields["features"] = [str(item).strip() for item in features if str(item).strip()]
        if "isAvailable" in payload:
            if not isinstance(payload.get("isAvailable"), bool):
                raise ValidationError("isAvailable must be a boolean.")
            fields["is_available"] = payload["isAvailable"]

        location = payload.get("location")
        if location is not None:
            if not isinstance(location, dict):
                raise ValidationError("Location must be an object.")
            for key, attr in LOCATION_FIELDS.items():
                if key in location:
                    fields[attr] = (str(location.get(key) or "")).strip() or None
            coordinates = location.get("coordinates") or {}
            if "latitude" in coordinates:
                fields["latitude"] = VehicleService._parse_coordinate(coordinates.get("latitude"), "latitude")
            if "longitude" in coordinates:
                fields["longitude"] = VehicleService._parse_coordinate(coordinates.get("longitude"), "longitude")
        return fields

    @staticmethod
    def create_vehicle(payload):
        missing = [key for key in REQUIRED_FIELDS if payload.get(key) in (None, "")]
        if missing:
            raise ValidationError(
                "All required fields must be provided.",
                errors=[{"field": key, "message": f"{key} is required"} for key in missing],
            )

        registration_number = str(payload["registrationNumber"]).strip().upper()
        fields = VehicleService._collect_fields(payload)

        if Vehicle.query.filter_by(registration_number=registration_number).first():
            raise ConflictError("Vehicle with this registration number already exists.")

        vehicle = Vehicle(registration_number=registration_number, **fields)
        db.session.add(vehicle)
        db.session.commit()
        current_app.logger.info("Vehicle %s created (%s)", vehicle.id, registration_number)
        return vehicle

    @staticmethod
    def get_vehicle(vehicle_id):
        vehicle = db.session.get(Vehicle, vehicle_id)
        if not vehicle:
            raise NotFoundError("Vehicle not found.")
        return vehicle

    @staticmethod
    def list_vehicles(page=1, per_page=10, vehicle_type=None, is_available=None, status=None):
        query = Vehicle.query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc())
        if vehicle_type:
            query = query.filter_by(type=vehicle_type)
        if is_available is not None:
            query = query.filter_by(is_available=is_available)
        if status:
            query = query.filter_by(status=status)
        return query.paginate(page=page, per_page=per_page, error_out=False)

    @staticmethod
    def list_by_type(vehicle_type, page=1, per_page=10):
        if vehicle_type not in VEHICLE_TYPES:
            raise ValidationError("Invalid vehicle type.")
        return VehicleService.list_vehicles(page=page, per_page=per_page, vehicle_type=vehicle_type, is_available=True)

    @staticmethod
    def list_available(page=1, per_page=10, vehicle_type=None):
        return VehicleService.list_vehicles(
            page=page,
            per_page=per_page,
            vehicle_type=vehicle_type,
            is_available=True,
            status="active",
        )

    @staticmethod
    def update_vehicle(vehicle_id, payload):
        vehicle = VehicleService.get_vehicle(vehicle_id)
        # Identity, counters and the derived rating are not editable here.
        editable = {
            key: value
            for key, value in payload.items()
            if key not in {"registrationNumber", "totalBookings", "rating"}
        }
        fields = VehicleService._collect_fields(editable)
        for attr in ("name", "manufacturer", "model_name"):
            if attr in fields and not fields[attr]:
                raise ValidationError(f"{attr.replace('_', ' ').capitalize()} cannot be empty.")

        for attr, value in fields.items():
            setattr(vehicle, attr, value)
        db.session.commit()
        current_app.logger.info("Vehicle %s updated: %s", vehicle.id, ", ".join(sorted(fields)) or "no changes")
        return vehicle

    @staticmethod
    def delete_vehicle(vehicle_id):
        vehicle = VehicleService.get_vehicle(vehicle_id)
        if Booking.query.filter_by(vehicle_id=vehicle.id).first():
            raise ConflictError("Vehicle has bookings and cannot be deleted.")
        db.session.delete(vehicle)
        db.session.commit()
        current_app.logger.info("Vehicle %s deleted", vehicle_id)

    @staticmethod
    def set_availability(vehicle_id, is_available):
        if not isinstance(is_available, bool):
            raise ValidationError("isAvailable must be a boolean.")
        vehicle = VehicleService.get_vehicle(vehicle_id)
        vehicle.is_available = is_available
        db.session.commit()
        return vehicle
