from gomoto.models.base import isoformat


def _money(value):
    return float(value) if value is not None else 0.0


def serialize_user(user):
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "fullName": user.full_name,
        "phone": user.phone,
        "role": user.role,
        "address": user.address,
        "licenseNumber": user.license_number,
        "licenseExpiry": user.license_expiry.isoformat() if user.license_expiry else None,
        "lastLogin": isoformat(user.last_login),
        "createdAt": isoformat(user.created_at),
    }


def serialize_vehicle(vehicle):
    return {
        "id": vehicle.id,
        "name": vehicle.name,
        "type": vehicle.type,
        "registrationNumber": vehicle.registration_number,
        "manufacturer": vehicle.manufacturer,
        "model": vehicle.model_name,
        "year": vehicle.year,
        "color": vehicle.color,
        "fuelType": vehicle.fuel_type,
        "transmission": vehicle.transmission,
        "seatingCapacity": vehicle.seating_capacity,
        "mileage": _money(vehicle.mileage),
        "pricePerDay": _money(vehicle.price_per_day),
        "pricePerHour": _money(vehicle.price_per_hour),
        "description": vehicle.description,
        "features": vehicle.features or [],
        "insurance": vehicle.insurance,
        "insurancePrice": _money(vehicle.insurance_price),
        "isAvailable": vehicle.is_available,
        "status": vehicle.status,
        "totalBookings": vehicle.total_bookings,
        "rating": float(vehicle.rating or 0),
        "location": {
            "address": vehicle.address,
            "city": vehicle.city,
            "state": vehicle.state,
            "zipCode": vehicle.zip_code,
            "coordinates": {
                "latitude": float(vehicle.latitude) if vehicle.latitude is not None else None,
                "longitude": float(vehicle.longitude) if vehicle.longitude is not None else None,
            },
        },
        "createdAt": isoformat(vehicle.created_at),
        "updatedAt": isoformat(vehicle.updated_at),
    }


def serialize_booking(booking, include_user=False):
    feedback = None
    if booking.feedback_rating is not None:
        feedback = {
            "rating": float(booking.feedback_rating),
            "comment": booking.feedback_comment,
            "submittedAt": isoformat(booking.feedback_submitted_at),
        }
    payload = {
        "id": booking.id,
        "bookingId": booking.booking_reference,
        "userId": booking.user_id,
        "vehicleId": booking.vehicle_id,
        "vehicle": serialize_vehicle(booking.vehicle) if booking.vehicle else None,
        "pickupDate": isoformat(booking.pickup_date),
        "dropoffDate": isoformat(booking.dropoff_date),
        "pickupLocation": booking.pickup_location,
        "dropoffLocation": booking.dropoff_location,
        "rentalDays": booking.rental_days,
        "rentalHours": float(booking.rental_hours or 0),
        "dailyRate": _money(booking.daily_rate),
        "hourlyRate": _money(booking.hourly_rate),
        "insuranceType": booking.insurance_type,
        "insurancePrice": _money(booking.insurance_price),
        "additionalCharges": booking.additional_charges or [],
        "totalAmount": _money(booking.total_amount),
        "advancePayment": _money(booking.advance_payment),
        "paymentMethod": booking.payment_method,
        "paymentStatus": booking.payment_status,
        "bookingStatus": booking.booking_status,
        "remarks": booking.remarks,
        "cancellationReason": booking.cancellation_reason,
        "cancellationDate": isoformat(booking.cancellation_date),
        "refundAmount": _money(booking.refund_amount),
        "feedback": feedback,
        "createdAt": isoformat(booking.created_at),
        "updatedAt": isoformat(booking.updated_at),
    }
    if include_user:
        payload["user"] = serialize_user(booking.user) if booking.user else None
    return payload
