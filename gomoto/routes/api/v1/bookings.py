from flask import Blueprint, request
from flask_login import current_user, login_required

from gomoto.decorators import ensure_owner_or_admin, role_required
from gomoto.responses import api_response, json_body, page_args, paginated_payload
from gomoto.serializers import serialize_booking
from gomoto.services import BookingService, FeedbackService

api_booking_bp = Blueprint("api_booking", __name__)


def _with_user(booking):
    return serialize_booking(booking, include_user=True)


@api_booking_bp.post("")
@login_required
def create_booking():
    payload = json_body()
    booking = BookingService.create_booking(current_user.id, payload)
    return api_response(_with_user(booking), "Booking created successfully", 201)


@api_booking_bp.get("/my-bookings")
@login_required
def my_bookings():
    page, limit = page_args()
    paginated = BookingService.list_user_bookings(
        current_user.id,
        status=request.args.get("status"),
        page=page,
        per_page=limit,
    )
    return api_response(
        paginated_payload("bookings", paginated, serialize_booking),
        "User bookings fetched successfully",
    )


@api_booking_bp.get("")
@login_required
@role_required("admin")
def all_bookings():
    page, limit = page_args()
    paginated = BookingService.list_bookings(
        status=request.args.get("status"),
        vehicle_id=request.args.get("vehicleId", type=int),
        page=page,
        per_page=limit,
    )
    return api_response(paginated_payload("bookings", paginated, _with_user), "All bookings fetched successfully")


@api_booking_bp.get("/stats/all")
@login_required
@role_required("admin")
def booking_stats():
    stats = BookingService.booking_stats()
    return api_response(
        {
            "totalBookings": stats["total_bookings"],
            "confirmedBookings": stats["confirmed_bookings"],
            "completedBookings": stats["completed_bookings"],
            "cancelledBookings": stats["cancelled_bookings"],
            "totalRevenue": float(stats["total_revenue"]),
        },
        "Booking statistics fetched successfully",
    )


@api_booking_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id):
    booking = BookingService.get_booking(booking_id)
    ensure_owner_or_admin(booking.user_id)
    return api_response(_with_user(booking), "Booking fetched successfully")


@api_booking_bp.put("/<int:booking_id>/status")
@login_required
@role_required("admin")
def update_status(booking_id):
    payload = json_body()
    booking = BookingService.update_status(
        booking_id,
        booking_status=payload.get("bookingStatus"),
        payment_status=payload.get("paymentStatus"),
    )
    return api_response(serialize_booking(booking), "Booking updated successfully")


@api_booking_bp.put("/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id):
    payload = json_body()
    booking = BookingService.get_booking(booking_id)
    ensure_owner_or_admin(booking.user_id)
    booking = BookingService.cancel_booking(booking, payload.get("cancellationReason"))
    return api_response(serialize_booking(booking), "Booking cancelled successfully")


@api_booking_bp.post("/<int:booking_id>/feedback")
@login_required
def submit_feedback(booking_id):
    payload = json_body()
    booking = BookingService.get_booking(booking_id)
    ensure_owner_or_admin(booking.user_id)
    booking = FeedbackService.submit_feedback(booking, payload.get("rating"), payload.get("comment"))
    return api_response(serialize_booking(booking), "Feedback submitted successfully")
