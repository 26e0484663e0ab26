from gomoto.services.auth_service import AuthService
from gomoto.services.booking_service import BookingService
from gomoto.services.feedback_service import FeedbackService
from gomoto.services.vehicle_service import VehicleService

__all__ = [
    "AuthService",
    "BookingService",
    "FeedbackService",
    "VehicleService",
]
