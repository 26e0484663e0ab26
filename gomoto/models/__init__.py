from gomoto.models.booking import Booking
from gomoto.models.user import User
from gomoto.models.vehicle import Vehicle

__all__ = [
    "User",
    "Vehicle",
    "Booking",
]
