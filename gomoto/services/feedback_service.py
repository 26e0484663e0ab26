from decimal import Decimal, InvalidOperation

from flask import current_app

from gomoto.errors import ValidationError
from gomoto.extensions import db
from gomoto.models import Booking, Vehicle
from gomoto.models.base import utcnow
from gomoto.services.pricing import average_rating
from gomoto.validators import check_places, clean_text


class FeedbackService:
    @staticmethod
    def _parse_rating(rating):
        if rating is None or rating == "" or isinstance(rating, bool):
            raise ValidationError("Rating must be between 0 and 5.")
        try:
            value = Decimal(str(rating))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError("Rating must be between 0 and 5.") from exc
        if not value.is_finite() or value < 0 or value > 5:
            raise ValidationError("Rating must be between 0 and 5.")
        return check_places(value, "Rating", 2)

    @staticmethod
    def submit_feedback(booking, rating, comment=None):
        value = FeedbackService._parse_rating(rating)
        comment = clean_text(comment, "Comment")

        # Last submission wins; earlier feedback is not kept.
        booking.feedback_rating = value
        booking.feedback_comment = comment
        booking.feedback_submitted_at = utcnow()
        db.session.flush()

        FeedbackService.recalculate_vehicle_rating(booking.vehicle_id)
        db.session.commit()
        return booking

    @staticmethod
    def recalculate_vehicle_rating(vehicle_id):
        """Full recompute over every rated booking of the vehicle."""
        ratings = [
            row.feedback_rating
            for row in db.session.query(Booking.feedback_rating)
            .filter(Booking.vehicle_id == vehicle_id)
            .filter(Booking.feedback_rating.isnot(None))
            .all()
        ]
        rating = average_rating(ratings)
        if rating is None:
            return None

        vehicle = db.session.get(Vehicle, vehicle_id)
        vehicle.rating = rating
        current_app.logger.info("Vehicle %s rating recalculated to %s over %d ratings", vehicle_id, rating, len(ratings))
        return rating
