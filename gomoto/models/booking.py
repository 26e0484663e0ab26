from gomoto.extensions import db
from gomoto.models.base import PKType, TimestampMixin

BOOKING_STATUSES = ("pending", "confirmed", "active", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "completed", "cancelled")
PAYMENT_METHODS = ("credit_card", "debit_card", "upi", "wallet")


class Booking(TimestampMixin, db.Model):
    __tablename__ = "bookings"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    booking_reference = db.Column(db.String(40), nullable=False, unique=True, index=True)
    user_id = db.Column(PKType, db.ForeignKey("users.id"), nullable=False, index=True)
    vehicle_id = db.Column(PKType, db.ForeignKey("vehicles.id"), nullable=False, index=True)

    pickup_date = db.Column(db.DateTime(timezone=True), nullable=False)
    dropoff_date = db.Column(db.DateTime(timezone=True), nullable=False)
    pickup_location = db.Column(db.JSON, nullable=True)
    dropoff_location = db.Column(db.JSON, nullable=True)
    rental_days = db.Column(db.Integer, nullable=False)
    rental_hours = db.Column(db.Numeric(8, 2), nullable=False, default=0)

    # Rate card copied from the vehicle when the booking is made.
    daily_rate = db.Column(db.Numeric(12, 2), nullable=False)
    hourly_rate = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    insurance_type = db.Column(db.String(24), nullable=True)
    insurance_price = db.Column(db.Numeric(14, 4), nullable=False, default=0)
    additional_charges = db.Column(db.JSON, nullable=False, default=list)
    # Rates, hours and charges carry at most two decimals, so four places hold any total exactly.
    total_amount = db.Column(db.Numeric(14, 4), nullable=False)
    advance_payment = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    payment_method = db.Column(db.String(16), nullable=True)

    booking_status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    payment_status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    remarks = db.Column(db.Text, nullable=True)

    cancellation_reason = db.Column(db.Text, nullable=True)
    cancellation_date = db.Column(db.DateTime(timezone=True), nullable=True)
    refund_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    feedback_rating = db.Column(db.Numeric(3, 2), nullable=True)
    feedback_comment = db.Column(db.Text, nullable=True)
    feedback_submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user = db.relationship("User", back_populates="bookings")
    vehicle = db.relationship("Vehicle", back_populates="bookings")

    __table_args__ = (
        db.Index("ix_bookings_user_status", "user_id", "booking_status"),
        db.Index("ix_bookings_vehicle_status", "vehicle_id", "booking_status"),
        db.CheckConstraint("rental_days >= 1", name="ck_booking_rental_days"),
        db.CheckConstraint("rental_hours >= 0", name="ck_booking_rental_hours"),
        db.CheckConstraint(
            "feedback_rating IS NULL OR (feedback_rating >= 0 AND feedback_rating <= 5)",
            name="ck_booking_feedback_rating",
        ),
    )
