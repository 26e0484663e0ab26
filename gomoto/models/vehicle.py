from gomoto.extensions import db
from gomoto.models.base import PKType, TimestampMixin

VEHICLE_TYPES = ("bike", "car", "truck", "jcb")
FUEL_TYPES = ("petrol", "diesel", "electric")
TRANSMISSIONS = ("manual", "automatic")
INSURANCE_PLANS = ("basic", "standard", "premium")
VEHICLE_STATUSES = ("active", "maintenance", "inactive")


class Vehicle(TimestampMixin, db.Model):
    __tablename__ = "vehicles"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    name = db.Column(db.String(140), nullable=False)
    type = db.Column(db.String(16), nullable=False, index=True)
    registration_number = db.Column(db.String(32), nullable=False, unique=True, index=True)
    manufacturer = db.Column(db.String(120), nullable=False)
    model_name = db.Column("model", db.String(120), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    color = db.Column(db.String(40), nullable=True)
    fuel_type = db.Column(db.String(16), nullable=False, default="diesel")
    transmission = db.Column(db.String(16), nullable=False, default="manual")
    seating_capacity = db.Column(db.Integer, nullable=False)
    mileage = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    price_per_day = db.Column(db.Numeric(12, 2), nullable=False)
    price_per_hour = db.Column(db.Numeric(12, 2), nullable=False)
    description = db.Column(db.Text, nullable=True)
    features = db.Column(db.JSON, nullable=False, default=list)
    insurance = db.Column(db.String(16), nullable=False, default="basic")
    insurance_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    is_available = db.Column(db.Boolean, nullable=False, default=True, index=True)
    status = db.Column(db.String(16), nullable=False, default="active", index=True)
    total_bookings = db.Column(db.Integer, nullable=False, default=0)
    rating = db.Column(db.Numeric(3, 1), nullable=False, default=0)

    address = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True, index=True)
    state = db.Column(db.String(120), nullable=True)
    zip_code = db.Column(db.String(12), nullable=True)
    latitude = db.Column(db.Numeric(10, 7), nullable=True)
    longitude = db.Column(db.Numeric(10, 7), nullable=True)

    bookings = db.relationship("Booking", back_populates="vehicle", lazy="dynamic")

    __table_args__ = (
        db.Index("ix_vehicles_type_available", "type", "is_available"),
        db.CheckConstraint("price_per_day >= 0", name="ck_vehicle_price_per_day"),
        db.CheckConstraint("price_per_hour >= 0", name="ck_vehicle_price_per_hour"),
        db.CheckConstraint("rating >= 0 AND rating <= 5", name="ck_vehicle_rating_range"),
    )
