from flask_login import UserMixin

from gomoto.extensions import db
from gomoto.models.base import PKType, TimestampMixin


class User(UserMixin, TimestampMixin, db.Model):
    __tablename__ = "users"

    id = db.Column(PKType, primary_key=True, autoincrement=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)
    full_name = db.Column(db.String(120), nullable=False)
    phone = db.Column(db.String(16), nullable=False, unique=True, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(24), nullable=False, default="user", index=True)

    address = db.Column(db.Text, nullable=True)
    license_number = db.Column(db.String(32), nullable=True)
    license_expiry = db.Column(db.Date, nullable=True)

    is_active_user = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    bookings = db.relationship("Booking", back_populates="user", lazy="dynamic")
