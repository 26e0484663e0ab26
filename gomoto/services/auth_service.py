import re
from datetime import date

from flask import current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from gomoto.errors import AuthError, ConflictError, ForbiddenError, NotFoundError, ValidationError
from gomoto.extensions import bcrypt, db
from gomoto.models import User
from gomoto.models.base import utcnow
from gomoto.validators import clean_text


class AuthService:
    @staticmethod
    def _normalize_phone(phone):
        raw = (clean_text(phone, "Phone") or "").replace(" ", "").replace("-", "")
        if not re.fullmatch(r"\+?\d{10,15}", raw):
            raise ValidationError("Please provide a valid phone number.")
        return raw

    @staticmethod
    def _check_password(password):
        if password is not None and not isinstance(password, str):
            raise ValidationError("Password must be text.")

    @staticmethod
    def _parse_date(value, label):
        if value in (None, ""):
            return None
        try:
            return date.fromisoformat(str(value)[:10])
        except ValueError as exc:
            raise ValidationError(f"Invalid {label}.") from exc

    @staticmethod
    def register_user(username, email, password, full_name, phone):
        normalized_username = (clean_text(username, "Username") or "").lower()
        normalized_email = (clean_text(email, "Email") or "").lower()
        full_name = clean_text(full_name, "Full name")
        AuthService._check_password(password)

        errors = []
        if len(normalized_username) < 3:
            errors.append({"field": "username", "message": "Username must be at least 3 characters long"})
        if "@" not in normalized_email:
            errors.append({"field": "email", "message": "Please provide a valid email"})
        if len(password or "") < 6:
            errors.append({"field": "password", "message": "Password must be at least 6 characters long"})
        if not full_name:
            errors.append({"field": "fullName", "message": "Full name is required"})
        if errors:
            raise ValidationError("Validation failed", errors=errors)
        normalized_phone = AuthService._normalize_phone(phone)

        existing = User.query.filter(
            or_(
                User.username == normalized_username,
                User.email == normalized_email,
                User.phone == normalized_phone,
            )
        ).first()
        if existing:
            raise ConflictError("User with email, username or phone already exists.")

        user = User(
            username=normalized_username,
            email=normalized_email,
            full_name=full_name,
            phone=normalized_phone,
            role="user",
            password_hash=bcrypt.generate_password_hash(password).decode("utf-8"),
        )
        try:
            db.session.add(user)
            db.session.commit()
        except IntegrityError as exc:
            db.session.rollback()
            raise ConflictError("User with email, username or phone already exists.") from exc
        current_app.logger.info("Registered user %s", user.id)
        return user

    @staticmethod
    def authenticate_user(email, password):
        normalized_email = (clean_text(email, "Email") or "").lower()
        if not normalized_email:
            raise ValidationError("Email is required.")
        if not password:
            raise ValidationError("Password is required.")
        AuthService._check_password(password)

        user = User.query.filter_by(email=normalized_email).first()
        if not user:
            raise NotFoundError("User does not exist.")

        try:
            is_valid = bcrypt.check_password_hash(user.password_hash, password)
        except ValueError:
            is_valid = False
        if not is_valid:
            raise AuthError("Invalid user credentials.")
        if not user.is_active_user:
            raise ForbiddenError("User account is inactive.")

        user.last_login = utcnow()
        db.session.commit()
        return user

    @staticmethod
    def update_profile(user, payload):
        updates = {}
        if "fullName" in payload:
            full_name = clean_text(payload.get("fullName"), "Full name")
            if not full_name:
                raise ValidationError("Full name cannot be empty.")
            updates["full_name"] = full_name
        if "phone" in payload:
            phone = AuthService._normalize_phone(payload.get("phone"))
            taken = User.query.filter(User.phone == phone, User.id != user.id).first()
            if taken:
                raise ConflictError("Phone number already registered.")
            updates["phone"] = phone
        if "address" in payload:
            updates["address"] = clean_text(payload.get("address"), "Address")
        if "licenseNumber" in payload:
            updates["license_number"] = (clean_text(payload.get("licenseNumber"), "License number") or "").upper() or None
        if "licenseExpiry" in payload:
            updates["license_expiry"] = AuthService._parse_date(payload.get("licenseExpiry"), "license expiry")

        for field, value in updates.items():
            setattr(user, field, value)
        db.session.commit()
        return user
