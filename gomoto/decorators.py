from functools import wraps

from flask_login import current_user

from gomoto.errors import AuthError, ForbiddenError


def role_required(*roles):
    def wrapper(func):
        @wraps(func)
        def inner(*args, **kwargs):
            if not current_user.is_authenticated:
                raise AuthError("Authentication required.")
            if current_user.role not in roles:
                raise ForbiddenError("You do not have permission to perform this action.")
            return func(*args, **kwargs)

        return inner

    return wrapper


def ensure_owner_or_admin(owner_id):
    """Admins pass; everyone else must be the owner of the record."""
    if current_user.role == "admin":
        return
    if current_user.id != owner_id:
        raise ForbiddenError("Not authorized for this booking.")
