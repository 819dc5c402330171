# ------- storefront/utils/decorators.py -------
from functools import wraps
from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from ..errors import ValidationError
from ..model.user import User
from ..utils.api import api_error


def current_user_id() -> int:
    """Authenticated caller's user id taken from the JWT identity."""
    verify_jwt_in_request()
    uid = get_jwt_identity()
    try:
        uid = int(uid)
    except (TypeError, ValueError):
        raise ValidationError.single("user_id", "token identity is not a user id")
    if uid <= 0:
        raise ValidationError.single("user_id", "must be a positive integer")
    return uid


def _current_user():
    from ..services import get_services

    verify_jwt_in_request()
    try:
        uid = int(get_jwt_identity())
    except (TypeError, ValueError):
        return None
    with get_services().storage.session() as s:
        user = s.get(User, uid)
        if user is not None:
            s.expunge(user)
        return user


def role_required(*roles, message: str | None = None):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            u = _current_user()
            if not u:
                return jsonify(api_error("Unauthorized")), 401
            if u.role not in roles:
                return jsonify(api_error(message or "Forbidden")), 403
            return fn(*args, **kwargs)
        return wrapper
    return decorator
