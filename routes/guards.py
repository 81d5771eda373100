from functools import wraps

from flask import jsonify

from models import db
from models.location import Location


def _location_active(code: str) -> bool:
    return (
        db.session.query(Location.id)
        .filter(
            Location.code == code,
            Location.is_active.is_(True),
        )
        .first()
        is not None
    )


def require_location():
    """Obliga a que la sede de la URL (`<location>`) exista y esté activa."""

    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            location = kwargs.get("location")
            if not location or not _location_active(location):
                return jsonify({"error": "Sede inválida o inactiva."}), 404

            return fn(*args, **kwargs)

        return wrapper

    return decorator
