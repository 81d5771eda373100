from flask import jsonify
from flask_login import login_required

from models import db
from models.location import Location
from routes import main_bp


@main_bp.get("/health")
def health():
    return jsonify({"status": "ok"})


@main_bp.get("/locations")
@login_required
def locations():
    rows = (
        db.session.query(Location)
        .filter(Location.is_active.is_(True))
        .order_by(Location.name)
        .all()
    )
    return jsonify({"locations": [loc.to_dict() for loc in rows]})
