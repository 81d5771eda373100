from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_login import login_required

from routes.context import history_service
from routes.guards import require_location
from services.history import Period


history_bp = Blueprint("history", __name__, url_prefix="/history")


@history_bp.get("/<location>")
@login_required
@require_location()
def history(location: str):
    """Registros de la sede (más recientes primero) con totales del período."""
    period = (request.args.get("period") or Period.ALL).strip().lower()
    return jsonify(history_service().history(location, period))
