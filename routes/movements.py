from __future__ import annotations

from flask import Blueprint, jsonify
from flask_login import login_required

from routes.context import acting_user, json_body, ledger_service, optional_version
from routes.guards import require_location
from services.domain import parse_date
from services.ledger import totals


movements_bp = Blueprint("movements", __name__, url_prefix="/movements")


def _ledger_payload(location: str, date: str) -> dict:
    service = ledger_service()
    ledger = service.get_ledger(location, date)
    ordered = sorted(ledger.movements, key=lambda m: m.timestamp, reverse=True)
    return {
        "location": location,
        "date": date,
        "version": ledger.version,
        "movements": [m.to_dict() for m in ordered],
        "totals": totals(ledger.movements).to_dict(),
    }


@movements_bp.get("/<location>/<date>")
@login_required
@require_location()
def list_movements(location: str, date: str):
    return jsonify(_ledger_payload(location, parse_date(date)))


@movements_bp.post("/<location>/<date>")
@login_required
@require_location()
def add_movement(location: str, date: str):
    date = parse_date(date)
    data = json_body()
    movement = ledger_service().add_movement(
        location,
        date,
        type=data.get("type"),
        amount=data.get("amount"),
        reason=data.get("reason"),
        user=acting_user(),
        expected_version=optional_version(data),
    )
    payload = _ledger_payload(location, date)
    payload["movement"] = movement.to_dict()
    return jsonify(payload), 201


@movements_bp.put("/<location>/<date>/<movement_id>")
@login_required
@require_location()
def edit_movement(location: str, date: str, movement_id: str):
    date = parse_date(date)
    data = json_body()
    fields = {k: data[k] for k in ("type", "amount", "reason") if k in data}
    fields["user"] = acting_user()
    movement = ledger_service().edit_movement(
        location, date, movement_id, fields, expected_version=optional_version(data)
    )
    payload = _ledger_payload(location, date)
    payload["movement"] = movement.to_dict()
    return jsonify(payload)


@movements_bp.delete("/<location>/<date>/<movement_id>")
@login_required
@require_location()
def delete_movement(location: str, date: str, movement_id: str):
    date = parse_date(date)
    data = json_body()
    ledger_service().delete_movement(location, date, movement_id, expected_version=optional_version(data))
    return jsonify(_ledger_payload(location, date))
