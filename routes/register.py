from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from flask_login import login_required

from routes.context import acting_user, json_body, ledger_service, register_service, sales_client
from routes.guards import require_location
from services.domain import Absent, parse_date
from services.errors import NotFoundError
from services.reconciliation import summarize


register_bp = Blueprint("register", __name__, url_prefix="/register")


def _state_payload(location: str, date: str) -> dict:
    state = register_service().get_state(location, date)
    if isinstance(state, Absent):
        return {"state": state.name, "location": location, "date": date, "record": None, "summary": None}

    movements = ledger_service().get_ledger(location, date).movements
    return {
        "state": state.name,
        "location": location,
        "date": date,
        "record": state.record.to_dict(),
        "summary": summarize(state.record, movements).to_dict(),
    }


def _existing_record(location: str, date: str):
    record = register_service().get_daily_record(location, date)
    if record is None:
        raise NotFoundError("No hay caja abierta para ese día.")
    return record


@register_bp.get("/<location>/<date>")
@login_required
@require_location()
def show(location: str, date: str):
    """Estado de la caja del día con su cuadre."""
    return jsonify(_state_payload(location, parse_date(date)))


@register_bp.post("/<location>/<date>/open")
@login_required
@require_location()
def open_register(location: str, date: str):
    date = parse_date(date)
    data = json_body()
    register_service().open_register(location, date, acting_user(), data.get("openingCash"))
    return jsonify(_state_payload(location, date)), 201


@register_bp.post("/<location>/<date>/close")
@login_required
@require_location()
def close_register(location: str, date: str):
    date = parse_date(date)
    data = json_body()
    record = _existing_record(location, date)
    register_service().close_register(
        record,
        cash_sales=data.get("cashSales"),
        card_sales=data.get("cardSales"),
        datafone_sales=data.get("datafoneSales"),
        final_cash_count=data.get("finalCashCount"),
    )
    return jsonify(_state_payload(location, date))


@register_bp.patch("/<location>/<date>")
@login_required
@require_location()
def amend(location: str, date: str):
    date = parse_date(date)
    record = _existing_record(location, date)
    register_service().amend_record(record, json_body())
    return jsonify(_state_payload(location, date))


@register_bp.delete("/<location>/<date>")
@login_required
@require_location()
def delete(location: str, date: str):
    date = parse_date(date)
    register_service().delete_record(location, date)
    current_app.logger.info("Registro %s/%s eliminado por %s", location, date, acting_user())
    return jsonify({"success": True})


@register_bp.get("/<location>/<date>/sales-totals")
@login_required
@require_location()
def sales_totals(location: str, date: str):
    """Sugerencia de ventas del TPV para el cierre (ceros si el API no responde)."""
    totals = sales_client().get_daily_sales_totals(location, parse_date(date))
    return jsonify(totals.to_dict())
