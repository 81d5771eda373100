"""Servicios del núcleo construidos por request.

El almacén se crea sobre la sesión de SQLAlchemy del request y se inyecta
en cada servicio; nada del núcleo accede a `db` directamente.
"""

from flask import current_app, request
from flask_login import current_user

from models import db
from services.errors import ValidationError
from services.history import HistoryService
from services.kv_store import KVStore
from services.ledger import LedgerService
from services.register import RegisterService
from services.sales_provider import SalesTotalsClient


def kv_store() -> KVStore:
    return KVStore(db.session)


def register_service() -> RegisterService:
    return RegisterService(kv_store())


def ledger_service() -> LedgerService:
    return LedgerService(kv_store())


def history_service() -> HistoryService:
    store = kv_store()
    return HistoryService(RegisterService(store), LedgerService(store))


def sales_client() -> SalesTotalsClient:
    client = current_app.extensions.get("sales_client")
    if client is None:
        client = SalesTotalsClient(
            current_app.config.get("SALES_API_URL"),
            timeout=current_app.config.get("SALES_API_TIMEOUT", 5.0),
        )
        current_app.extensions["sales_client"] = client
    return client


def acting_user() -> str:
    """Nombre del operador que firma registros y movimientos."""
    return current_user.full_name


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("El cuerpo debe ser un objeto JSON.")
    return data


def optional_version(data: dict):
    v = data.get("version")
    if v is None:
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        raise ValidationError("version debe ser un entero.")
