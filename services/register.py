"""Ciclo de vida de la caja diaria: Ausente -> Abierta -> Cerrada.

- Apertura: una sola por (sede, día).
- Cierre: solo desde Abierta; registra ventas y efectivo contado.
- Edición: solo sobre Cerrada; sobrescribe campos sin guardar los valores anteriores.
- Borrado: elimina el registro y el libro de movimientos del día.
"""

from __future__ import annotations

import logging
from typing import Optional

from services.domain import (
    Absent,
    ClosedRecord,
    DailyRecord,
    OpenRecord,
    RegisterState,
    parse_date,
    parse_money,
    record_from_dict,
    state_of,
)
from services.errors import (
    ConcurrentUpdateError,
    NotFoundError,
    PartialFailureError,
    PersistenceError,
    ValidationError,
)
from services.kv_store import KVStore, movements_key, record_key


log = logging.getLogger(__name__)


# Claves aceptadas en una edición -> atributo del registro
AMENDABLE = {
    "openingCash": "opening_cash",
    "cashSales": "cash_sales",
    "cardSales": "card_sales",
    "datafoneSales": "datafone_sales",
    "finalCashCount": "final_cash_count",
}


class RegisterService:
    def __init__(self, store: KVStore):
        self.store = store

    def get_daily_record(self, location: str, date: str) -> Optional[DailyRecord]:
        raw = self.store.get(record_key(location, parse_date(date)))
        return record_from_dict(raw) if raw else None

    def get_state(self, location: str, date: str) -> RegisterState:
        date = parse_date(date)
        return state_of(location, date, self.get_daily_record(location, date))

    def list_records(self, location: str) -> list[DailyRecord]:
        records = [record_from_dict(r) for r in self.store.get_by_prefix(f"daily_record_{location}_")]
        # "centro_" también es prefijo de "centro_norte_..."
        return [r for r in records if r.location == location]

    def _stored(self, record: DailyRecord) -> tuple[Optional[DailyRecord], int]:
        """Registro guardado y su versión; (None, 0) si el día no existe."""
        found = self.store.get_entry(record_key(record.location, record.date))
        if found is None:
            return None, 0
        raw, version = found
        return record_from_dict(raw), version

    def _save(self, record: DailyRecord, expected_version: int, message: str) -> None:
        try:
            self.store.set(record_key(record.location, record.date), record.to_dict(),
                           expected_version=expected_version)
        except ConcurrentUpdateError:
            raise ValidationError(message)

    def open_register(self, location: str, date: str, user: str, opening_cash) -> OpenRecord:
        date = parse_date(date)
        record = OpenRecord(
            date=date,
            location=location,
            user=user,
            opening_cash=parse_money(opening_cash, "openingCash"),
        )

        if not isinstance(self.get_state(location, date), Absent):
            raise ValidationError("La caja ya tiene apertura registrada para este día.")

        try:
            # expected_version=0: la clave no debe existir (evita doble apertura simultánea)
            self.store.set(record_key(location, date), record.to_dict(), expected_version=0)
        except ConcurrentUpdateError:
            raise ValidationError("La caja ya tiene apertura registrada para este día.")

        log.info("Caja abierta %s/%s por %s con %s", location, date, user, record.opening_cash)
        return record

    def close_register(self, record: DailyRecord, cash_sales, card_sales, datafone_sales,
                       final_cash_count) -> ClosedRecord:
        not_open = "Solo se puede cerrar una caja abierta."
        if not isinstance(record, OpenRecord):
            raise ValidationError(not_open)

        # El objeto recibido puede estar desfasado: manda lo que hay guardado.
        stored, version = self._stored(record)
        if not isinstance(stored, OpenRecord):
            raise ValidationError(not_open)

        closed = ClosedRecord(
            date=stored.date,
            location=stored.location,
            user=stored.user,
            opening_cash=stored.opening_cash,
            cash_sales=parse_money(cash_sales, "cashSales"),
            card_sales=parse_money(card_sales, "cardSales"),
            datafone_sales=parse_money(datafone_sales, "datafoneSales"),
            final_cash_count=parse_money(final_cash_count, "finalCashCount"),
        )
        self._save(closed, version, not_open)
        log.info("Caja cerrada %s/%s", closed.location, closed.date)
        return closed

    def amend_record(self, record: DailyRecord, patch: dict) -> ClosedRecord:
        """Sobrescribe cualquier subconjunto de los cinco montos de un registro cerrado.

        El parche se aplica sobre el registro guardado, no sobre `record`.
        No queda rastro de los valores anteriores.
        """
        not_closed = "Solo se puede editar una caja cerrada."
        if not isinstance(record, ClosedRecord):
            raise ValidationError(not_closed)

        stored, version = self._stored(record)
        if not isinstance(stored, ClosedRecord):
            raise ValidationError(not_closed)

        fields = {}
        for key, value in (patch or {}).items():
            attr = AMENDABLE.get(key) or (key if key in AMENDABLE.values() else None)
            if attr is None:
                raise ValidationError(f"Campo no editable: {key}.")
            fields[attr] = parse_money(value, key)

        amended = stored.with_fields(**fields)
        self._save(amended, version, not_closed)
        log.info("Registro %s editado: %s", amended.id, ", ".join(sorted(fields)) or "sin cambios")
        return amended

    def delete_record(self, location: str, date: str) -> None:
        """Borra registro y movimientos del día.

        El almacén no tiene transacciones entre claves: se borra primero el
        registro y luego el libro. Si falla el segundo paso se lanza
        PartialFailureError con las claves pendientes.
        """
        date = parse_date(date)
        rkey, mkey = record_key(location, date), movements_key(location, date)

        has_record = self.store.get(rkey) is not None
        # Sin registro pero con libro: reintento tras un borrado parcial.
        if not has_record and self.store.get(mkey) is None:
            raise NotFoundError("No hay registro para ese día.")

        if has_record:
            self.store.delete(rkey)
        try:
            self.store.delete(mkey)
        except PersistenceError as e:
            if not has_record:
                raise
            log.error("Borrado parcial %s/%s: queda %s", location, date, mkey)
            raise PartialFailureError(
                "Se eliminó el registro pero no sus movimientos. Reintenta el borrado.",
                completed=[rkey],
                pending=[mkey],
            ) from e

        log.info("Registro y movimientos eliminados %s/%s", location, date)
