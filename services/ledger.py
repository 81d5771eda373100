"""Libro de movimientos manuales de caja (entradas/salidas) por sede y día.

El almacén guarda la lista completa bajo una sola clave, así que toda
escritura es leer-modificar-escribir. Cada escritura se condiciona a la
versión leída; si otro operador guardó antes, se lanza
ConcurrentUpdateError en vez de pisar su cambio.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Callable, Optional

from services.domain import MoveType, Movement, ZERO, parse_date, parse_money, to_cents
from services.errors import ConcurrentUpdateError, NotFoundError, ValidationError
from services.kv_store import KVStore, movements_key


log = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_movement_id() -> str:
    return f"{int(time.time() * 1000)}-{random.random()}"


def _iso(dt: datetime) -> str:
    return dt.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class Ledger:
    movements: list[Movement]
    version: int


@dataclass(frozen=True)
class MovementTotals:
    total_in: Decimal
    total_out: Decimal
    net: Decimal

    def to_dict(self) -> dict:
        return {"totalIn": float(self.total_in), "totalOut": float(self.total_out), "net": float(self.net)}


def totals(movements: list[Movement]) -> MovementTotals:
    total_in = to_cents(sum((m.amount for m in movements if m.type == MoveType.ENTRADA), ZERO))
    total_out = to_cents(sum((m.amount for m in movements if m.type == MoveType.SALIDA), ZERO))
    return MovementTotals(total_in=total_in, total_out=total_out, net=total_in - total_out)


def _clean_type(v) -> str:
    t = (v or "").strip().lower()
    if t not in MoveType.ALL:
        raise ValidationError("El tipo debe ser 'entrada' o 'salida'.")
    return t


def _clean_reason(v) -> str:
    reason = (v or "").strip()
    if not reason:
        raise ValidationError("El motivo es obligatorio.")
    return reason


class LedgerService:
    def __init__(
        self,
        store: KVStore,
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = new_movement_id,
    ):
        self.store = store
        self.clock = clock
        self.id_factory = id_factory

    # -------------------------
    # Lectura
    # -------------------------
    def get_ledger(self, location: str, date: str) -> Ledger:
        found = self.store.get_entry(movements_key(location, date))
        if found is None:
            return Ledger(movements=[], version=0)
        raw, version = found
        return Ledger(movements=[Movement.from_dict(m) for m in raw or []], version=version)

    def list_movements(self, location: str, date: str) -> list[Movement]:
        """Movimientos del día, más recientes primero."""
        movements = self.get_ledger(location, date).movements
        return sorted(movements, key=lambda m: m.timestamp, reverse=True)

    # -------------------------
    # Escritura
    # -------------------------
    def _save(self, location: str, date: str, movements: list[Movement], read_version: int,
              expected_version: Optional[int]) -> int:
        key = movements_key(location, date)
        if expected_version is not None and expected_version != read_version:
            raise ConcurrentUpdateError(
                "Los movimientos cambiaron mientras editabas. Recarga e intenta de nuevo.",
                key=key,
                expected=expected_version,
                actual=read_version,
            )
        return self.store.set(key, [m.to_dict() for m in movements], expected_version=read_version)

    def add_movement(self, location: str, date: str, type: str, amount, reason: str, user: str,
                     expected_version: Optional[int] = None) -> Movement:
        date = parse_date(date)
        movement = Movement(
            id=self.id_factory(),
            date=date,
            location=location,
            type=_clean_type(type),
            amount=parse_money(amount, "amount", allow_zero=False),
            reason=_clean_reason(reason),
            user=user,
            timestamp=_iso(self.clock()),
        )

        ledger = self.get_ledger(location, date)
        self._save(location, date, ledger.movements + [movement], ledger.version, expected_version)
        log.info("Movimiento %s %s %s en %s/%s por %s", movement.id, movement.type, movement.amount,
                 location, date, user)
        return movement

    def edit_movement(self, location: str, date: str, movement_id: str, new_fields: dict,
                      expected_version: Optional[int] = None) -> Movement:
        """Reemplaza el movimiento: mismo id, campos nuevos y timestamp nuevo.

        El reemplazo va al final de la lista, por eso cambia de posición en
        la vista ordenada por hora.
        """
        date = parse_date(date)
        ledger = self.get_ledger(location, date)
        current = next((m for m in ledger.movements if m.id == movement_id), None)
        if current is None:
            raise NotFoundError("El movimiento no existe.")

        unknown = set(new_fields) - {"type", "amount", "reason", "user"}
        if unknown:
            raise ValidationError(f"Campos no editables: {', '.join(sorted(unknown))}.")

        updated = Movement(
            id=current.id,
            date=date,
            location=location,
            type=_clean_type(new_fields.get("type", current.type)),
            amount=parse_money(new_fields.get("amount", current.amount), "amount", allow_zero=False),
            reason=_clean_reason(new_fields.get("reason", current.reason)),
            user=new_fields.get("user") or current.user,
            timestamp=_iso(self.clock()),
        )

        rest = [m for m in ledger.movements if m.id != movement_id]
        self._save(location, date, rest + [updated], ledger.version, expected_version)
        log.info("Movimiento %s editado en %s/%s", movement_id, location, date)
        return updated

    def delete_movement(self, location: str, date: str, movement_id: str,
                        expected_version: Optional[int] = None) -> None:
        date = parse_date(date)
        ledger = self.get_ledger(location, date)
        rest = [m for m in ledger.movements if m.id != movement_id]
        if len(rest) == len(ledger.movements):
            raise NotFoundError("El movimiento no existe.")

        self._save(location, date, rest, ledger.version, expected_version)
        log.info("Movimiento %s eliminado en %s/%s", movement_id, location, date)
