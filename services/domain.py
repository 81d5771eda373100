"""Tipos del dominio de caja: movimientos, registros diarios y estado de caja.

El formato en el almacén (y en la API) conserva las claves camelCase
históricas: openingCash, cashSales, cardSales, datafoneSales, finalCashCount.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Union

from services.errors import ValidationError


CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class MoveType:
    ENTRADA = "entrada"  # Ingreso
    SALIDA = "salida"    # Egreso

    ALL = {ENTRADA, SALIDA}


class RecordStatus:
    OPEN = "open"
    CLOSED = "closed"


def to_cents(v) -> Decimal:
    return Decimal(str(v)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_money(val, field: str, *, allow_zero: bool = True) -> Decimal:
    """Convierte montos con coma/punto a Decimal(.01).

    A diferencia de un formulario, aquí un valor ausente no es cero: es error.
    """
    if val is None or (isinstance(val, str) and not val.strip()):
        raise ValidationError(f"Falta el campo {field}.")
    if isinstance(val, bool):
        raise ValidationError(f"{field} debe ser un número.")
    s = str(val).strip().replace(",", ".")
    try:
        d = Decimal(s)
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} debe ser un número.")
    if not d.is_finite():
        raise ValidationError(f"{field} debe ser un número.")
    if d < 0:
        raise ValidationError(f"{field} no puede ser negativo.")
    if not allow_zero and d == 0:
        raise ValidationError(f"{field} debe ser mayor a 0.")
    return to_cents(d)


def parse_date(v: Optional[str]) -> str:
    """Valida YYYY-MM-DD y devuelve la misma cadena normalizada."""
    try:
        return datetime.strptime((v or "").strip(), "%Y-%m-%d").date().isoformat()
    except ValueError:
        raise ValidationError("Fecha inválida, usa el formato YYYY-MM-DD.")


def _num(d: dict, key: str) -> Decimal:
    return to_cents(d.get(key) or 0)


@dataclass(frozen=True)
class Movement:
    id: str
    date: str
    location: str
    type: str
    amount: Decimal
    reason: str
    user: str
    timestamp: str

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.type == MoveType.ENTRADA else -self.amount

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "location": self.location,
            "type": self.type,
            "amount": float(self.amount),
            "reason": self.reason,
            "user": self.user,
            "timestamp": self.timestamp,
        }

    @classmethod
    def from_dict(cls, d: dict) -> "Movement":
        return cls(
            id=str(d["id"]),
            date=d["date"],
            location=d["location"],
            type=d["type"],
            amount=_num(d, "amount"),
            reason=d.get("reason") or "",
            user=d.get("user") or "",
            timestamp=d.get("timestamp") or "",
        )


@dataclass(frozen=True)
class OpenRecord:
    """Caja abierta: solo se conoce el efectivo inicial."""

    date: str
    location: str
    user: str
    opening_cash: Decimal

    @property
    def id(self) -> str:
        return f"{self.date}-{self.location}"

    # Las ventas en efectivo se asumen cero hasta el cierre.
    @property
    def cash_sales(self) -> Decimal:
        return ZERO

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "location": self.location,
            "user": self.user,
            "status": RecordStatus.OPEN,
            "openingCash": float(self.opening_cash),
            "cashSales": 0,
            "cardSales": 0,
            "datafoneSales": 0,
            "finalCashCount": 0,
        }


@dataclass(frozen=True)
class ClosedRecord:
    date: str
    location: str
    user: str
    opening_cash: Decimal
    cash_sales: Decimal
    card_sales: Decimal
    datafone_sales: Decimal
    final_cash_count: Decimal

    @property
    def id(self) -> str:
        return f"{self.date}-{self.location}"

    def with_fields(self, **fields) -> "ClosedRecord":
        return replace(self, **fields)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "location": self.location,
            "user": self.user,
            "status": RecordStatus.CLOSED,
            "openingCash": float(self.opening_cash),
            "cashSales": float(self.cash_sales),
            "cardSales": float(self.card_sales),
            "datafoneSales": float(self.datafone_sales),
            "finalCashCount": float(self.final_cash_count),
        }


DailyRecord = Union[OpenRecord, ClosedRecord]

CLOSING_FIELDS = ("cashSales", "cardSales", "datafoneSales", "finalCashCount")


def record_from_dict(d: dict) -> DailyRecord:
    status = d.get("status")
    if status is None:
        # Registros antiguos sin estado: abierto mientras los campos de cierre sigan en cero.
        status = RecordStatus.OPEN if all(_num(d, k) == 0 for k in CLOSING_FIELDS) else RecordStatus.CLOSED

    if status == RecordStatus.OPEN:
        return OpenRecord(
            date=d["date"],
            location=d["location"],
            user=d.get("user") or "",
            opening_cash=_num(d, "openingCash"),
        )
    return ClosedRecord(
        date=d["date"],
        location=d["location"],
        user=d.get("user") or "",
        opening_cash=_num(d, "openingCash"),
        cash_sales=_num(d, "cashSales"),
        card_sales=_num(d, "cardSales"),
        datafone_sales=_num(d, "datafoneSales"),
        final_cash_count=_num(d, "finalCashCount"),
    )


# -------------------------
# Estado de caja (variante explícita)
# -------------------------
@dataclass(frozen=True)
class Absent:
    location: str
    date: str
    name = "absent"


@dataclass(frozen=True)
class Open:
    record: OpenRecord
    name = "open"


@dataclass(frozen=True)
class Closed:
    record: ClosedRecord
    name = "closed"


RegisterState = Union[Absent, Open, Closed]


def state_of(location: str, date: str, record: Optional[DailyRecord]) -> RegisterState:
    if record is None:
        return Absent(location=location, date=date)
    if isinstance(record, ClosedRecord):
        return Closed(record=record)
    return Open(record=record)
