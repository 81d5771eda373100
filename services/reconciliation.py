"""Cuadre de caja del día.

Funciones puras: sin I/O. Todo se redondea a céntimos antes de comparar;
"cuadrado" es diferencia exactamente cero, sin margen de tolerancia.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Optional

from services.domain import ClosedRecord, DailyRecord, MoveType, Movement, ZERO, to_cents
from services.errors import ValidationError


@dataclass(frozen=True)
class ReconciliationSummary:
    opening_cash: Decimal
    cash_sales: Decimal
    total_in: Decimal
    total_out: Decimal
    movements_net: Decimal
    expected_cash: Decimal
    final_cash_count: Optional[Decimal]
    cash_variance: Optional[Decimal]
    card_sales: Optional[Decimal]
    datafone_sales: Optional[Decimal]
    card_variance: Optional[Decimal]
    balanced: Optional[bool]

    def to_dict(self) -> dict:
        def f(v):
            return float(v) if isinstance(v, Decimal) else v

        return {
            "openingCash": f(self.opening_cash),
            "cashSales": f(self.cash_sales),
            "totalIn": f(self.total_in),
            "totalOut": f(self.total_out),
            "movementsNet": f(self.movements_net),
            "expectedCash": f(self.expected_cash),
            "finalCashCount": f(self.final_cash_count),
            "cashVariance": f(self.cash_variance),
            "cardSales": f(self.card_sales),
            "datafoneSales": f(self.datafone_sales),
            "cardVariance": f(self.card_variance),
            "balanced": self.balanced,
        }


def _same_day(record: DailyRecord, movements: Iterable[Movement]) -> list[Movement]:
    return [m for m in movements if m.location == record.location and m.date == record.date]


def _require_closed(record: DailyRecord) -> ClosedRecord:
    if not isinstance(record, ClosedRecord):
        raise ValidationError("La caja sigue abierta: la diferencia se calcula al cerrar.")
    return record


def compute_expected_cash(record: DailyRecord, movements: Iterable[Movement]) -> Decimal:
    net = sum((m.signed_amount for m in _same_day(record, movements)), ZERO)
    return to_cents(record.opening_cash + record.cash_sales + net)


def compute_cash_variance(record: DailyRecord, movements: Iterable[Movement]) -> Decimal:
    """Efectivo contado menos esperado. Positivo = sobrante, negativo = faltante."""
    closed = _require_closed(record)
    return to_cents(closed.final_cash_count) - compute_expected_cash(closed, movements)


def compute_card_variance(record: DailyRecord) -> Decimal:
    """Ventas con tarjeta declaradas menos lo liquidado por el datáfono."""
    closed = _require_closed(record)
    return to_cents(closed.card_sales) - to_cents(closed.datafone_sales)


def is_balanced(record: DailyRecord, movements: Iterable[Movement]) -> bool:
    return compute_cash_variance(record, movements) == 0 and compute_card_variance(record) == 0


def summarize(record: DailyRecord, movements: Iterable[Movement]) -> ReconciliationSummary:
    day = _same_day(record, movements)
    total_in = to_cents(sum((m.amount for m in day if m.type == MoveType.ENTRADA), ZERO))
    total_out = to_cents(sum((m.amount for m in day if m.type == MoveType.SALIDA), ZERO))
    expected = compute_expected_cash(record, day)

    if not isinstance(record, ClosedRecord):
        return ReconciliationSummary(
            opening_cash=record.opening_cash,
            cash_sales=record.cash_sales,
            total_in=total_in,
            total_out=total_out,
            movements_net=total_in - total_out,
            expected_cash=expected,
            final_cash_count=None,
            cash_variance=None,
            card_sales=None,
            datafone_sales=None,
            card_variance=None,
            balanced=None,
        )

    cash_var = compute_cash_variance(record, day)
    card_var = compute_card_variance(record)
    return ReconciliationSummary(
        opening_cash=record.opening_cash,
        cash_sales=record.cash_sales,
        total_in=total_in,
        total_out=total_out,
        movements_net=total_in - total_out,
        expected_cash=expected,
        final_cash_count=record.final_cash_count,
        cash_variance=cash_var,
        card_sales=record.card_sales,
        datafone_sales=record.datafone_sales,
        card_variance=card_var,
        balanced=cash_var == 0 and card_var == 0,
    )
