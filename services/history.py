"""Histórico de registros: filtro por período y totales.

Los períodos son ventanas móviles desde "ahora", no semanas ni meses de
calendario: week = últimos 7 días, month = últimos 30 días.
"Hoy" es la fecha UTC; un `now` sin zona horaria se toma como UTC.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Callable, Iterable, Optional

from services.domain import ClosedRecord, DailyRecord, Movement, ZERO
from services.errors import ValidationError
from services.ledger import LedgerService
from services.reconciliation import compute_card_variance, compute_cash_variance, summarize
from services.register import RegisterService


class Period:
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"

    CHOICES = {ALL, TODAY, WEEK, MONTH}


WINDOW_DAYS = {Period.WEEK: 7, Period.MONTH: 30}

MovementsLookup = Callable[[str, str], list[Movement]]


@dataclass(frozen=True)
class PeriodTotals:
    cash_sales: Decimal
    card_sales: Decimal
    total_sales: Decimal
    cash_variance_sum: Decimal
    card_variance_sum: Decimal
    record_count: int
    open_count: int

    @property
    def balanced(self) -> bool:
        return self.cash_variance_sum == 0 and self.card_variance_sum == 0

    def to_dict(self) -> dict:
        return {
            "cashSales": float(self.cash_sales),
            "cardSales": float(self.card_sales),
            "totalSales": float(self.total_sales),
            "cashVarianceSum": float(self.cash_variance_sum),
            "cardVarianceSum": float(self.card_variance_sum),
            "recordCount": self.record_count,
            "openCount": self.open_count,
            "balanced": self.balanced,
        }


def _utc_naive(now: datetime) -> datetime:
    # Las fechas de los registros son días UTC, como los timestamps del libro.
    if now.tzinfo is None:
        return now
    return now.astimezone(timezone.utc).replace(tzinfo=None)


def _record_start(record: DailyRecord) -> datetime:
    return datetime.combine(datetime.strptime(record.date, "%Y-%m-%d").date(), time.min)


def filter_by_period(records: Iterable[DailyRecord], period: str,
                     now: Optional[datetime] = None) -> list[DailyRecord]:
    if period not in Period.CHOICES:
        raise ValidationError("Período inválido. Usa all, today, week o month.")

    records = list(records)
    if period == Period.ALL:
        return records

    now = _utc_naive(now or datetime.now(timezone.utc))
    if period == Period.TODAY:
        today = now.date().isoformat()
        return [r for r in records if r.date == today]

    since = now - timedelta(days=WINDOW_DAYS[period])
    return [r for r in records if _record_start(r) >= since]


def aggregate_totals(records: Iterable[DailyRecord], movements_for: MovementsLookup) -> PeriodTotals:
    """Suma ventas y diferencias.

    La diferencia de efectivo de cada día necesita su libro de movimientos,
    por eso se consulta `movements_for(location, date)` por registro. Las
    cajas abiertas no tienen diferencia definida: cuentan en `open_count`
    y no en las sumas de diferencias.
    """
    cash_sales = card_sales = cash_var = card_var = ZERO
    count = open_count = 0

    for r in records:
        count += 1
        cash_sales += r.cash_sales
        if not isinstance(r, ClosedRecord):
            open_count += 1
            continue
        card_sales += r.card_sales
        cash_var += compute_cash_variance(r, movements_for(r.location, r.date))
        card_var += compute_card_variance(r)

    return PeriodTotals(
        cash_sales=cash_sales,
        card_sales=card_sales,
        total_sales=cash_sales + card_sales,
        cash_variance_sum=cash_var,
        card_variance_sum=card_var,
        record_count=count,
        open_count=open_count,
    )


class HistoryService:
    def __init__(self, register: RegisterService, ledger: LedgerService):
        self.register = register
        self.ledger = ledger

    def history(self, location: str, period: str = Period.ALL, now: Optional[datetime] = None) -> dict:
        records = filter_by_period(self.register.list_records(location), period, now=now)
        records.sort(key=lambda r: r.date, reverse=True)

        # Un solo acceso al libro por día, compartido entre filas y totales.
        cache: dict[tuple[str, str], list[Movement]] = {}

        def movements_for(loc: str, d: str) -> list[Movement]:
            if (loc, d) not in cache:
                cache[(loc, d)] = self.ledger.get_ledger(loc, d).movements
            return cache[(loc, d)]

        rows = []
        for r in records:
            rows.append({
                "record": r.to_dict(),
                "summary": summarize(r, movements_for(r.location, r.date)).to_dict(),
            })

        return {
            "location": location,
            "period": period,
            "records": rows,
            "totals": aggregate_totals(records, movements_for).to_dict(),
        }
