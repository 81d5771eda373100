"""
Histórico: ventanas móviles por período y totales agregados.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from conftest import LOCATION, make_closed, make_movement, make_open
from services.errors import ValidationError
from services.history import HistoryService, aggregate_totals, filter_by_period


NOW = datetime(2026, 1, 30, 15, 30)


def _dated(days_ago):
    return make_closed(date=(NOW - timedelta(days=days_ago)).date().isoformat())


class TestFilterByPeriod:
    def test_week_window_edges(self):
        eight, six = _dated(8), _dated(6)
        assert filter_by_period([eight, six], "week", now=NOW) == [six]

    def test_week_is_sliding_not_calendar(self):
        # Exactamente 7 días atrás a medianoche queda antes de now - 7 días.
        assert filter_by_period([_dated(7)], "week", now=NOW) == []

    def test_month_window(self):
        records = [_dated(29), _dated(31)]
        assert filter_by_period(records, "month", now=NOW) == records[:1]

    def test_today_exact_match(self):
        records = [_dated(0), _dated(1)]
        assert filter_by_period(records, "today", now=NOW) == records[:1]

    def test_today_uses_utc_date(self):
        # 23:30 en UTC-5 ya es 31 de enero en UTC.
        late = datetime(2026, 1, 30, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
        records = [make_closed(date="2026-01-30"), make_closed(date="2026-01-31")]
        assert filter_by_period(records, "today", now=late) == records[1:]

    def test_periods_are_nested(self):
        records = [_dated(d) for d in (0, 1, 3, 6, 7, 8, 15, 29, 30, 31, 90)]
        today = filter_by_period(records, "today", now=NOW)
        week = filter_by_period(records, "week", now=NOW)
        month = filter_by_period(records, "month", now=NOW)
        everything = filter_by_period(records, "all", now=NOW)
        assert set(today) <= set(week) <= set(month) <= set(everything)
        assert everything == records

    def test_unknown_period(self):
        with pytest.raises(ValidationError):
            filter_by_period([], "year", now=NOW)


class TestAggregateTotals:
    def test_sums_and_balanced(self):
        d1 = make_closed(opening=100, cash=200, card=150, datafone=150, final=330, date="2026-01-29")
        d2 = make_closed(opening=50, cash=100, card=80, datafone=80, final=150, date="2026-01-30")
        moves = {
            "2026-01-29": [make_movement("entrada", 50, id_="a", date="2026-01-29"),
                           make_movement("salida", 20, id_="b", date="2026-01-29")],
        }
        lookups = []

        def movements_for(loc, d):
            lookups.append((loc, d))
            return moves.get(d, [])

        t = aggregate_totals([d1, d2], movements_for)
        assert t.cash_sales == Decimal("300.00")
        assert t.card_sales == Decimal("230.00")
        assert t.total_sales == Decimal("530.00")
        assert t.cash_variance_sum == 0
        assert t.card_variance_sum == 0
        assert t.balanced is True
        assert sorted(lookups) == [(LOCATION, "2026-01-29"), (LOCATION, "2026-01-30")]

    def test_offsetting_variances_still_sum_to_zero(self):
        short = make_closed(opening=0, cash=10, final=5, date="2026-01-29")
        over = make_closed(opening=0, cash=10, final=15, date="2026-01-30")
        t = aggregate_totals([short, over], lambda loc, d: [])
        assert t.cash_variance_sum == 0
        assert t.balanced is True

    def test_unbalanced_period(self):
        t = aggregate_totals([make_closed(opening=100, final=95)], lambda loc, d: [])
        assert t.cash_variance_sum == Decimal("-5.00")
        assert t.balanced is False

    def test_open_records_counted_but_not_in_variance(self):
        t = aggregate_totals([make_open(100), make_closed(opening=10, final=10, date="2026-01-29")],
                             lambda loc, d: [])
        assert t.record_count == 2
        assert t.open_count == 1
        assert t.cash_variance_sum == 0

    def test_empty(self):
        t = aggregate_totals([], lambda loc, d: [])
        assert t.record_count == 0
        assert t.balanced is True


class TestHistoryService:
    def test_rows_sorted_newest_first_with_summary(self, register, ledger):
        for day in ("2026-01-28", "2026-01-30", "2026-01-29"):
            opened = register.open_register(LOCATION, day, "Ana", 100)
            register.close_register(opened, cash_sales=0, card_sales=0, datafone_sales=0, final_cash_count=100)
        ledger.add_movement(LOCATION, "2026-01-29", "salida", 10, "compra", "Ana")

        data = HistoryService(register, ledger).history(LOCATION, "week", now=NOW)

        assert [row["record"]["date"] for row in data["records"]] == ["2026-01-30", "2026-01-29", "2026-01-28"]
        row_29 = data["records"][1]["summary"]
        assert row_29["expectedCash"] == 90.0
        assert row_29["cashVariance"] == 10.0
        assert data["totals"]["cashVarianceSum"] == 10.0
        assert data["totals"]["balanced"] is False

    def test_location_with_underscore_suffix_kept_apart(self, register, ledger):
        register.open_register(LOCATION, "2026-01-30", "Ana", 100)
        register.open_register(f"{LOCATION}_norte", "2026-01-30", "Luis", 70)

        data = HistoryService(register, ledger).history(LOCATION, "all", now=NOW)

        assert [row["record"]["location"] for row in data["records"]] == [LOCATION]
        assert data["totals"]["recordCount"] == 1
