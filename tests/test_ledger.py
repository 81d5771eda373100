"""
Libro de movimientos: alta, edición, borrado, orden y concurrencia optimista.
"""

from decimal import Decimal

import pytest

from conftest import DAY, LOCATION
from services.errors import ConcurrentUpdateError, NotFoundError, ValidationError
from services.ledger import LedgerService, totals


def _three(ledger):
    return [
        ledger.add_movement(LOCATION, DAY, "entrada", 50, "cambio", "Ana"),
        ledger.add_movement(LOCATION, DAY, "salida", "20,00", "compra de toallas", "Ana"),
        ledger.add_movement(LOCATION, DAY, "entrada", "5.5", "propina", "Luis"),
    ]


class TestAdd:
    def test_add_generates_id_and_timestamp(self, ledger):
        m = ledger.add_movement(LOCATION, DAY, "entrada", "50", "  cambio  ", "Ana")
        assert m.id == "mv-1"
        assert m.timestamp == "2026-01-30T09:00:00.000Z"
        assert m.amount == Decimal("50.00")
        assert m.reason == "cambio"
        assert ledger.list_movements(LOCATION, DAY) == [m]

    @pytest.mark.parametrize("amount", [0, "0.00", -3, None, "x"])
    def test_amount_must_be_positive(self, ledger, amount):
        with pytest.raises(ValidationError):
            ledger.add_movement(LOCATION, DAY, "entrada", amount, "cambio", "Ana")

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_reason_required(self, ledger, reason):
        with pytest.raises(ValidationError):
            ledger.add_movement(LOCATION, DAY, "salida", 10, reason, "Ana")

    def test_type_checked(self, ledger):
        with pytest.raises(ValidationError):
            ledger.add_movement(LOCATION, DAY, "transfer", 10, "x", "Ana")

    def test_ledgers_partitioned_by_location_and_date(self, ledger):
        ledger.add_movement(LOCATION, DAY, "entrada", 1, "a", "Ana")
        ledger.add_movement("norte", DAY, "entrada", 2, "b", "Ana")
        ledger.add_movement(LOCATION, "2026-01-31", "entrada", 3, "c", "Ana")
        assert [m.amount for m in ledger.list_movements(LOCATION, DAY)] == [Decimal("1.00")]


class TestListing:
    def test_newest_first(self, ledger):
        added = _three(ledger)
        assert [m.id for m in ledger.list_movements(LOCATION, DAY)] == [m.id for m in reversed(added)]

    def test_totals(self, ledger):
        _three(ledger)
        t = totals(ledger.list_movements(LOCATION, DAY))
        assert t.total_in == Decimal("55.50")
        assert t.total_out == Decimal("20.00")
        assert t.net == Decimal("35.50")


class TestEdit:
    def test_edit_keeps_id_and_moves_to_top(self, ledger):
        first, second, third = _three(ledger)
        edited = ledger.edit_movement(LOCATION, DAY, first.id, {"amount": 60, "reason": "cambio corregido"})

        assert edited.id == first.id
        assert edited.amount == Decimal("60.00")
        assert edited.type == "entrada"
        assert edited.timestamp > third.timestamp

        listed = ledger.list_movements(LOCATION, DAY)
        assert [m.id for m in listed] == [first.id, third.id, second.id]
        assert len(listed) == 3

    def test_edit_validates(self, ledger):
        first, _, _ = _three(ledger)
        with pytest.raises(ValidationError):
            ledger.edit_movement(LOCATION, DAY, first.id, {"reason": " "})
        with pytest.raises(ValidationError):
            ledger.edit_movement(LOCATION, DAY, first.id, {"date": "2026-02-01"})

    def test_edit_unknown_id(self, ledger):
        _three(ledger)
        with pytest.raises(NotFoundError):
            ledger.edit_movement(LOCATION, DAY, "nope", {"amount": 1})


class TestDelete:
    def test_delete_by_id(self, ledger):
        first, second, third = _three(ledger)
        ledger.delete_movement(LOCATION, DAY, second.id)
        assert {m.id for m in ledger.list_movements(LOCATION, DAY)} == {first.id, third.id}

    def test_delete_unknown_id_leaves_ledger_unchanged(self, ledger):
        _three(ledger)
        version = ledger.get_ledger(LOCATION, DAY).version

        with pytest.raises(NotFoundError):
            ledger.delete_movement(LOCATION, DAY, "no-existe")

        assert len(ledger.list_movements(LOCATION, DAY)) == 3
        assert ledger.get_ledger(LOCATION, DAY).version == version


class TestConcurrency:
    def test_version_increments_per_write(self, ledger):
        assert ledger.get_ledger(LOCATION, DAY).version == 0
        _three(ledger)
        assert ledger.get_ledger(LOCATION, DAY).version == 3

    def test_stale_token_rejected(self, ledger, store, clock):
        _three(ledger)
        seen = ledger.get_ledger(LOCATION, DAY).version

        other = LedgerService(store, clock=clock, id_factory=lambda: "otro")
        other.add_movement(LOCATION, DAY, "salida", 1, "otro operador", "Luis")

        with pytest.raises(ConcurrentUpdateError):
            ledger.add_movement(LOCATION, DAY, "entrada", 9, "mío", "Ana", expected_version=seen)

        ids = {m.id for m in ledger.list_movements(LOCATION, DAY)}
        assert "otro" in ids
        assert len(ids) == 4

    def test_current_token_accepted(self, ledger):
        _three(ledger)
        seen = ledger.get_ledger(LOCATION, DAY).version
        ledger.delete_movement(LOCATION, DAY, "mv-1", expected_version=seen)
        assert ledger.get_ledger(LOCATION, DAY).version == seen + 1
