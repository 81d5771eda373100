"""
Fixtures compartidos.

- app: aplicación con TestConfig (SQLite en memoria) y tablas creadas.
- store: KVStore sobre la sesión de la app.
- clock: reloj determinista que avanza un segundo por llamada.
- auth_client: cliente HTTP con sesión iniciada.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from app import create_app
from config import TestConfig
from models import db
from models.location import Location
from services.domain import Movement, OpenRecord, ClosedRecord
from services.kv_store import KVStore
from services.ledger import LedgerService
from services.register import RegisterService


LOCATION = "centro"
DAY = "2026-01-30"


class StepClock:
    """Devuelve start, start+1s, start+2s, ..."""

    def __init__(self, start=datetime(2026, 1, 30, 9, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self):
        now = self.current
        self.current = now + timedelta(seconds=1)
        return now


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        LOG_DIR = str(tmp_path / "logs")

    app = create_app(_Config)
    with app.app_context():
        db.create_all()
        db.session.add(Location(code=LOCATION, name="Barbería Centro", is_active=True))
        db.session.add(Location(code="cerrada", name="Sede Cerrada", is_active=False))
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def store(app):
    return KVStore(db.session)


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def register(store):
    return RegisterService(store)


@pytest.fixture
def ledger(store, clock):
    counter = iter(range(1, 10_000))
    return LedgerService(store, clock=clock, id_factory=lambda: f"mv-{next(counter)}")


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def auth_client(client):
    r = client.post("/auth/signup", json={"email": "ana@demo.com", "password": "secreta1", "name": "Ana"})
    assert r.status_code == 201
    r = client.post("/auth/login", json={"email": "ana@demo.com", "password": "secreta1"})
    assert r.status_code == 200
    return client


def make_movement(type_, amount, *, id_="m1", location=LOCATION, date=DAY, ts="2026-01-30T10:00:00.000Z"):
    return Movement(
        id=id_,
        date=date,
        location=location,
        type=type_,
        amount=Decimal(str(amount)).quantize(Decimal("0.01")),
        reason="ajuste",
        user="Ana",
        timestamp=ts,
    )


def make_closed(opening=100, cash=0, card=0, datafone=0, final=0, *, location=LOCATION, date=DAY):
    q = lambda v: Decimal(str(v)).quantize(Decimal("0.01"))  # noqa: E731
    return ClosedRecord(
        date=date,
        location=location,
        user="Ana",
        opening_cash=q(opening),
        cash_sales=q(cash),
        card_sales=q(card),
        datafone_sales=q(datafone),
        final_cash_count=q(final),
    )


def make_open(opening=100, *, location=LOCATION, date=DAY):
    return OpenRecord(date=date, location=location, user="Ana", opening_cash=Decimal(str(opening)).quantize(Decimal("0.01")))
