"""Cliente del API de ventas del TPV (totales de efectivo y tarjeta del día).

Es un dato de apoyo para el cierre: si el API falla, se devuelven ceros y
se registra en el log. Nunca debe bloquear el cuadre.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

import requests

from services.domain import ZERO, parse_money
from services.errors import ValidationError


log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SalesTotals:
    cash: Decimal
    card: Decimal
    available: bool = True

    def to_dict(self) -> dict:
        return {"cash": float(self.cash), "card": float(self.card), "available": self.available}


UNAVAILABLE = SalesTotals(cash=ZERO, card=ZERO, available=False)


class SalesTotalsClient:
    def __init__(self, base_url: Optional[str], timeout: float = 5.0,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def get_daily_sales_totals(self, location: str, date: str) -> SalesTotals:
        if not self.base_url:
            return UNAVAILABLE

        url = f"{self.base_url}/daily-sales"
        try:
            response = self.session.get(url, params={"location": location, "date": date}, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
            return SalesTotals(
                cash=parse_money(data.get("cash"), "cash"),
                card=parse_money(data.get("card"), "card"),
            )
        except (requests.RequestException, ValueError, AttributeError, ValidationError) as e:
            log.warning("API de ventas no disponible (%s/%s): %s", location, date, e)
            return UNAVAILABLE
