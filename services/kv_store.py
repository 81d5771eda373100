"""Almacén clave-valor sobre SQLAlchemy.

Contrato mínimo que consume el núcleo: get / set / delete / get_by_prefix.
Cada operación confirma su propia transacción: el almacén no ofrece
transacciones entre claves, por eso el borrado de un día se hace en dos
pasos (ver services.register).
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from models.kv_entry import KVEntry
from services.errors import ConcurrentUpdateError, PersistenceError


log = logging.getLogger(__name__)


def record_key(location: str, date: str) -> str:
    return f"daily_record_{location}_{date}"


def movements_key(location: str, date: str) -> str:
    return f"movements_{location}_{date}"


def _escape_like(s: str) -> str:
    return s.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class KVStore:
    def __init__(self, session: Session):
        self.session = session

    def _fail(self, op: str, key: str) -> PersistenceError:
        self.session.rollback()
        log.exception("Error de almacén en %s key=%s", op, key)
        return PersistenceError(f"No se pudo completar la operación ({op}). Intenta de nuevo.")

    def _entry(self, key: str) -> Optional[KVEntry]:
        return self.session.query(KVEntry).filter(KVEntry.key == key).one_or_none()

    def get_entry(self, key: str) -> Optional[tuple[Any, int]]:
        """Devuelve (valor, versión) o None si la clave no existe."""
        try:
            entry = self._entry(key)
        except SQLAlchemyError as e:
            raise self._fail("get", key) from e
        if entry is None:
            return None
        return json.loads(entry.value_json), entry.version

    def get(self, key: str) -> Any:
        found = self.get_entry(key)
        return found[0] if found else None

    def set(self, key: str, value: Any, expected_version: Optional[int] = None) -> int:
        """Guarda `value` y devuelve la nueva versión.

        expected_version=None: last-write-wins.
        expected_version=0: la clave no debe existir.
        expected_version=n: la versión vigente debe ser n.
        """
        try:
            entry = self._entry(key)
            actual = entry.version if entry else 0
            if expected_version is not None and expected_version != actual:
                raise ConcurrentUpdateError(
                    "Los datos cambiaron mientras editabas. Recarga e intenta de nuevo.",
                    key=key,
                    expected=expected_version,
                    actual=actual,
                )

            payload = json.dumps(value, ensure_ascii=False)
            if entry is None:
                entry = KVEntry(key=key, value_json=payload, version=1, created_at=datetime.utcnow())
                self.session.add(entry)
            else:
                # El UPDATE condicional cierra la ventana entre la lectura y la escritura.
                updated = (
                    self.session.query(KVEntry)
                    .filter(KVEntry.key == key, KVEntry.version == actual)
                    .update(
                        {
                            KVEntry.value_json: payload,
                            KVEntry.version: actual + 1,
                            KVEntry.updated_at: datetime.utcnow(),
                        },
                        synchronize_session=False,
                    )
                )
                if updated != 1:
                    self.session.rollback()
                    raise ConcurrentUpdateError(
                        "Los datos cambiaron mientras editabas. Recarga e intenta de nuevo.",
                        key=key,
                        expected=actual,
                        actual=None,
                    )
            self.session.commit()
            # La fila pudo quedar en caché con la versión anterior.
            self.session.expire_all()
            return actual + 1

        except ConcurrentUpdateError:
            raise
        except IntegrityError as e:
            # Dos altas simultáneas de la misma clave.
            self.session.rollback()
            raise ConcurrentUpdateError(
                "Los datos cambiaron mientras editabas. Recarga e intenta de nuevo.",
                key=key,
                expected=expected_version,
                actual=None,
            ) from e
        except SQLAlchemyError as e:
            raise self._fail("set", key) from e

    def delete(self, key: str) -> None:
        try:
            self.session.query(KVEntry).filter(KVEntry.key == key).delete(synchronize_session=False)
            self.session.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete", key) from e

    def get_by_prefix(self, prefix: str) -> list[Any]:
        try:
            entries = (
                self.session.query(KVEntry)
                .filter(KVEntry.key.like(_escape_like(prefix) + "%", escape="\\"))
                .order_by(KVEntry.key)
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("get_by_prefix", prefix) from e
        return [json.loads(e.value_json) for e in entries]
