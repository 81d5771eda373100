from datetime import datetime

from models import db


class KVEntry(db.Model):
    """Almacén clave-valor.

    Un valor JSON por clave (ej. "daily_record_centro_2026-01-30").
    `version` se incrementa en cada escritura y sirve como token de
    concurrencia optimista para los read-modify-write del libro de movimientos.
    """

    __tablename__ = "kv_entries"

    id = db.Column(db.Integer, primary_key=True)

    key = db.Column(db.String(255), nullable=False, unique=True, index=True)
    value_json = db.Column(db.Text, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<KVEntry {self.key} v{self.version}>"
