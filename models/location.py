from datetime import datetime
from . import db


class Location(db.Model):
    """Sede (barbería). El `code` es la clave que particiona registros y movimientos."""

    __tablename__ = "locations"

    id = db.Column(db.Integer, primary_key=True)

    code = db.Column(db.String(60), nullable=False, unique=True, index=True)
    name = db.Column(db.String(120), nullable=False)
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self) -> dict:
        return {"code": self.code, "name": self.name}

    def __repr__(self) -> str:
        return f"<Location {self.id} {self.code} active={self.is_active}>"
