from datetime import datetime
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from . import db, login_manager

class User(db.Model, UserMixin):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    email = db.Column(db.String(180), nullable=False, unique=True, index=True)
    full_name = db.Column(db.String(120), nullable=False)

    password_hash = db.Column(db.String(255), nullable=False)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def set_password(self, password: str) -> None:
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        return check_password_hash(self.password_hash, password)

    def identity(self) -> dict:
        """Identidad expuesta al cliente: {userId, email, displayName}."""
        return {"userId": self.id, "email": self.email, "displayName": self.full_name}

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"

@login_manager.user_loader
def load_user(user_id: str):
    return db.session.get(User, int(user_id))
