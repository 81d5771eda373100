from flask import current_app, jsonify, session
from flask_login import current_user, login_required, login_user, logout_user

from models import db
from models.user import User
from routes import auth_bp
from routes.context import json_body
from services.errors import ValidationError


@auth_bp.post("/signup")
def signup():
    data = json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    name = (data.get("name") or "").strip()

    if not email or "@" not in email:
        raise ValidationError("Email inválido.")
    if len(password) < 6:
        raise ValidationError("La contraseña debe tener al menos 6 caracteres.")
    if not name:
        raise ValidationError("El nombre es obligatorio.")

    if db.session.query(User.id).filter(User.email == email).first() is not None:
        raise ValidationError("Ya existe un usuario con ese email.")

    user = User(email=email, full_name=name, is_active=True)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    current_app.logger.info("Usuario registrado: %s", email)
    return jsonify({"success": True, "user": user.identity()}), 201


@auth_bp.post("/login")
def login():
    data = json_body()
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""

    user = db.session.query(User).filter(User.email == email, User.is_active.is_(True)).first()
    if not user or not user.check_password(password):
        return jsonify({"error": "Credenciales inválidas"}), 401

    # La vida de la sesión (PERMANENT_SESSION_LIFETIME) aplica solo a sesiones permanentes.
    session.permanent = True
    login_user(user)
    return jsonify({"success": True, "user": user.identity()})


@auth_bp.post("/logout")
@login_required
def logout():
    logout_user()
    session.clear()
    return jsonify({"success": True})


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(current_user.identity())
