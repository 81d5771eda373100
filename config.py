import os
from datetime import timedelta

basedir = os.path.abspath(os.path.dirname(__file__))

class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev_secret_key_change_me")

    DB_PATH = os.environ.get("DB_PATH", os.path.join(basedir, "caja.db"))
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", f"sqlite:///{DB_PATH}")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Cookies de sesión más seguras (ajusta en producción)
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Cierre de sesión por inactividad (5 minutos por defecto)
    PERMANENT_SESSION_LIFETIME = timedelta(minutes=int(os.environ.get("SESSION_TIMEOUT_MINUTES", "5")))
    SESSION_REFRESH_EACH_REQUEST = True

    # API de ventas del TPV (opcional). Vacío = sin sugerencia de ventas.
    SALES_API_URL = os.environ.get("SALES_API_URL", "")
    SALES_API_TIMEOUT = float(os.environ.get("SALES_API_TIMEOUT", "5"))

    LOG_DIR = os.environ.get("LOG_DIR", os.path.join(basedir, "logs"))

    DEBUG = os.environ.get("FLASK_DEBUG", "0") == "1"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SALES_API_URL = ""
