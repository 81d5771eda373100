from flask import Flask
from flask_migrate import Migrate

from config import Config
from models import db, login_manager


migrate = Migrate()


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)

    # -------------------------
    # Extensiones
    # -------------------------
    db.init_app(app)
    migrate.init_app(app, db)

    login_manager.init_app(app)

    # -------------------------
    # Importar modelos (Alembic)
    # -------------------------
    from models.user import User  # noqa: F401
    from models.location import Location  # noqa: F401
    from models.kv_entry import KVEntry  # noqa: F401

    # -------------------------
    # Blueprints
    # -------------------------
    from routes import auth  # noqa: F401
    from routes import main  # noqa: F401
    from routes import auth_bp, main_bp
    from routes.register import register_bp
    from routes.movements import movements_bp
    from routes.history import history_bp

    blueprints = [
        auth_bp,
        main_bp,

        # Caja
        register_bp,
        movements_bp,
        history_bp,
    ]

    for bp in blueprints:
        app.register_blueprint(bp)

    # -------------------------
    # Logging + manejo global de errores
    # -------------------------
    import os
    import logging
    from logging.handlers import RotatingFileHandler
    from flask import jsonify, request

    from services.errors import (
        ConcurrentUpdateError,
        NotFoundError,
        PartialFailureError,
        PersistenceError,
        ValidationError,
    )

    log_dir = app.config.get("LOG_DIR") or os.path.join(os.path.dirname(__file__), "logs")
    os.makedirs(log_dir, exist_ok=True)

    file_handler = RotatingFileHandler(
        os.path.join(log_dir, "app.log"),
        maxBytes=2_000_000,
        backupCount=5,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    ))

    if not any(isinstance(h, RotatingFileHandler) for h in app.logger.handlers):
        app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)

    # Los servicios registran con logging.getLogger("services.*")
    services_logger = logging.getLogger("services")
    if not any(isinstance(h, RotatingFileHandler) for h in services_logger.handlers):
        services_logger.addHandler(file_handler)
    services_logger.setLevel(logging.INFO)

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({"error": "Inicia sesión para continuar."}), 401

    @app.errorhandler(ValidationError)
    def _handle_validation(e):
        return jsonify({"error": e.message, "kind": "validation"}), 400

    @app.errorhandler(NotFoundError)
    def _handle_not_found(e):
        return jsonify({"error": e.message, "kind": "not_found"}), 404

    @app.errorhandler(ConcurrentUpdateError)
    def _handle_conflict(e):
        app.logger.warning("Conflicto de versión en %s (esperada=%s, actual=%s)", e.key, e.expected, e.actual)
        return jsonify({"error": e.message, "kind": "conflict"}), 409

    @app.errorhandler(PartialFailureError)
    def _handle_partial(e):
        app.logger.error("Fallo parcial: completado=%s pendiente=%s", e.completed, e.pending)
        return jsonify({
            "error": e.message,
            "kind": "partial_failure",
            "partial": True,
            "completed": e.completed,
            "pending": e.pending,
        }), 500

    @app.errorhandler(PersistenceError)
    def _handle_persistence(e):
        return jsonify({"error": e.message, "kind": "persistence"}), 503

    @app.errorhandler(500)
    def _handle_500(e):
        app.logger.exception("Error 500 no manejado: %s %s", request.method, request.path)
        return jsonify({"error": "Ocurrió un error interno. El problema fue registrado."}), 500

    @app.errorhandler(404)
    def _handle_404(e):
        return jsonify({"error": "No encontrado."}), 404

    @app.errorhandler(405)
    def _handle_405(e):
        return jsonify({"error": "Método no permitido."}), 405

    return app


if __name__ == "__main__":
    app = create_app()
    # Debug controlado por config / variables de entorno
    app.run(debug=app.config.get("DEBUG", False))
