from app import create_app
from models import db
from models.user import User
from models.location import Location


LOCATIONS = [
    ("centro", "Barbería Centro"),
    ("norte", "Barbería Norte"),
    ("sur", "Barbería Sur"),
]


def run():
    app = create_app()
    with app.app_context():
        # ✅ Importante:
        # No usamos db.create_all() porque trabajamos con migraciones (Flask-Migrate).
        # Asegúrate de haber corrido: flask db upgrade

        # 1) Sedes
        for code, name in LOCATIONS:
            loc = db.session.query(Location).filter_by(code=code).first()
            if not loc:
                db.session.add(Location(code=code, name=name, is_active=True))
            else:
                loc.is_active = True

        # 2) Usuario admin demo
        user = db.session.query(User).filter_by(email="admin@demo.com").first()
        if not user:
            user = User(email="admin@demo.com", full_name="Admin Demo", is_active=True)
            user.set_password("admin1234")
            db.session.add(user)
        else:
            user.is_active = True

        db.session.commit()

        print("✅ Seed listo.")
        print("Login: admin@demo.com / admin1234")
        print("Sedes:", ", ".join(code for code, _ in LOCATIONS))


if __name__ == "__main__":
    run()
