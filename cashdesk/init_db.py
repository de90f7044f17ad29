from cashdesk.database import SessionLocal, engine
from cashdesk.models import Base, User, Role
from cashdesk.security import get_password_hash


def init_db():
    print("--- Creating tables ---")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()

    users_to_create = [
        ("admin", "admin123", Role.ADMIN),
        ("cashier1", "0000", Role.CASHIER),
        ("cashier2", "1111", Role.CASHIER),
    ]

    try:
        for uname, password, role in users_to_create:
            if not db.query(User).filter(User.username == uname).first():
                db.add(User(
                    username=uname,
                    password_hash=get_password_hash(password),
                    role=role,
                    full_name=uname.capitalize()
                ))
                print(f"User '{uname}' created.")
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    init_db()
