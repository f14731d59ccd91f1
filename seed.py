# seed.py

from sqlalchemy.orm import Session

from auth import default_profile, hash_password
from database import Base, SessionLocal, engine
from models import User, Worker

# ----------------- DEMO DATA -----------------
DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {"name": "John Doe", "email": "john@example.com"},
    {"name": "Jane Smith", "email": "jane@example.com"},
    {"name": "Admin User", "email": "admin@example.com"},
]

DEMO_WORKERS = [
    {"name": "Ravi Kumar", "phone": "555-0101", "area": "North District"},
    {"name": "Maria Lopez", "phone": "555-0102", "area": "Central Market"},
    {"name": "Sam Okafor", "phone": "555-0103", "area": "Riverside"},
]


def seed(db: Session) -> dict:
    """Insert the demo accounts and workers that are not there yet."""
    created = {"users": 0, "workers": 0}

    for data in DEMO_USERS:
        if db.query(User).filter(User.email == data["email"]).first():
            continue
        db.add(User(password=hash_password(DEMO_PASSWORD), **data, **default_profile(data["email"])))
        created["users"] += 1

    for data in DEMO_WORKERS:
        if db.query(Worker).filter(Worker.name == data["name"]).first():
            continue
        db.add(Worker(**data))
        created["workers"] += 1

    db.commit()
    return created


# ----------------- RUN SCRIPT -----------------
if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        result = seed(db)
    finally:
        db.close()
    print(f"Seeded {result['users']} users and {result['workers']} workers.")
