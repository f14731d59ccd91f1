import os

# Point module-level engines at throwaway databases before anything imports them
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["CLIENT_STORAGE_URL"] = "sqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from database import Base, get_db, make_engine
from gateways import RestGateway
from main import app as backend_app
from models import Complaint, Report
from seed import DEMO_PASSWORD, seed
from session_store import RestSessionStore
from storage import ClientStorage

BASE_URL = "http://testserver"


@pytest.fixture
def db_session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'backend.db'}")
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    db = TestingSessionLocal()
    try:
        seed(db)
        db.add_all([
            Complaint(user_id=1, name="John Doe", location="Main Street", description="Overflowing bin"),
            Complaint(user_id=2, name="Jane Smith", location="Park Road", description="Illegal dumping",
                      photo="https://example.com/dump.jpg"),
        ])
        db.add(Report(user_id=1, complaint_id=1, description="Worker skipped the street"))
        db.commit()
    finally:
        db.close()

    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture
def backend(db_session_factory):
    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    backend_app.dependency_overrides[get_db] = override_get_db
    yield TestClient(backend_app, base_url=BASE_URL)
    backend_app.dependency_overrides.clear()


def token_for(client: TestClient, email: str) -> str:
    response = client.post("/api/auth/login", json={"email": email, "password": DEMO_PASSWORD})
    assert response.status_code == 200
    return response.json()["token"]


@pytest.fixture
def admin_headers(backend):
    return {"Authorization": f"Bearer {token_for(backend, 'admin@example.com')}"}


@pytest.fixture
def user_headers(backend):
    return {"Authorization": f"Bearer {token_for(backend, 'john@example.com')}"}


@pytest.fixture
def storage():
    return ClientStorage("sqlite://")


@pytest.fixture
def rest_gateway(backend):
    return RestGateway(BASE_URL, http=backend)


@pytest.fixture
def rest_session(rest_gateway, storage):
    session = RestSessionStore(rest_gateway, storage)
    rest_gateway.token_provider = session.get_token
    session.restore()
    return session
