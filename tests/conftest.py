#configuracion de los test
import os
import sys
import tempfile
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# ======================================================
# Ajuste del sys.path para que 'app/' sea importable
# ======================================================
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# ======================================================
# Base de datos SQLite temporal (antes de importar la app)
# ======================================================
_TEST_DB_DIR = tempfile.mkdtemp(prefix="library-console-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR}/library_test.db"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin"

# ======================================================
# Imports de la aplicación
# ======================================================
from app.main import app
from app.db.session import SessionLocal
from app.db.models import Book, Circulation, Member


# ======================================================
# CLIENT FIXTURE
# ======================================================
@pytest.fixture(scope="session")
def client():
    """
    TestClient de FastAPI (con contexto: corre el startup y crea las tablas).
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def db_session(client):
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ======================================================
# ADMIN FIXTURES
# ======================================================
@pytest.fixture(scope="session")
def admin_credentials():
    return {"username": "admin", "password": "admin"}


@pytest.fixture(scope="session")
def admin_token(client: TestClient, admin_credentials):
    resp = client.post("/api/v1/auth/login", data=admin_credentials)
    assert resp.status_code == 200, resp.text
    return resp.json()["access_token"]


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


# ======================================================
# LIMPIEZA DE TABLAS
# ======================================================
@pytest.fixture
def clean_db(client):
    """
    Cada test funcional empieza sin libros, socios ni circulación,
    y con el panel de reportes cerrado.
    """
    with SessionLocal() as db:
        db.query(Circulation).delete()
        db.query(Book).delete()
        db.query(Member).delete()
        db.commit()

    app.state.circulation_report.dismiss()
    yield
    app.dependency_overrides.clear()
