import os

# Must be set before the application modules read their settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "development"

import pytest
from fastapi.testclient import TestClient

from database import Base, engine
from main import app

DEFAULT_PASSWORD = "secret1"


class Account:
    """A registered user together with a client holding their session cookie."""

    def __init__(self, client, user):
        self.client = client
        self.user = user

    @property
    def id(self):
        return self.user["id"]


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


def register_user(client, email, ruolo=None, nome="Mario", cognome="Rossi", password=DEFAULT_PASSWORD):
    payload = {"nome": nome, "cognome": cognome, "email": email, "password": password}
    if ruolo:
        payload["ruolo"] = ruolo
    return client.post("/register", json=payload)


@pytest.fixture
def make_account():
    def _make(email, ruolo=None, nome="Mario", cognome="Rossi"):
        session_client = TestClient(app)
        resp = register_user(session_client, email, ruolo=ruolo, nome=nome, cognome=cognome)
        assert resp.status_code == 201, resp.text
        resp = session_client.post("/login", json={"email": email, "password": DEFAULT_PASSWORD})
        assert resp.status_code == 200, resp.text
        return Account(session_client, resp.json()["user"])
    return _make


@pytest.fixture
def employee(make_account):
    return make_account("mario.rossi@example.com")


@pytest.fixture
def other_employee(make_account):
    return make_account("luigi.verdi@example.com", nome="Luigi", cognome="Verdi")


@pytest.fixture
def manager(make_account):
    return make_account("anna.bianchi@example.com", ruolo="Responsabile", nome="Anna", cognome="Bianchi")


@pytest.fixture
def category(manager):
    resp = manager.client.post("/categorie", json={"categoriaId": 1, "descrizione": "Ferie"})
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


@pytest.fixture
def submit_request(category):
    def _submit(account, start="2099-01-10", end="2099-01-15", owner_id=None, category_id=None, motivazione=None):
        payload = {
            "dataInizio": start,
            "dataFine": end,
            "categoriaId": category_id or category["CategoriaID"],
            "utenteId": owner_id or account.id,
        }
        if motivazione is not None:
            payload["motivazione"] = motivazione
        resp = account.client.post("/permessi", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]
    return _submit
