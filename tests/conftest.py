import pytest
from fastapi.testclient import TestClient

from mockstripe.config import settings
from mockstripe.db import Store
from mockstripe.main import create_app
from mockstripe.services import billing as billing_service

ACCOUNT_ID = settings.default_account_id
API_KEY = "sk_test_mockstripe_0000000000"


@pytest.fixture()
def store():
    """A fresh, empty store for each test."""
    return Store()


@pytest.fixture()
def account_id():
    return ACCOUNT_ID


# ============ FastAPI Test Client Fixtures ============


@pytest.fixture()
def app(store):
    return create_app(store)


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {API_KEY}"}


# ============ Record Fixtures ============


@pytest.fixture()
def customer(store):
    return billing_service.customers.create(
        store, ACCOUNT_ID, {"email": "ada@example.com", "source": "tok_visa"}
    )


@pytest.fixture()
def charge(store):
    return billing_service.charges.create(
        store, ACCOUNT_ID, {"amount": 2000, "currency": "usd", "source": "tok_visa"}
    )


@pytest.fixture()
def uncaptured_charge(store):
    return billing_service.charges.create(
        store,
        ACCOUNT_ID,
        {"amount": 2000, "currency": "usd", "source": "tok_visa", "capture": False},
    )


@pytest.fixture()
def product(store):
    return billing_service.products.create(store, ACCOUNT_ID, {"name": "Gold membership"})
