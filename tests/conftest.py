import os

# Must be set before funding.stripe_service is imported
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")
os.environ["DATABASE_URL"] = "sqlite://"

import pytest
import stripe
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from funding.database import Base, make_engine
from funding.ledger import TotalsLedger
from funding.main import app as fastapi_app


@pytest.fixture
def ledger():
    engine = make_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield TotalsLedger(sessionmaker(bind=engine, autocommit=False, autoflush=False))
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(monkeypatch, ledger):
    # Every test gets its own empty ledger behind the routes
    monkeypatch.setattr("funding.routes.ledger", ledger)
    with TestClient(fastapi_app) as c:
        yield c


@pytest.fixture
def make_customer(mocker):
    def _make(customer_id="cus_123", default_payment_method="pm_123", deleted=False):
        customer = mocker.Mock()
        customer.id = customer_id
        customer.deleted = deleted
        customer.invoice_settings.default_payment_method = default_payment_method
        return customer
    return _make


@pytest.fixture
def make_intent(mocker):
    def _make(intent_id="pi_123", status="succeeded", amount=500, side="left",
              customer="cus_123", payment_method="pm_123"):
        intent = mocker.Mock()
        intent.id = intent_id
        intent.status = status
        intent.amount = amount
        intent.customer = customer
        intent.payment_method = payment_method
        intent.client_secret = f"{intent_id}_secret_abc"
        intent.metadata = {"side": side} if side else {}
        return intent
    return _make


@pytest.fixture
def make_card(mocker):
    def _make(brand="visa", last4="4242", method_type="card"):
        payment_method = mocker.Mock()
        payment_method.id = "pm_123"
        payment_method.type = method_type
        payment_method.card.brand = brand
        payment_method.card.last4 = last4
        return payment_method
    return _make


@pytest.fixture
def resource_missing():
    def _make(resource="customer"):
        return stripe.error.InvalidRequestError(
            f"No such {resource}: 'x_unknown'", "id", code="resource_missing"
        )
    return _make
