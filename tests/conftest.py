import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RAZORPAY_KEY_ID"] = "rzp_test_key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ["PHONEPE_MERCHANT_ID"] = "EVOTEST"
os.environ["PHONEPE_SALT_KEY"] = "test-salt"
os.environ["PHONEPE_SALT_INDEX"] = "1"
os.environ["ENABLED_GATEWAYS"] = "razorpay,phonepe"
os.environ["MAINTENANCE_MODE"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config.database import Base, get_db
from main import app
from modules.cart.state import CartController, MemoryCartStore
from modules.catalog.service import product_service


@pytest.fixture
def db():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def client(db):
    def _get_db():
        yield db

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def products(db):
    """Twelve active posters."""
    created = [
        product_service.create(db, {
            "name": f"Poster {i}",
            "price": "79",
            "images": [f"/media/poster-{i}.jpg"],
            "stock": 10,
        })
        for i in range(1, 13)
    ]
    db.commit()
    return created


@pytest.fixture
def cart():
    ticks = iter(range(1000, 100000))
    return CartController(MemoryCartStore(), "shopper", clock=lambda: next(ticks))
