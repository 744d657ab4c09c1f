"""Pytest configuration and fixtures."""

import os

# Point the application engine at memory before settings are loaded
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("DEBUG", "true")

import pytest
from decimal import Decimal
from typing import Generator

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from foodyflow.core.cache import cache
from foodyflow.db.base import Base
from foodyflow.db.session import get_db
from foodyflow.main import app
# Import all models to ensure they're registered with Base.metadata
from foodyflow.models import *
from foodyflow.services.catalog import ProductCatalog

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(autouse=True)
def clear_cache():
    """Stock aggregates are cached process-wide; never leak them between tests."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(db_session: Session) -> Generator[TestClient, None, None]:
    """Create a test client with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    # Disable rate limiter during tests to avoid flaky failures
    from foodyflow.core.rate_limit import limiter as global_limiter
    global_limiter.enabled = False
    # Don't raise server exceptions so we can test error status codes
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    global_limiter.enabled = True
    app.dependency_overrides.clear()


@pytest.fixture
def catalog(db_session: Session) -> ProductCatalog:
    return ProductCatalog(db_session)


@pytest.fixture
def test_supplier(catalog: ProductCatalog) -> Supplier:
    """Create a test supplier."""
    return catalog.create_supplier({
        "name": "Ortofrutta Rossi",
        "email": "ordini@rossi.example.com",
    })


@pytest.fixture
def flour(catalog: ProductCatalog, test_supplier: Supplier) -> Product:
    """Flour at 1.20/kg, no opening stock."""
    return catalog.create_product({
        "code": "FAR-00",
        "name": "Farina 00",
        "supplier_id": test_supplier.id,
        "supplier_email": "farine@mulino.example.com",
        "unit": ProductUnit.MASS,
        "price_per_unit": Decimal("1.20"),
    })


@pytest.fixture
def tomatoes(catalog: ProductCatalog, test_supplier: Supplier) -> Product:
    """Tomatoes at 2.00/kg with 20% waste and 10 kg opening stock."""
    return catalog.create_product({
        "code": "POM-01",
        "name": "Pomodori",
        "supplier_id": test_supplier.id,
        "unit": ProductUnit.MASS,
        "waste_percent": Decimal("20"),
        "price_per_unit": Decimal("2.00"),
        "quantity": Decimal("10"),
    })
