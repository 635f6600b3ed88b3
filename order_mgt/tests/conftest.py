import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from order_mgt.core.database import create_db_engine
from order_mgt.models.database import Base, Customer, Product


@pytest.fixture
def test_engine(tmp_path):
    # File-backed SQLite so several sessions can share the data
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}", echo=False)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

@pytest.fixture
def test_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def failing_reads(test_db, monkeypatch):
    """Make every SELECT through test_db fail as if the database were gone"""
    def broken_scalars(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("unable to open database file"))

    monkeypatch.setattr(test_db, "scalars", broken_scalars)
    return test_db

@pytest.fixture
def sample_customer(test_db):
    """Create a customer that orders can be placed for"""
    customer = Customer(
        first_name="Ada",
        last_name="Lovelace",
        email="ada@example.com",
        phone="555-123-4567",
        created_date=datetime.utcnow(),
    )
    test_db.add(customer)
    test_db.commit()
    test_db.refresh(customer)
    return customer

@pytest.fixture
def sample_product(test_db):
    """Create a product priced 9.99 with 5 in stock"""
    product = Product(
        name="Desk Lamp",
        description="Adjustable LED desk lamp",
        price=Decimal("9.99"),
        stock_quantity=Decimal("5"),
        created_date=datetime.utcnow(),
    )
    test_db.add(product)
    test_db.commit()
    test_db.refresh(product)
    return product

@pytest.fixture
def second_product(test_db):
    product = Product(
        name="Notebook",
        description="A5 dotted notebook",
        price=Decimal("4.50"),
        stock_quantity=Decimal("10"),
        created_date=datetime.utcnow(),
    )
    test_db.add(product)
    test_db.commit()
    test_db.refresh(product)
    return product
