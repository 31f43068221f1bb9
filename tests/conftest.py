import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from data.database import Base, ABTest, Variant, BarEvent, create_tables

# In-memory SQLite for tests, shared across sessions through a single connection
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    create_tables(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def session_factory():
    return TestingSessionLocal

@pytest.fixture
def db_session():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()

@pytest.fixture
def ab_test(db_session):
    """An experiment with variants A, B and C, in creation order."""
    test = ABTest(shop="test-shop.myshopify.com", name="Initial Free Shipping Bar Test")
    db_session.add(test)
    db_session.flush()
    for name, color in (("A", "#4CAF50"), ("B", "#2196F3"), ("C", "#FF9800")):
        db_session.add(Variant(ab_test_id=test.id, name=name, config={"color": color}))
    db_session.commit()
    db_session.refresh(test)
    return test

@pytest.fixture
def add_events(db_session):
    """Insert `count` events of one type for a variant."""
    def _add(variant, event_type, count, created_at=None):
        for _ in range(count):
            event = BarEvent(variant_id=variant.id, event_type=event_type)
            if created_at is not None:
                event.created_at = created_at
            db_session.add(event)
        db_session.commit()
    return _add

@pytest.fixture
def db_engine():
    return engine
