"""Pytest configuration for backend tests."""
import sys
import os
from pathlib import Path
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

# Add backend directory to Python path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

# Import database components
from glbiashara.database import Base

# Import the entire models module to ensure all models are registered with Base.metadata
# This must happen before create_all() so that all table definitions are available
import glbiashara.models  # noqa: F401
from glbiashara.models import (
    User,
    UserSkill,
    ClubMembership,
    Provider,
    Club,
    Institution,
    Company,
    Product,
    ProductTag,
)


# Defaults to a private in-memory SQLite database per test.
# Set TEST_DATABASE_URL to run the suite against a scratch Postgres database instead.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")


@pytest.fixture(scope="function")
def engine():
    """
    Create a test database engine with every table created.

    In-memory SQLite needs StaticPool so the TestClient's worker threads
    see the same database as the test body.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        test_engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        test_engine = create_engine(TEST_DATABASE_URL, pool_pre_ping=True)

    if not Base.metadata.tables:
        raise RuntimeError(
            "No tables registered in Base.metadata. "
            "Did you import glbiashara.models? All model classes must be imported before create_all()."
        )

    Base.metadata.create_all(bind=test_engine)

    yield test_engine

    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine) -> Session:
    """
    Create a database session for each test.

    Use autocommit=False, autoflush=False to match production. Services
    commit, so isolation comes from the fresh engine rather than a rollback.
    """
    TestSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestSessionLocal()

    yield session

    session.close()


@pytest.fixture
def make_provider(db: Session):
    def _make(slug: str = "vodacom", name: str = None, **fields) -> Provider:
        provider = Provider(slug=slug, name=name or slug.title(), **fields)
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider
    return _make


@pytest.fixture
def make_club(db: Session):
    def _make(slug: str = "simba-sc", name: str = None, sport: str = "Football", **fields) -> Club:
        club = Club(slug=slug, name=name or slug.title(), sport=sport, **fields)
        db.add(club)
        db.commit()
        db.refresh(club)
        return club
    return _make


@pytest.fixture
def make_institution(db: Session):
    def _make(slug: str = "udsm", name: str = None, **fields) -> Institution:
        institution = Institution(slug=slug, name=name or slug.upper(), **fields)
        db.add(institution)
        db.commit()
        db.refresh(institution)
        return institution
    return _make


@pytest.fixture
def make_company(db: Session):
    def _make(slug: str = "crdb-bank", name: str = None, **fields) -> Company:
        company = Company(slug=slug, name=name or slug.title(), **fields)
        db.add(company)
        db.commit()
        db.refresh(company)
        return company
    return _make


@pytest.fixture
def make_user(db: Session):
    """Create a user. skills and club_ids become UserSkill / ClubMembership rows."""
    counter = {"n": 0}

    def _make(
        first_name: str = None,
        skills: list = None,
        club_ids: list = None,
        **fields,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        fields.setdefault("email", f"user{n}@example.com")
        fields.setdefault("last_name", "Test")
        user = User(first_name=first_name or f"User{n}", **fields)
        user.skill_entries = [UserSkill(name=skill) for skill in skills or []]
        user.club_memberships = [ClubMembership(club_id=club_id) for club_id in club_ids or []]
        db.add(user)
        db.commit()
        db.refresh(user)
        return user
    return _make


@pytest.fixture
def make_product(db: Session):
    def _make(user: User, title: str = "Product", tags: list = None, **fields) -> Product:
        fields.setdefault("price", 1000.0)
        product = Product(user_id=user.id, title=title, **fields)
        product.tag_entries = [ProductTag(name=tag) for tag in tags or []]
        db.add(product)
        db.commit()
        db.refresh(product)
        return product
    return _make
