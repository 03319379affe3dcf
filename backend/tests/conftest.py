import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine
import app.models  # noqa: F401
from app.api.deps import get_db
from app.main import app
from app.models.category import Category
from app.repositories.categories import CategoryRepository
from app.services.categories import CategoryService, slugify
from app.services.hierarchy import CategoryHierarchy
from app.services.product_counter import ProductCounter

# In-memory test database
TEST_DATABASE_URL = "sqlite://"


@pytest.fixture
def engine():
    test_engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(test_engine)
    yield test_engine
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def repo(session):
    return CategoryRepository(session)


@pytest.fixture
def hierarchy(repo):
    return CategoryHierarchy(repo, max_depth=64, delete_mode="soft", atomic=True)


@pytest.fixture
def service(session, repo):
    return CategoryService(repo, ProductCounter(session))


@pytest.fixture
def make_category(session):
    """Direct insert, bypassing service validation"""
    def _make(title, parent=None, **kwargs):
        category = Category(
            title=title,
            slug=slugify(title),
            parent_id=parent.id if parent is not None else None,
            **kwargs
        )
        session.add(category)
        session.commit()
        session.refresh(category)
        return category
    return _make


@pytest.fixture
def chain(make_category):
    """A (root) -> B -> C"""
    a = make_category("A")
    b = make_category("B", parent=a)
    c = make_category("C", parent=b)
    return a, b, c


@pytest.fixture
def cycle(session, make_category):
    """Corrupted graph: C.parent = A and A.parent = C"""
    a = make_category("A")
    c = make_category("C", parent=a)
    a.parent_id = c.id
    session.add(a)
    session.commit()
    return a, c


@pytest.fixture
def client(session):
    def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
