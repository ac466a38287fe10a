# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
import os
import sys

# Add the src directory to the Python path so tests also run without an editable install
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
src_path = os.path.join(project_root, 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from digilib.db.session import Base
# Import all models so they are registered with Base
from digilib.models import user, book, review  # noqa: F401
from digilib.core.config import Settings
from digilib.core.exceptions import StoreError
from digilib.crud import create_user
from digilib.models.asset import Asset
from digilib.models.book import Book
from digilib.schemas.user import UserCreate
from digilib.services import AssetLifecycleManager, CatalogCoordinator

# --- Test Database Setup ---
# A fresh in-memory SQLite database per test; StaticPool keeps the single
# connection alive so every session sees the same database.
TEST_DATABASE_URL = "sqlite://"

BASELINE = 1.0


@pytest.fixture(scope="function")
def db_engine():
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Provides a session on a fresh database."""
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    try:
        yield session
    finally:
        session.close()


# --- Asset store test double ---

class FakeAssetStore:
    """
    In-memory stand-in for AssetStoreClient.

    Records every call; `fail_uploads` / `fail_destroy_ids` make the matching
    calls raise StoreError the way the real client does.
    """

    def __init__(self):
        self.blobs = {}
        self.upload_calls = []
        self.destroy_calls = []
        self.staged_files = []
        self.fail_uploads = False
        self.fail_destroy_ids = set()
        self._counter = 0

    def upload(self, fileobj, resource_type, folder, filename=None, content_type=None):
        self.staged_files.append(fileobj)
        self.upload_calls.append({"resource_type": resource_type, "folder": folder, "filename": filename})
        if self.fail_uploads:
            raise StoreError("simulated upload outage")
        self._counter += 1
        public_id = f"{folder}/asset_{self._counter}"
        stored_type = "raw" if resource_type == "auto" else resource_type
        self.blobs[public_id] = fileobj.read()
        return Asset(
            url=f"https://res.example.com/{stored_type}/upload/{public_id}",
            public_id=public_id,
            resource_type=stored_type,
        )

    def destroy(self, public_id, resource_type="image"):
        self.destroy_calls.append(public_id)
        if public_id in self.fail_destroy_ids:
            raise StoreError(f"simulated destroy failure for {public_id}")
        # Missing ids are a no-op, like the real store.
        self.blobs.pop(public_id, None)


@pytest.fixture
def test_settings():
    return Settings(
        CLOUDINARY_CLOUD_NAME="demo",
        CLOUDINARY_API_KEY="key",
        CLOUDINARY_API_SECRET="secret",
        BASELINE_RATING=BASELINE,
        PLACEHOLDER_FILE_URL="https://res.example.com/placeholder-book.pdf",
        PLACEHOLDER_FILE_ID="placeholder",
        REQUIRE_PRIMARY_FILE=False,
        MAX_UPLOAD_BYTES=1024,
    )


@pytest.fixture
def fake_store():
    return FakeAssetStore()


@pytest.fixture
def asset_manager(fake_store, test_settings):
    return AssetLifecycleManager(fake_store, test_settings)


@pytest.fixture
def coordinator(asset_manager):
    return CatalogCoordinator(asset_manager, baseline=BASELINE, require_primary_file=False)


@pytest.fixture
def owner(db_session):
    return create_user(db_session, UserCreate(email="owner@example.com", password="password", name="Owner"))


@pytest.fixture
def user_a(db_session):
    return create_user(db_session, UserCreate(email="reader_a@example.com", password="password", name="Reader A"))


@pytest.fixture
def user_b(db_session):
    return create_user(db_session, UserCreate(email="reader_b@example.com", password="password", name="Reader B"))


@pytest.fixture
def make_book(db_session, owner):
    """Inserts a book row directly, bypassing the coordinator."""
    def _make_book(title="Test Book", **overrides):
        fields = dict(
            title=title,
            author="Test Author",
            description="A book used in tests.",
            category="Fiction",
            user_id=owner.id,
            file_url="https://res.example.com/raw/upload/books/seed.pdf",
            file_public_id="digital_library/books/seed",
            file_resource_type="raw",
            average_rating=BASELINE,
            review_count=0,
        )
        fields.update(overrides)
        book = Book(**fields)
        db_session.add(book)
        db_session.commit()
        db_session.refresh(book)
        return book
    return _make_book
