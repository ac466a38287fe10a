# tests/services/test_catalog.py
import logging

import pytest
from pytest import approx
from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from digilib.core.exceptions import (
    AggregateWriteError,
    BookNotFoundError,
    ConstraintViolation,
    DuplicateReviewError,
    PermissionDeniedError,
    ReviewNotFoundError,
    ValidationError,
)
from digilib.crud import count_reviews_for_book, create_review, create_user, get_review_by_id
from digilib.db.session import Base
from digilib.models.asset import Upload
from digilib.models.book import Book
from digilib.schemas.user import UserCreate
from digilib.services import CatalogCoordinator

BASELINE = 1.0

METADATA = {
    "title": "Dune",
    "author": "Frank Herbert",
    "description": "Desert planet, spice, politics.",
    "category": "Fiction",
}
PDF_UPLOAD = Upload(b"%PDF-1.7 dune", "application/pdf", "dune.pdf")
PNG_UPLOAD = Upload(b"\x89PNG dune", "image/png", "dune.png")


def _aggregate(db, book):
    db.refresh(book)
    return book.review_count, book.average_rating


# --- create_book ---

def test_create_book_with_upload(db_session, coordinator, owner, fake_store):
    book = coordinator.create_book(db_session, METADATA, owner.id, file=PDF_UPLOAD, cover=PNG_UPLOAD)

    assert book.id is not None
    assert book.review_count == 0
    assert book.average_rating == approx(BASELINE)
    assert book.file_public_id in fake_store.blobs
    assert book.cover_public_id in fake_store.blobs
    assert book.file_url.startswith("https://")


def test_create_book_without_file_uses_placeholder(db_session, coordinator, owner, fake_store, test_settings):
    book = coordinator.create_book(db_session, METADATA, owner.id)

    assert book.file_public_id == test_settings.PLACEHOLDER_FILE_ID
    assert book.file_url == test_settings.PLACEHOLDER_FILE_URL
    assert book.cover_asset is None
    assert fake_store.upload_calls == []


def test_create_book_requires_file_when_configured(db_session, asset_manager, owner):
    strict = CatalogCoordinator(asset_manager, baseline=BASELINE, require_primary_file=True)

    with pytest.raises(ValidationError):
        strict.create_book(db_session, METADATA, owner.id)
    assert db_session.query(Book).count() == 0


def test_create_book_store_outage_degrades(db_session, coordinator, owner, fake_store, asset_manager):
    fake_store.fail_uploads = True

    book = coordinator.create_book(db_session, METADATA, owner.id, file=PDF_UPLOAD, cover=PNG_UPLOAD)

    assert asset_manager.is_placeholder(book.file_asset)
    assert book.cover_asset is None


@pytest.mark.parametrize("bad", [
    {**METADATA, "category": "Cookbooks"},
    {**METADATA, "title": ""},
    {**METADATA, "title": "t" * 101},
    {k: v for k, v in METADATA.items() if k != "author"},
])
def test_create_book_invalid_metadata(db_session, coordinator, owner, fake_store, bad):
    with pytest.raises(ValidationError):
        coordinator.create_book(db_session, bad, owner.id, file=PDF_UPLOAD)
    assert fake_store.upload_calls == []
    assert db_session.query(Book).count() == 0


def test_create_book_invalid_payload_uploads_nothing(db_session, coordinator, owner, fake_store):
    with pytest.raises(ValidationError):
        coordinator.create_book(
            db_session, METADATA, owner.id, file=PDF_UPLOAD, cover=Upload(b"GIF89a", "image/gif", "c.gif")
        )
    assert fake_store.upload_calls == []


# --- update_book / update_book_assets ---

def test_update_book_metadata_only(db_session, coordinator, make_book):
    book = make_book(average_rating=4.0, review_count=3)

    updated = coordinator.update_book(db_session, book.id, {"title": "Renamed", "category": "History"})

    assert updated.title == "Renamed"
    assert updated.category == "History"
    assert (updated.review_count, updated.average_rating) == (3, approx(4.0))


def test_update_book_assets_only_touches_supplied_slots(db_session, coordinator, make_book, fake_store):
    book = make_book(
        cover_url="https://res.example.com/image/upload/c.png",
        cover_public_id="digital_library/covers/c",
        cover_resource_type="image",
    )
    old_file = book.file_asset
    old_cover = book.cover_asset

    coordinator.update_book_assets(db_session, book.id, file=PDF_UPLOAD)

    db_session.refresh(book)
    assert book.file_asset != old_file
    assert book.cover_asset == old_cover
    assert fake_store.destroy_calls == [old_file.public_id]


def test_update_book_assets_unknown_book(db_session, coordinator):
    with pytest.raises(BookNotFoundError):
        coordinator.update_book_assets(db_session, 999, file=PDF_UPLOAD)


# --- delete_book ---

def test_delete_book_cascades_reviews_and_assets(db_session, coordinator, make_book, user_a, user_b, fake_store):
    book = make_book(
        cover_url="https://res.example.com/image/upload/c.png",
        cover_public_id="digital_library/covers/c",
        cover_resource_type="image",
    )
    book_id = book.id
    coordinator.add_review(db_session, book_id, user_a.id, 5, "great")
    coordinator.add_review(db_session, book_id, user_b.id, 2, "meh")

    coordinator.delete_book(db_session, book_id)

    assert db_session.get(Book, book_id) is None
    assert count_reviews_for_book(db_session, book_id) == 0
    assert sorted(fake_store.destroy_calls) == sorted(["digital_library/books/seed", "digital_library/covers/c"])


def test_delete_book_proceeds_when_a_destroy_fails(db_session, coordinator, make_book, fake_store):
    book = make_book(
        cover_url="https://res.example.com/image/upload/c.png",
        cover_public_id="digital_library/covers/c",
        cover_resource_type="image",
    )
    book_id = book.id
    fake_store.fail_destroy_ids.add(book.file_public_id)

    coordinator.delete_book(db_session, book_id)

    assert len(fake_store.destroy_calls) == 2
    assert db_session.get(Book, book_id) is None


def test_delete_book_retry_after_row_delete_failure(db_session, coordinator, make_book, fake_store, monkeypatch):
    book = make_book()
    book_id = book.id
    file_id = book.file_public_id
    from digilib.crud import crud_book
    real_delete = crud_book.delete_book
    calls = {"n": 0}

    def flaky_delete(db, b):
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("connection reset")
        real_delete(db, b)

    monkeypatch.setattr(crud_book, "delete_book", flaky_delete)

    with pytest.raises(RuntimeError):
        coordinator.delete_book(db_session, book_id)
    assert db_session.get(Book, book_id) is not None

    # Second attempt re-destroys the (already gone) asset and succeeds.
    coordinator.delete_book(db_session, book_id)
    assert db_session.get(Book, book_id) is None
    assert fake_store.destroy_calls == [file_id, file_id]


def test_delete_unknown_book(db_session, coordinator, fake_store):
    with pytest.raises(BookNotFoundError):
        coordinator.delete_book(db_session, 12345)
    assert fake_store.destroy_calls == []


# --- reviews ---

def test_add_review_recomputes(db_session, coordinator, make_book, user_a, user_b):
    book = make_book()

    coordinator.add_review(db_session, book.id, user_a.id, 5, "loved it")
    assert _aggregate(db_session, book) == (1, approx(5.0))

    coordinator.add_review(db_session, book.id, user_b.id, 2, "not for me")
    assert _aggregate(db_session, book) == (2, approx(3.5))


def test_add_review_unknown_book(db_session, coordinator, user_a):
    with pytest.raises(BookNotFoundError):
        coordinator.add_review(db_session, 777, user_a.id, 4, "c")


@pytest.mark.parametrize("rating, comment", [(0, "c"), (6, "c"), (3, "")])
def test_add_review_invalid(db_session, coordinator, make_book, user_a, rating, comment):
    book = make_book()
    with pytest.raises(ValidationError):
        coordinator.add_review(db_session, book.id, user_a.id, rating, comment)
    assert count_reviews_for_book(db_session, book.id) == 0


def test_duplicate_review_rejected_state_unchanged(db_session, coordinator, make_book, user_a):
    book = make_book()
    coordinator.add_review(db_session, book.id, user_a.id, 4, "first")
    before = _aggregate(db_session, book)

    with pytest.raises(ConstraintViolation):
        coordinator.add_review(db_session, book.id, user_a.id, 1, "second")

    assert _aggregate(db_session, book) == before
    assert count_reviews_for_book(db_session, book.id) == 1


def test_duplicate_review_race_maps_integrity_error(db_session, coordinator, make_book, user_a, monkeypatch):
    """The unique constraint decides a race the pre-check could not see."""
    book = make_book()
    create_review(db_session, book_id=book.id, user_id=user_a.id, rating=4, comment="won the race")
    from digilib.crud import crud_review
    real_lookup = crud_review.get_review_by_user_and_book
    lookups = {"n": 0}

    def lookup_misses_once(db, user_id, book_id):
        lookups["n"] += 1
        if lookups["n"] == 1:
            return None
        return real_lookup(db, user_id, book_id)

    monkeypatch.setattr(crud_review, "get_review_by_user_and_book", lookup_misses_once)

    with pytest.raises(DuplicateReviewError):
        coordinator.add_review(db_session, book.id, user_a.id, 1, "lost the race")
    assert count_reviews_for_book(db_session, book.id) == 1


@pytest.fixture
def fk_session():
    """Session on a SQLite database that enforces foreign keys."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


def test_add_review_unknown_user_is_not_a_duplicate(fk_session, coordinator):
    author = create_user(fk_session, UserCreate(email="fk_owner@example.com", password="password"))
    book = Book(
        title="FK Book", author="A", description="d", category="Fiction", user_id=author.id,
        file_url="https://res.example.com/raw/upload/books/fk.pdf",
        file_public_id="digital_library/books/fk", file_resource_type="raw",
        average_rating=BASELINE, review_count=0,
    )
    fk_session.add(book)
    fk_session.commit()

    with pytest.raises(IntegrityError) as excinfo:
        coordinator.add_review(fk_session, book.id, 99999, 4, "nice")

    assert not isinstance(excinfo.value, DuplicateReviewError)
    assert "FOREIGN KEY" in str(excinfo.value)
    assert count_reviews_for_book(fk_session, book.id) == 0


def test_update_review_recomputes(db_session, coordinator, make_book, user_a, user_b):
    book = make_book()
    review = coordinator.add_review(db_session, book.id, user_a.id, 5, "great")
    coordinator.add_review(db_session, book.id, user_b.id, 3, "ok")

    updated = coordinator.update_review(db_session, review.id, {"rating": 1}, authorized=True)

    assert updated.rating == 1
    assert updated.comment == "great"
    assert _aggregate(db_session, book) == (2, approx(2.0))


def test_update_review_not_authorized(db_session, coordinator, make_book, user_a):
    book = make_book()
    review = coordinator.add_review(db_session, book.id, user_a.id, 5, "great")

    with pytest.raises(PermissionDeniedError):
        coordinator.update_review(db_session, review.id, {"rating": 1}, authorized=False)

    db_session.refresh(review)
    assert review.rating == 5


def test_update_review_invalid_rating(db_session, coordinator, make_book, user_a):
    book = make_book()
    review = coordinator.add_review(db_session, book.id, user_a.id, 5, "great")

    with pytest.raises(ValidationError):
        coordinator.update_review(db_session, review.id, {"rating": 9}, authorized=True)


def test_review_not_found(db_session, coordinator):
    with pytest.raises(ReviewNotFoundError):
        coordinator.update_review(db_session, 999, {"rating": 2}, authorized=True)
    with pytest.raises(ReviewNotFoundError):
        coordinator.delete_review(db_session, 999, authorized=True)


def test_delete_only_review_resets_to_baseline(db_session, coordinator, make_book, user_a):
    book = make_book()
    review = coordinator.add_review(db_session, book.id, user_a.id, 4, "good")

    coordinator.delete_review(db_session, review.id, authorized=True)

    assert _aggregate(db_session, book) == (0, approx(BASELINE))


def test_delete_review_not_authorized(db_session, coordinator, make_book, user_a):
    book = make_book()
    review = coordinator.add_review(db_session, book.id, user_a.id, 4, "good")

    with pytest.raises(PermissionDeniedError):
        coordinator.delete_review(db_session, review.id, authorized=False)
    assert get_review_by_id(db_session, review.id) is not None


def test_aggregate_failure_is_non_fatal(db_session, coordinator, make_book, user_a, user_b, monkeypatch, caplog):
    book = make_book()

    def failing_recompute(db, book_id, baseline=None):
        raise AggregateWriteError("simulated")

    monkeypatch.setattr("digilib.services.catalog.recompute_book_rating", failing_recompute)

    with caplog.at_level(logging.WARNING, logger="digilib.services.catalog"):
        review = coordinator.add_review(db_session, book.id, user_a.id, 5, "kept")

    assert get_review_by_id(db_session, review.id) is not None
    assert _aggregate(db_session, book) == (0, approx(BASELINE))
    assert "stale" in caplog.text

    # The next successful recompute heals the aggregate.
    monkeypatch.undo()
    coordinator.add_review(db_session, book.id, user_b.id, 3, "heals")
    assert _aggregate(db_session, book) == (2, approx(4.0))


def test_get_reviews(db_session, coordinator, make_book, user_a):
    book = make_book()
    coordinator.add_review(db_session, book.id, user_a.id, 4, "good")

    assert [r.rating for r in coordinator.get_reviews(db_session, book.id)] == [4]
    with pytest.raises(BookNotFoundError):
        coordinator.get_reviews(db_session, 31337)


# --- end-to-end scenario ---

def test_catalog_scenario(db_session, coordinator, owner, user_a, user_b, fake_store, asset_manager):
    book = coordinator.create_book(db_session, METADATA, owner.id, file=PDF_UPLOAD, cover=PNG_UPLOAD)
    uploaded_file = book.file_asset
    assert _aggregate(db_session, book) == (0, approx(BASELINE))
    assert book.file_url == uploaded_file.url

    review_a = coordinator.add_review(db_session, book.id, user_a.id, 5, "superb")
    coordinator.add_review(db_session, book.id, user_b.id, 3, "fine")
    assert _aggregate(db_session, book) == (2, approx(4.0))

    coordinator.delete_review(db_session, review_a.id, authorized=True)
    assert _aggregate(db_session, book) == (1, approx(3.0))

    with pytest.raises(ConstraintViolation):
        coordinator.add_review(db_session, book.id, user_b.id, 5, "again")
    assert _aggregate(db_session, book) == (1, approx(3.0))

    old_cover = book.cover_asset
    fake_store.fail_destroy_ids.add(old_cover.public_id)
    coordinator.update_book_assets(
        db_session, book.id, cover=Upload(b"\x89PNG new", "image/png", "new.png")
    )
    db_session.refresh(book)
    assert book.cover_asset != old_cover
    assert book.cover_public_id in fake_store.blobs
    assert list(asset_manager.orphans) == [old_cover]

    fake_store.destroy_calls.clear()
    book_id = book.id
    coordinator.delete_book(db_session, book_id)
    assert count_reviews_for_book(db_session, book_id) == 0
    assert len(fake_store.destroy_calls) == 2


def test_book_projection_exposes_urls_and_aggregate(db_session, coordinator, owner, user_a):
    from digilib.schemas.book import BookSchema

    book = coordinator.create_book(db_session, METADATA, owner.id, file=PDF_UPLOAD, cover=PNG_UPLOAD)
    coordinator.add_review(db_session, book.id, user_a.id, 4, "solid")
    db_session.refresh(book)

    projection = BookSchema.model_validate(book)

    assert projection.file_url == book.file_url
    assert projection.cover_url == book.cover_url
    assert projection.review_count == 1
    assert projection.average_rating == approx(4.0)
    assert projection.category == "Fiction"
