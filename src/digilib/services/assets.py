"""
Lifecycle of the assets a book owns: upload, replacement and cleanup.

Upload failures never reach the caller. A failed primary file upload falls
back to the shared placeholder and a failed cover upload to "no cover".
Destroy failures are logged and the asset is remembered in `orphans`, which
keeps the last MAX_ORPHAN_RECORDS of them. They never undo a record change
and never block the caller.
"""

import logging
import os
import tempfile
from collections import deque
from typing import Deque, List, Optional

from sqlalchemy.orm import Session

from digilib.clients.asset_store import AssetStoreClient
from digilib.core.config import Settings
from digilib.core.exceptions import StoreError, ValidationError
from digilib.crud import crud_book
from digilib.models.asset import Asset, AssetKind
from digilib.models.book import Book

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = {
    AssetKind.FILE: {"application/pdf", "application/epub+zip"},
    AssetKind.COVER: {"image/jpeg", "image/jpg", "image/png"},
}
ALLOWED_EXTENSIONS = {
    AssetKind.FILE: {".pdf", ".epub"},
    AssetKind.COVER: {".jpg", ".jpeg", ".png"},
}


class AssetLifecycleManager:
    """
    Orchestrates a book's two asset slots against the asset store.

    Args:
        store: The process-wide asset store client.
        settings: Configuration carrying the placeholder and upload limits.
    """

    def __init__(self, store: AssetStoreClient, settings: Settings):
        self._store = store
        self._settings = settings
        # Most recent destroy failures, oldest dropped first.
        self.orphans: Deque[Asset] = deque(maxlen=settings.MAX_ORPHAN_RECORDS)

    @property
    def placeholder(self) -> Asset:
        return Asset(
            url=self._settings.PLACEHOLDER_FILE_URL,
            public_id=self._settings.PLACEHOLDER_FILE_ID,
            resource_type="raw",
        )

    def is_placeholder(self, asset: Optional[Asset]) -> bool:
        return asset is not None and asset.public_id == self._settings.PLACEHOLDER_FILE_ID

    def validate_payload(
        self,
        kind: AssetKind,
        data: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> None:
        """
        Reject payloads the store should never see.

        Raises:
            ValidationError: Empty or oversized payload, or a content type /
                file extension not accepted for this kind.
        """
        if not data:
            raise ValidationError(f"The {kind.value} upload is empty")
        if len(data) > self._settings.MAX_UPLOAD_BYTES:
            raise ValidationError(
                f"The {kind.value} upload exceeds {self._settings.MAX_UPLOAD_BYTES} bytes"
            )
        if content_type is not None and content_type.lower() not in ALLOWED_CONTENT_TYPES[kind]:
            raise ValidationError(f"Content type '{content_type}' is not allowed for a {kind.value}")
        if filename is not None:
            extension = os.path.splitext(filename)[1].lower()
            if extension not in ALLOWED_EXTENSIONS[kind]:
                raise ValidationError(f"File '{filename}' is not an allowed {kind.value} type")

    def fallback(self, kind: AssetKind) -> Optional[Asset]:
        return self.placeholder if kind is AssetKind.FILE else None

    def upload(
        self,
        kind: AssetKind,
        data: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Optional[Asset]:
        """
        Upload `data` into the slot's folder.

        The bytes are staged in a temporary file that is closed (and removed)
        before this returns, whatever the outcome.

        Returns:
            The new Asset, or the kind's fallback if the store failed.
        """
        try:
            with tempfile.TemporaryFile(prefix="digilib-") as staged:
                staged.write(data)
                staged.seek(0)
                return self._store.upload(
                    staged,
                    resource_type=kind.resource_type,
                    folder=kind.folder,
                    filename=filename,
                    content_type=content_type,
                )
        except StoreError as e:
            if kind is AssetKind.FILE:
                logger.error(f"Upload of book file failed, using placeholder: {e}")
            else:
                logger.error(f"Upload of cover image failed, book will have no cover: {e}")
            return self.fallback(kind)

    def destroy(self, asset: Optional[Asset]) -> bool:
        """
        Best-effort destroy of one asset.

        Absent assets and the placeholder are skipped. A failure is logged and
        the asset is appended to `orphans`.

        Returns:
            False only if the store was asked and failed.
        """
        if asset is None or self.is_placeholder(asset):
            return True
        try:
            self._store.destroy(asset.public_id, resource_type=asset.resource_type)
        except StoreError as e:
            logger.error(f"Could not destroy asset {asset.public_id}; it is now orphaned: {e}")
            self.orphans.append(asset)
            return False
        return True

    def replace(
        self,
        db: Session,
        book: Book,
        kind: AssetKind,
        data: bytes,
        content_type: Optional[str] = None,
        filename: Optional[str] = None,
    ) -> Optional[Asset]:
        """
        Swap a slot's asset: upload new, point the record at it, then destroy old.

        If the upload falls back while the slot already holds a live asset, the
        slot is left as it is. The old asset is destroyed only after the record
        change has been committed.

        Returns:
            The asset the slot holds afterwards.
        """
        previous = book.get_asset(kind)
        new_asset = self.upload(kind, data, content_type=content_type, filename=filename)

        fell_back = new_asset is None or self.is_placeholder(new_asset)
        if fell_back and previous is not None and not self.is_placeholder(previous):
            logger.warning(f"Keeping current {kind.value} of book {book.id}; replacement upload failed.")
            return previous

        book.set_asset(kind, new_asset)
        try:
            crud_book.save_book(db, book)
        except Exception:
            # The record still points at `previous`; the fresh upload is unreferenced.
            self.destroy(new_asset)
            raise

        if previous is not None and previous != new_asset:
            self.destroy(previous)
        logger.info(f"Replaced {kind.value} of book {book.id}.")
        return new_asset

    def destroy_all(self, book: Book) -> List[Asset]:
        """
        Attempt to destroy both slots independently.

        Returns:
            Assets whose destroy failed (empty on full success).
        """
        failed = []
        for asset in (book.file_asset, book.cover_asset):
            if not self.destroy(asset):
                failed.append(asset)
        return failed
