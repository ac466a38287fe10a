"""
Value types for externally stored book assets.

An Asset is not a table of its own: a Book embeds its current primary file
and cover image as column groups and exposes them through `Asset` values.
"""

import enum
from dataclasses import dataclass
from typing import Optional


class AssetKind(str, enum.Enum):
    """The two asset slots a book owns."""
    FILE = "file"
    COVER = "cover"

    @property
    def folder(self) -> str:
        return _FOLDERS[self]

    @property
    def resource_type(self) -> str:
        return _RESOURCE_TYPES[self]


_FOLDERS = {
    AssetKind.FILE: "digital_library/books",
    AssetKind.COVER: "digital_library/covers",
}

# 'auto' lets the store classify pdf/epub payloads itself.
_RESOURCE_TYPES = {
    AssetKind.FILE: "auto",
    AssetKind.COVER: "image",
}


@dataclass(frozen=True)
class Asset:
    """
    A binary object held by the asset store.

    Attributes:
        url (str): Durable (https) URL of the object.
        public_id (str): Opaque store identifier used to destroy the object.
        resource_type (str): Store resource type the object was filed under.
    """
    url: str
    public_id: str
    resource_type: str = "image"


@dataclass(frozen=True)
class Upload:
    """Raw bytes supplied by the caller for one asset slot."""
    data: bytes
    content_type: Optional[str] = None
    filename: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)
