"""
Configuration module for digilib.

This module defines the Settings class, which loads environment variables
and provides application-wide configuration: the database URL, the asset
store (Cloudinary) credentials, the placeholder asset, the zero-review
baseline rating and admin email management.

Usage:
    Import the `settings` object to access configuration throughout the project.
    Components that talk to the asset store receive their configuration
    explicitly (see `AssetStoreClient.from_settings`).
"""

import os
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from typing import List

load_dotenv()

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        DATABASE_URL (str): Database connection string.
        ENVIRONMENT (str): Current environment (e.g., 'production', 'development').
        ADMIN_EMAILS (str): Comma-separated list of admin emails.
        CLOUDINARY_CLOUD_NAME (str): Cloud name of the asset store account.
        CLOUDINARY_API_KEY (str): API key for the asset store.
        CLOUDINARY_API_SECRET (str): API secret used to sign asset store requests.
        ASSET_STORE_TIMEOUT (float): Seconds before an asset store call is abandoned.
        BASELINE_RATING (float): average_rating stored for books with no reviews.
        PLACEHOLDER_FILE_URL (str): URL of the shared placeholder primary file.
        PLACEHOLDER_FILE_ID (str): Store identifier of the placeholder; never destroyed.
        REQUIRE_PRIMARY_FILE (bool): Reject book creation without a primary file
            instead of falling back to the placeholder.
        MAX_UPLOAD_BYTES (int): Largest accepted upload payload.
        MAX_ORPHAN_RECORDS (int): How many undestroyed assets the lifecycle manager
            remembers; older entries are dropped first.
    """
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./digilib.db")
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production")
    ADMIN_EMAILS: str = os.getenv("ADMIN_EMAILS", "")

    CLOUDINARY_CLOUD_NAME: str = os.getenv("CLOUDINARY_CLOUD_NAME", "")
    CLOUDINARY_API_KEY: str = os.getenv("CLOUDINARY_API_KEY", "")
    CLOUDINARY_API_SECRET: str = os.getenv("CLOUDINARY_API_SECRET", "")
    ASSET_STORE_TIMEOUT: float = 30.0

    # Books start at the bottom of the 1-5 scale rather than 0.
    BASELINE_RATING: float = 1.0
    PLACEHOLDER_FILE_URL: str = (
        "https://res.cloudinary.com/demo/image/upload/digital_library/placeholder-book.pdf"
    )
    PLACEHOLDER_FILE_ID: str = "placeholder"
    REQUIRE_PRIMARY_FILE: bool = False
    MAX_UPLOAD_BYTES: int = 10_000_000
    MAX_ORPHAN_RECORDS: int = 1000

    @property
    def list_admin_emails(self) -> List[str]:
        """
        Returns the list of admin emails parsed from ADMIN_EMAILS.

        Returns:
            List[str]: List of admin email addresses.
        """
        return [email.strip() for email in self.ADMIN_EMAILS.split(',') if email.strip()]

    @property
    def asset_store_configured(self) -> bool:
        """True when every Cloudinary credential is present."""
        return bool(
            self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET
        )

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
