"""
Cliente síncrono para el almacén de assets (Cloudinary).

Envuelve `cloudinary.uploader.upload` y `cloudinary.uploader.destroy` con
las credenciales de esta instancia pasadas en cada llamada, sin tocar la
configuración global del SDK. Sube un fichero a una carpeta y tipo de
recurso dados y devuelve un `Asset` (URL https + identificador público), y
destruye objetos por identificador. Cualquier fallo de red, autenticación,
timeout o respuesta inesperada se traduce a `StoreError`; la política de qué
hacer ante el fallo es de `digilib.services.assets`, no de este cliente.
"""

import logging
from typing import IO, Any, Dict, Optional

import cloudinary.exceptions
import cloudinary.uploader

from digilib.core.config import Settings
from digilib.core.exceptions import StoreError
from digilib.models.asset import Asset

logger = logging.getLogger(__name__)


class AssetStoreClient:
    """
    Acceso al almacén de assets.

    Se construye una única instancia al arrancar el proceso (ver
    `from_settings`) y se inyecta en `AssetLifecycleManager`.
    """

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, timeout: float = 30.0):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self._api_secret = api_secret
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssetStoreClient":
        if not settings.asset_store_configured:
            # Uploads will fail with StoreError and fall back; keep going.
            logger.error("Cloudinary credentials are missing. Please check your .env file.")
        return cls(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            timeout=settings.ASSET_STORE_TIMEOUT,
        )

    def _options(self, **options: Any) -> Dict[str, Any]:
        """Opciones por llamada para el SDK, con las credenciales de esta instancia."""
        if not (self.cloud_name and self.api_key and self._api_secret):
            raise StoreError("Asset store credentials are not configured")
        options.update(
            cloud_name=self.cloud_name,
            api_key=self.api_key,
            api_secret=self._api_secret,
            timeout=self.timeout,
        )
        return options

    def upload(
        self,
        fileobj: IO[bytes],
        resource_type: str,
        folder: str,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Asset:
        """
        Sube el contenido de `fileobj`.

        Returns:
            Asset: URL segura, public_id y tipo de recurso asignados por el almacén.

        Raises:
            StoreError: Si la subida no se completa.
        """
        options = self._options(folder=folder, resource_type=resource_type)
        if filename:
            options["filename"] = filename
        try:
            result = cloudinary.uploader.upload(fileobj, **options)
        except cloudinary.exceptions.AuthorizationRequired as exc:
            raise StoreError("Asset store authentication failed. Please check your Cloudinary credentials.") from exc
        except cloudinary.exceptions.Error as exc:
            raise StoreError(f"Upload to '{folder}' failed: {exc}") from exc
        except Exception as exc:
            logger.exception(f"Unexpected error uploading to '{folder}': {exc}")
            raise StoreError(f"Upload to '{folder}' failed: {exc}") from exc

        if not isinstance(result, dict):
            raise StoreError(f"Upload to '{folder}' returned an unexpected response: {result!r}")
        try:
            asset = Asset(
                url=result["secure_url"],
                public_id=result["public_id"],
                resource_type=result.get("resource_type", resource_type),
            )
        except KeyError as exc:
            raise StoreError(f"Upload response is missing {exc}") from exc
        logger.info(f"Uploaded asset {asset.public_id} to '{folder}'.")
        return asset

    def destroy(self, public_id: str, resource_type: str = "image") -> None:
        """
        Destruye un objeto del almacén.

        Un identificador que ya no existe cuenta como éxito, de modo que
        llamar dos veces es seguro.

        Raises:
            StoreError: Si el almacén no confirma el borrado.
        """
        options = self._options(resource_type=resource_type, invalidate=True)
        try:
            result = cloudinary.uploader.destroy(public_id, **options)
        except cloudinary.exceptions.NotFound:
            logger.info(f"Asset {public_id} was already absent from the store.")
            return
        except cloudinary.exceptions.Error as exc:
            raise StoreError(f"Destroy of {public_id} failed: {exc}") from exc
        except Exception as exc:
            logger.exception(f"Unexpected error destroying {public_id}: {exc}")
            raise StoreError(f"Destroy of {public_id} failed: {exc}") from exc

        outcome = result.get("result") if isinstance(result, dict) else None
        if outcome == "not found":
            logger.info(f"Asset {public_id} was already absent from the store.")
            return
        if outcome != "ok":
            raise StoreError(f"Destroy of {public_id} returned unexpected result: {result!r}")
        logger.info(f"Destroyed asset {public_id}.")
