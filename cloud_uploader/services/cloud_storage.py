from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Any

import cloudinary.api
import cloudinary.uploader

from cloud_uploader.config import Settings

logger = logging.getLogger("cloud_uploader.storage")


class StorageError(RuntimeError):
    """Raised when the remote storage rejects or fails an operation."""


@dataclass(frozen=True)
class StoredObject:
    url: str
    public_id: str | None = None


class CloudStorage:
    """A thin wrapper around the Cloudinary SDK used to upload objects and check credentials.

    Credentials are passed with every call instead of through ``cloudinary.config``,
    so several clients with different settings can live in one process.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self.folder = settings.cloudinary_folder

    @property
    def configured(self) -> bool:
        return self._settings.storage_configured

    def _credentials(self) -> dict[str, str]:
        return {
            "cloud_name": self._settings.cloudinary_cloud_name,
            "api_key": self._settings.cloudinary_api_key,
            "api_secret": self._settings.cloudinary_api_secret,
        }

    def ping(self) -> dict[str, Any]:
        """Check credentials and connectivity. Raises StorageError on failure."""
        try:
            return dict(cloudinary.api.ping(**self._credentials()))
        except Exception as exc:  # the SDK raises a bare Exception for missing credentials
            raise StorageError(str(exc)) from exc

    def upload_stream(
        self,
        buffer: bytes,
        *,
        filename: str | None = None,
        folder: str | None = None,
        resource_type: str = "auto",
    ) -> StoredObject:
        """Upload an in-memory buffer in a single attempt and return its secure URL."""
        stream = io.BytesIO(buffer)
        if filename:
            stream.name = filename

        try:
            result = cloudinary.uploader.upload(
                stream,
                resource_type=resource_type,
                folder=folder or self.folder,
                **self._credentials(),
            )
        except OSError as exc:
            logger.error("event=storage_stream_error error=%s", exc)
            raise StorageError(f"Stream error: {exc}") from exc
        except Exception as exc:  # cloudinary.exceptions.Error, or a bare Exception for missing credentials
            logger.error("event=storage_upload_error error=%s", exc)
            raise StorageError(f"Cloudinary error: {exc}") from exc

        return self._stored_object(result)

    @staticmethod
    def _stored_object(result: Any) -> StoredObject:
        """
        Pull the secure URL out of an upload response. A response without one
        counts as a failed upload.
        """
        if not isinstance(result, dict):
            raise StorageError("Cloudinary error: unexpected upload response")
        url = result.get("secure_url") or ""
        if not url:
            raise StorageError("Cloudinary error: upload response did not include a secure_url")
        logger.info("event=storage_upload_success url=%s", url)
        return StoredObject(url=url, public_id=result.get("public_id"))
