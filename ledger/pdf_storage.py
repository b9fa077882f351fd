"""
PDF uploads to Supabase Storage.

Usage:
    uploader = PdfUploader(client)
    url = await uploader.upload(pdf_bytes, "jane-doe/schedule.pdf")
"""
from __future__ import annotations

from typing import Union

from ledger.lib.errors import InvalidArgument, StorageError, remote_message
from ledger.lib.logger import setup_logger
from ledger.lib.supabase_client import PDF_BUCKET

logger = setup_logger(__name__)

FOLDER_PLACEHOLDER = ".folder"
CACHE_CONTROL = "3600"
PDF_CONTENT_TYPE = "application/pdf"


class PdfUploader:
    """Uploads documents into one bucket and hands back public URLs."""

    def __init__(self, client, bucket: str = None):
        self.client = client
        self.bucket = bucket or PDF_BUCKET

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    async def _ensure_folder(self, folder: str) -> None:
        """Create `folder/.folder` when nothing exists under the prefix. Never raises."""
        try:
            existing = await self._bucket().list(folder)
            if not existing:
                await self._bucket().upload(f"{folder}/{FOLDER_PLACEHOLDER}", b"")
                logger.info("Created folder %s in bucket %s", folder, self.bucket)
        except Exception as e:
            logger.warning("Error checking/creating folder %s: %s", folder, e)

    async def upload(
        self, content: Union[bytes, str], path: str, content_type: str = PDF_CONTENT_TYPE,
    ) -> str:
        """
        Upload `content` to `path`, replacing any existing object.

        Args:
            content: File bytes, or a local file path.
            path: Destination inside the bucket, e.g. "client/doc.pdf".
            content_type: MIME type stored with the object.

        Returns:
            Public URL of the uploaded object.

        Raises:
            StorageError: The upload or URL resolution failed.
        """
        if not path:
            raise InvalidArgument("Upload path is required", field="path")

        parts = path.split("/")
        if len(parts) > 1:
            await self._ensure_folder(parts[0])

        try:
            await self._bucket().upload(
                path,
                content,
                file_options={
                    "cache-control": CACHE_CONTROL,
                    "content-type": content_type,
                    "upsert": "true",
                },
            )
            url = await self._bucket().get_public_url(path)
        except Exception as e:
            message = remote_message(e)
            logger.error("PDF upload error for %s: %s", path, message)
            raise StorageError(message, path=path) from e

        logger.info("Uploaded %s to bucket %s", path, self.bucket)
        return url
