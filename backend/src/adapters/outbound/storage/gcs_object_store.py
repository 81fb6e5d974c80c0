"""Google Cloud Storage implementation of ObjectStorePort."""
from __future__ import annotations

import asyncio
import functools
import logging

logger = logging.getLogger(__name__)


class GCSObjectStore:
    """ObjectStorePort backed by a Google Cloud Storage bucket.

    The client library is blocking, so every call runs in the default
    executor. ``create_if_absent`` relies on the ``if_generation_match=0``
    precondition, which GCS evaluates atomically on the server.
    """

    def __init__(self, bucket_name: str, credentials_path: str = "") -> None:
        from google.cloud import storage as gcs_storage
        from google.oauth2 import service_account

        if not bucket_name:
            raise ValueError("GCSObjectStore requires a bucket name")
        self._bucket_name = bucket_name

        if credentials_path:
            creds = service_account.Credentials.from_service_account_file(
                credentials_path,
                scopes=["https://www.googleapis.com/auth/devstorage.read_write"],
            )
            self._client = gcs_storage.Client(credentials=creds)
        else:
            self._client = gcs_storage.Client()

        self._bucket = self._client.bucket(bucket_name)
        logger.info("GCSObjectStore initialised (bucket=%s)", bucket_name)

    @property
    def bucket_name(self) -> str:
        return self._bucket_name

    def uri(self, key: str) -> str:
        return f"gs://{self._bucket_name}/{key}"

    # ── ObjectStorePort implementation ────────────────────────────

    async def upload_bytes(self, key: str, data: bytes, content_type: str = "image/png") -> str:
        """Upload *data* under *key*. Returns the gs:// URI."""
        blob = self._bucket.blob(key)
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(
            None, functools.partial(blob.upload_from_string, data, content_type=content_type)
        )
        logger.debug("Uploaded %s (%d bytes)", self.uri(key), len(data))
        return self.uri(key)

    async def create_if_absent(self, key: str, data: bytes = b"", content_type: str = "text/plain") -> bool:
        """Create *key* only if no object exists there. False when it already exists."""
        from google.api_core.exceptions import PreconditionFailed

        blob = self._bucket.blob(key)
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(
                None,
                functools.partial(
                    blob.upload_from_string, data, content_type=content_type, if_generation_match=0
                ),
            )
        except PreconditionFailed:
            logger.debug("Object already exists: %s", self.uri(key))
            return False
        logger.info("Created %s", self.uri(key))
        return True

    async def list_keys(self, prefix: str) -> set[str]:
        """List object names under *prefix*."""
        loop = asyncio.get_running_loop()

        def _list() -> set[str]:
            blobs = self._client.list_blobs(self._bucket_name, prefix=prefix)
            return {b.name for b in blobs}

        return await loop.run_in_executor(None, _list)
