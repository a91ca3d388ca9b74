"""Object storage access."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import storage

logger = logging.getLogger(__name__)


class ObjectStorage(Protocol):
    """Download and upload objects by bucket and name."""

    async def download(self, bucket: str, name: str) -> bytes:
        ...

    async def upload(self, local_path: Path, bucket: str, destination: str) -> None:
        ...


class FirebaseStorage:
    """
    ObjectStorage backed by Cloud Storage through firebase_admin.

    The SDK is blocking, so every call runs in a worker thread.
    """

    def __init__(self, app: Optional[firebase_admin.App] = None):
        if app is None:
            # Initialise with application default credentials only once
            if not firebase_admin._apps:
                firebase_admin.initialize_app()
            app = firebase_admin.get_app()
        self.app = app

    def _bucket(self, name: str):
        return storage.bucket(name, app=self.app)

    def _download(self, bucket: str, name: str) -> bytes:
        return self._bucket(bucket).blob(name).download_as_bytes()

    def _upload(self, local_path: Path, bucket: str, destination: str) -> None:
        self._bucket(bucket).blob(destination).upload_from_filename(str(local_path))

    async def download(self, bucket: str, name: str) -> bytes:
        logger.debug(f"Downloading gs://{bucket}/{name}")
        return await asyncio.to_thread(self._download, bucket, name)

    async def upload(self, local_path: Path, bucket: str, destination: str) -> None:
        logger.debug(f"Uploading {local_path} to gs://{bucket}/{destination}")
        await asyncio.to_thread(self._upload, local_path, bucket, destination)
