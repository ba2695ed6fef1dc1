"""Object Storage: write-once blob stores that hand back a retrievable URL.

Invariants:
    - put() never overwrites an existing key
    - put() returns a URL that serves the stored bytes
    - Transport failures raise NetworkUnavailableError; rejected writes raise UploadFailure
"""

import asyncio
import logging
from pathlib import Path
from typing import Callable
from urllib.parse import quote

import httpx

from quill.config import Settings
from quill.core.domain_types import UploadFailureReason
from quill.core.errors import NetworkUnavailableError, UploadFailure
from quill.core.repository_protocols import ObjectStorage

logger = logging.getLogger(__name__)

SERVICE_NAME = "object storage"


class HttpObjectStorage:
    """Bucket client for the Firebase Storage REST wire format."""

    def __init__(
        self,
        bucket: str,
        base_url: str = "https://firebasestorage.googleapis.com",
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        token_source: Callable[[], str | None] | None = None,
    ):
        self._bucket = bucket
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._token_source = token_source

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        headers = {"Content-Type": content_type}
        token = self._token_source() if self._token_source else None
        if token:
            headers["Authorization"] = f"Firebase {token}"
        try:
            response = await self._client.post(
                f"{self._base_url}/v0/b/{self._bucket}/o",
                params={"name": key, "uploadType": "media"},
                content=data,
                headers=headers,
            )
        except httpx.TransportError as e:
            raise NetworkUnavailableError(SERVICE_NAME, str(e)) from e
        if response.status_code >= 500:
            raise NetworkUnavailableError(SERVICE_NAME, f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise UploadFailure(
                f"storage rejected '{key}' (HTTP {response.status_code})",
                UploadFailureReason.TRANSFER_FAILED.value,
            )
        try:
            body = response.json()
            download_token = str(body.get("downloadTokens") or "").split(",")[0]
        except (ValueError, AttributeError) as e:
            raise UploadFailure(
                f"storage sent an unreadable reply for '{key}'",
                UploadFailureReason.TRANSFER_FAILED.value,
            ) from e
        url = (
            f"{self._base_url}/v0/b/{self._bucket}/o/{quote(key, safe='')}"
            f"?alt=media"
        )
        if download_token:
            url += f"&token={download_token}"
        logger.info("Stored object", extra={"storage_key": key})
        return url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class LocalObjectStorage:
    """Filesystem store: keys become paths under root, URLs are base_url + key."""

    def __init__(self, root: str | Path, base_url: str = "/media"):
        self._root = Path(root)
        self._base_url = base_url.rstrip("/")

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._resolve(key)
        try:
            await asyncio.to_thread(self._write_once, path, data)
        except FileExistsError as e:
            raise UploadFailure(
                f"'{key}' already exists", UploadFailureReason.TRANSFER_FAILED.value,
            ) from e
        except OSError as e:
            raise UploadFailure(
                f"could not write '{key}': {e}", UploadFailureReason.TRANSFER_FAILED.value,
            ) from e
        logger.info("Stored object", extra={"storage_key": key})
        return f"{self._base_url}/{key}"

    def _resolve(self, key: str) -> Path:
        path = (self._root / key).resolve()
        if not path.is_relative_to(self._root.resolve()):
            raise UploadFailure(
                f"key escapes storage root: '{key}'",
                UploadFailureReason.TRANSFER_FAILED.value,
            )
        return path

    @staticmethod
    def _write_once(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "xb") as f:
            f.write(data)

    async def aclose(self) -> None:
        return None


def create_object_storage(
    settings: Settings, client: httpx.AsyncClient | None = None,
    token_source: Callable[[], str | None] | None = None,
) -> ObjectStorage:
    if settings.storage_backend == "http":
        return HttpObjectStorage(
            settings.storage_bucket,
            base_url=settings.storage_api_url,
            client=client,
            timeout=settings.http_timeout_seconds,
            token_source=token_source,
        )
    return LocalObjectStorage(settings.media_root, settings.media_base_url)
