from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx

from knowly.core.config import settings

logger = logging.getLogger(__name__)

_UNSAFE_RE = re.compile(r"[^A-Za-z0-9._-]+")


class UploadFailed(Exception):
    pass


@dataclass(frozen=True)
class UploadResult:
    file_url: str
    file_key: str


class Uploader(Protocol):
    def upload(self, data: bytes, file_name: str, content_type: str | None) -> UploadResult: ...


def _safe_name(file_name: str) -> str:
    name = _UNSAFE_RE.sub("_", Path(file_name or "").name).strip("._")
    return name or "upload"


class LocalUploader:
    """
    Stores files under a local directory; the URL is `<base_url>/<key>`.
    """

    def __init__(self, root: str | Path, base_url: str = "/files") -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/")

    def upload(self, data: bytes, file_name: str, content_type: str | None) -> UploadResult:
        key = f"{uuid.uuid4().hex}/{_safe_name(file_name)}"
        path = self.root / key
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise UploadFailed(f"Could not store {file_name}: {e}") from e
        return UploadResult(file_url=f"{self.base_url}/{key}", file_key=key)


class PresignedUploader:
    """
    Two-step upload: ask the presign endpoint for a PUT URL, then PUT the bytes.

    Presign response: {"presignedUrl": "...", "realFileUrl": "...", "fileKey": "..."}
    """

    def __init__(
        self,
        presign_url: str,
        timeout_s: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.presign_url = presign_url
        self.timeout_s = timeout_s
        self.transport = transport

    def upload(self, data: bytes, file_name: str, content_type: str | None) -> UploadResult:
        ctype = content_type or "application/octet-stream"

        try:
            with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
                r = client.post(self.presign_url, json={"fileName": file_name, "contentType": ctype})
                r.raise_for_status()
                body = r.json()
                if not isinstance(body, dict):
                    raise UploadFailed("No response data received from presign API")

                presigned_url = body.get("presignedUrl")
                real_url = body.get("realFileUrl")
                if not presigned_url:
                    raise UploadFailed("No presigned URL returned from server")
                if not real_url:
                    raise UploadFailed("No file URL returned from server")

                put = client.put(presigned_url, content=data, headers={"Content-Type": ctype})
                if put.status_code >= 400:
                    raise UploadFailed(f"Upload failed with status {put.status_code}: {put.reason_phrase}")
        except httpx.HTTPStatusError as e:
            raise UploadFailed(f"Failed to generate presigned URL (status {e.response.status_code})") from e
        except httpx.HTTPError as e:
            raise UploadFailed(f"Network error: unable to upload file ({e})") from e
        except ValueError as e:
            raise UploadFailed(f"Presign endpoint returned invalid JSON: {e}") from e

        return UploadResult(file_url=real_url, file_key=body.get("fileKey") or "")


def build_uploader() -> Uploader:
    if settings.upload_backend == "presigned":
        if not settings.presign_url:
            raise UploadFailed("KNOWLY_PRESIGN_URL is missing")
        return PresignedUploader(settings.presign_url, timeout_s=settings.upload_timeout_sec)
    return LocalUploader(settings.upload_dir, base_url=settings.upload_base_url)
