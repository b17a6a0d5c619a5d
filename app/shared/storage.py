"""
Blood-work PDF storage (Supabase Storage REST API).

Only signed upload URLs and public object URLs are produced here; PDF
contents are never downloaded or inspected.
"""

import os
import logging
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

import httpx
from fastapi import HTTPException

logger = logging.getLogger("storage")

SUPABASE_URL = os.getenv("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.getenv("SUPABASE_SERVICE_KEY", "")
BLOODWORK_BUCKET = os.getenv("BLOODWORK_BUCKET", "blood-work")


def _error_message(response: httpx.Response) -> str:
    """Best-effort message from an error body (JSON object, JSON list or plain text)."""
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()[:200] or "Unknown error"
    if isinstance(body, dict):
        return str(body.get("message") or body.get("error") or body)
    return str(body)


class StorageClient:
    """Client for the object store holding lab-report PDFs."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        service_key: Optional[str] = None,
        bucket: Optional[str] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        self.base_url = (base_url if base_url is not None else SUPABASE_URL).rstrip("/")
        self.bucket = bucket or BLOODWORK_BUCKET
        key = service_key if service_key is not None else SUPABASE_SERVICE_KEY
        self.headers = {
            "Authorization": f"Bearer {key}",
            "apikey": key,
        }
        self._client = http_client

    def _request(self, method: str, endpoint: str, **kwargs) -> Dict[str, Any]:
        if not self.base_url:
            raise HTTPException(status_code=500, detail="File storage is not configured")

        url = f"{self.base_url}/storage/v1{endpoint}"
        client = self._client or httpx.Client(timeout=30)
        try:
            response = client.request(method=method, url=url, headers=self.headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"Storage request failed: {e}")
            raise HTTPException(status_code=502, detail="File storage unavailable")
        finally:
            if self._client is None:
                client.close()

        if response.status_code >= 400:
            message = _error_message(response)
            logger.error(f"Storage API error {response.status_code}: {message}")
            raise HTTPException(status_code=502, detail=f"Storage API error: {message}")

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            logger.error(f"Storage API returned non-JSON body: {response.text[:200]}")
            raise HTTPException(status_code=502, detail="Storage API returned an invalid response")

    def create_signed_upload_url(self, path: str) -> Dict[str, str]:
        """
        Create a signed URL the browser can PUT the PDF to directly.

        Returns {"signed_url", "token", "path"}.
        """
        data = self._request("POST", f"/object/upload/sign/{self.bucket}/{path}")
        relative = data.get("url", "") if isinstance(data, dict) else ""
        token = parse_qs(urlparse(relative).query).get("token", [""])[0]
        if not relative or not token:
            raise HTTPException(status_code=502, detail="Storage API returned no signed URL")

        return {
            "signed_url": f"{self.base_url}/storage/v1{relative}",
            "token": token,
            "path": path,
        }

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"


def get_storage() -> StorageClient:
    return StorageClient()
